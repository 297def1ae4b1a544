"""Tests for drunkenfall.client - tournament API client (urlopen mocked)."""

import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from drunkenfall.client import APIError, TournamentNotFoundError, TowerfallClient

TOURNAMENT = {
    "id": "dtf1",
    "name": "Drunken TowerFall 1",
    "players": [{"name": "a"}],
    "tryouts": [{"kind": "tryout", "index": 0, "started": "0001-01-01T00:00:00Z"}],
    "semis": [],
    "final": {"kind": "final", "index": 0},
    "opened": "2021-01-01T20:00:00Z",
}


def _response(payload):
    resp = MagicMock()
    resp.__enter__.return_value.read.return_value = json.dumps(payload).encode()
    return resp


@pytest.fixture
def urlopen():
    with patch("drunkenfall.client.urllib.request.urlopen") as mock:
        yield mock


class TestListTournaments:
    def test_bare_list(self, urlopen):
        urlopen.return_value = _response([TOURNAMENT])
        client = TowerfallClient("http://api.test/")
        tournaments = client.list_tournaments()

        assert [t.id for t in tournaments] == ["dtf1"]
        assert tournaments[0].final.end == 20

        req = urlopen.call_args[0][0]
        assert req.full_url == "http://api.test/api/towerfall/tournament/"
        assert urlopen.call_args[1]["timeout"] == 10.0

    def test_wrapped_list(self, urlopen):
        urlopen.return_value = _response({"tournaments": [TOURNAMENT, TOURNAMENT]})
        assert len(TowerfallClient("http://api.test").list_tournaments()) == 2

    def test_wrapped_null(self, urlopen):
        urlopen.return_value = _response({"tournaments": None})
        assert TowerfallClient("http://api.test").list_tournaments() == []

    def test_unreachable(self, urlopen):
        urlopen.side_effect = urllib.error.URLError("connection refused")
        with pytest.raises(APIError):
            TowerfallClient("http://api.test").list_tournaments()

    def test_server_error(self, urlopen):
        urlopen.side_effect = urllib.error.HTTPError(
            "http://api.test", 500, "Internal Server Error", hdrs=None, fp=None
        )
        with pytest.raises(APIError):
            TowerfallClient("http://api.test").list_tournaments()

    def test_read_timeout(self, urlopen):
        urlopen.return_value.__enter__.return_value.read.side_effect = TimeoutError("timed out")
        with pytest.raises(APIError):
            TowerfallClient("http://api.test", timeout=0.5).list_tournaments()

    def test_non_json_body(self, urlopen):
        resp = MagicMock()
        resp.__enter__.return_value.read.return_value = b"<html>maintenance</html>"
        urlopen.return_value = resp
        with pytest.raises(APIError):
            TowerfallClient("http://api.test").list_tournaments()

    def test_bad_timestamp_propagates(self, urlopen):
        broken = dict(TOURNAMENT, opened="yesterday-ish")
        urlopen.return_value = _response([broken])
        with pytest.raises(ValidationError):
            TowerfallClient("http://api.test").list_tournaments()


class TestGetTournament:
    def test_get(self, urlopen):
        urlopen.return_value = _response(TOURNAMENT)
        t = TowerfallClient("http://api.test", timeout=3).get_tournament("dtf1")
        assert t.name == "Drunken TowerFall 1"
        req = urlopen.call_args[0][0]
        assert req.full_url == "http://api.test/api/towerfall/tournament/dtf1/"

    def test_id_is_quoted(self, urlopen):
        urlopen.return_value = _response(TOURNAMENT)
        TowerfallClient("http://api.test").get_tournament("a b/c")
        req = urlopen.call_args[0][0]
        assert req.full_url.endswith("/tournament/a%20b%2Fc/")

    def test_not_found(self, urlopen):
        urlopen.side_effect = urllib.error.HTTPError(
            "http://api.test", 404, "Not Found", hdrs=None, fp=None
        )
        with pytest.raises(TournamentNotFoundError):
            TowerfallClient("http://api.test").get_tournament("nope")
