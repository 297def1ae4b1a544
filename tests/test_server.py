"""
tests/test_server.py - View server endpoint tests.

Uses FastAPI's TestClient - no server process needed. The tournament API is
replaced by an in-memory source.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from drunkenfall.client import APIError
from drunkenfall.tournament import Tournament
from towerfall.server import app
from towerfall.store import TournamentStore

ZERO = "0001-01-01T00:00:00Z"
T0 = "2021-01-01T20:00:00Z"


def _tournament_raw(tid="dtf1"):
    return {
        "id": tid,
        "name": f"Drunken TowerFall {tid}",
        "players": [{"name": f"player{i}"} for i in range(8)],
        "tryouts": [
            {
                "kind": "tryout",
                "index": 0,
                "started": T0,
                "ended": ZERO,
                "players": [
                    {"name": "player0", "kills": 10},
                    {"name": "player1", "kills": 4},
                ],
            },
            {"kind": "tryout", "index": 1, "started": ZERO, "ended": ZERO, "players": []},
        ],
        "semis": [
            {"kind": "semi", "index": 0, "players": []},
            {"kind": "semi", "index": 1, "players": []},
        ],
        "final": {"kind": "final", "index": 0, "players": []},
        "opened": T0,
        "started": T0,
        "ended": ZERO,
    }


class FakeSource:
    def __init__(self, tournaments=None, error=None):
        self.tournaments = tournaments or []
        self.error = error
        self.calls = 0

    def list_tournaments(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [Tournament.from_object(raw) for raw in self.tournaments]


@pytest.fixture
def source():
    return FakeSource([_tournament_raw("dtf1"), _tournament_raw("dtf2")])


@pytest.fixture
def client(source):
    """Test client backed by the fake source."""
    import towerfall.server as srv

    # Bare app without lifespan so it doesn't overwrite _store
    test_app = FastAPI()
    for route in app.routes:
        test_app.routes.append(route)

    srv._store = TournamentStore(source, refresh_seconds=0)
    with TestClient(test_app) as c:
        yield c
    srv._store = None


# ======================================================================
# Pages
# ======================================================================


class TestRoot:
    def test_redirects_to_towerfall(self, client):
        resp = client.get("/", follow_redirects=False)
        assert resp.status_code in (302, 307)
        assert resp.headers["location"] == "/towerfall/"

    def test_redirect_lands_on_list(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["view"] == "tournament-list"


class TestTournamentList:
    def test_lists_tournaments(self, client):
        data = client.get("/towerfall/").json()
        assert data["view"] == "tournament-list"
        ids = [t["id"] for t in data["tournaments"]]
        assert ids == ["dtf1", "dtf2"]
        assert data["tournaments"][0]["is_running"] is True
        assert data["tournaments"][0]["next_match"] == "/towerfall/dtf1/tryout/0/"

    def test_each_navigation_refreshes(self, client, source):
        client.get("/towerfall/")
        client.get("/towerfall/dtf1/")
        assert source.calls == 2

    def test_api_down_without_cache(self, client, source):
        source.error = APIError("down")
        resp = client.get("/towerfall/")
        assert resp.status_code == 502

    def test_api_down_serves_cache(self, client, source):
        client.get("/towerfall/")
        source.error = APIError("down")
        resp = client.get("/towerfall/")
        assert resp.status_code == 200
        assert len(resp.json()["tournaments"]) == 2

    def test_invalid_record_without_cache(self, client, source):
        source.tournaments = [{"id": "x", "opened": "garbage"}]
        resp = client.get("/towerfall/")
        assert resp.status_code == 502

    def test_invalid_record_serves_cache(self, client, source):
        client.get("/towerfall/")
        source.tournaments = [{"id": "x", "opened": "garbage"}]
        resp = client.get("/towerfall/")
        assert resp.status_code == 200
        ids = [t["id"] for t in resp.json()["tournaments"]]
        assert ids == ["dtf1", "dtf2"]


class TestPages:
    def test_new(self, client):
        assert client.get("/towerfall/new/").json() == {"view": "new"}

    def test_tournament(self, client):
        data = client.get("/towerfall/dtf1/").json()
        assert data["view"] == "tournament"
        t = data["tournament"]
        assert t["id"] == "dtf1"
        assert t["tryouts"][0]["title"] == "Tryout 1/2"
        assert t["final"]["end"] == 20

    def test_tournament_without_trailing_slash(self, client):
        assert client.get("/towerfall/dtf1").json()["view"] == "tournament"

    def test_unknown_tournament(self, client):
        assert client.get("/towerfall/nope/").status_code == 404

    def test_join(self, client):
        data = client.get("/towerfall/dtf2/join/").json()
        assert data["view"] == "join"
        assert data["tournament"]["is_joinable"] is False
        assert "player3" in data["players"]

    def test_unknown_page(self, client):
        assert client.get("/towerfall/a/b/c/d/e/").status_code == 404


class TestMatchPage:
    def test_running_match(self, client):
        data = client.get("/towerfall/dtf1/tryout/0/").json()
        assert data["view"] == "match"
        m = data["match"]
        assert m["title"] == "Tryout 1/2"
        assert m["url"] == "/towerfall/dtf1/tryout/0/"
        assert m["is_running"] is True
        assert m["can_end"] is True
        assert m["end"] == 10
        assert m["status"] == "playing"

    def test_unstarted_match(self, client):
        m = client.get("/towerfall/dtf1/tryout/1/").json()["match"]
        assert m["is_started"] is False
        assert m["can_start"] is True
        assert m["can_end"] is False

    def test_final(self, client):
        m = client.get("/towerfall/dtf1/final/0/").json()["match"]
        assert m["label"] == "Final"
        assert m["end"] == 20

    @pytest.mark.parametrize("path", [
        "/towerfall/dtf1/tryout/9/",
        "/towerfall/dtf1/tryout/first/",
        "/towerfall/dtf1/bonus/0/",
        "/towerfall/nope/tryout/0/",
    ])
    def test_missing_match(self, client, path):
        assert client.get(path).status_code == 404


class TestHealth:
    def test_health(self, client):
        client.get("/towerfall/")
        data = client.get("/health").json()
        assert data == {"status": "ok", "tournaments": 2}
