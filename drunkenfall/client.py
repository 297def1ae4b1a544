"""
drunkenfall/client.py - HTTP client for the tournament API

Read-only. Uses the stdlib so the core package needs nothing beyond
pydantic.
"""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from .config import DEFAULT_API_URL
from .tournament import Tournament

logger = logging.getLogger(__name__)

TOURNAMENTS_PATH = "/api/towerfall/tournament/"


class APIError(RuntimeError):
    """Raised when the tournament API can't be reached or answers with an error."""


class TournamentNotFoundError(KeyError):
    """Raised when the API has no tournament with the requested id."""


class TowerfallClient:
    def __init__(self, server: str = DEFAULT_API_URL, timeout: float = 10.0):
        self.server = server.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str) -> Any:
        url = f"{self.server}{path}"
        req = urllib.request.Request(url, headers={"Accept": "application/json"})
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return json.loads(resp.read())
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise TournamentNotFoundError(path) from e
            raise APIError(f"GET {url} failed: HTTP {e.code}") from e
        except urllib.error.URLError as e:
            raise APIError(f"Cannot reach tournament API at {self.server}: {e.reason}") from e
        except OSError as e:
            # Read timeouts and dropped connections after the headers arrived
            raise APIError(f"GET {url} failed: {e}") from e
        except json.JSONDecodeError as e:
            raise APIError(f"GET {url} returned non-JSON body: {e}") from e

    def list_tournaments(self) -> list[Tournament]:
        data = self._get(TOURNAMENTS_PATH)
        # Older servers wrap the list
        if isinstance(data, dict):
            data = data.get("tournaments") or []
        tournaments = [Tournament.from_object(raw) for raw in data]
        logger.debug(f"Fetched {len(tournaments)} tournaments from {self.server}")
        return tournaments

    def get_tournament(self, tournament_id: str) -> Tournament:
        quoted = urllib.parse.quote(tournament_id, safe="")
        return Tournament.from_object(self._get(f"{TOURNAMENTS_PATH}{quoted}/"))
