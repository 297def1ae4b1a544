"""
towerfall/store.py - In-memory cache of tournaments for the view server

One instance per server lifetime. `populate()` is the data refresh that runs
before every navigation; it only hits the API when the cache is older than
`refresh_seconds`, so repeated navigations stay cheap.
"""

import logging
import time
from typing import Protocol

from pydantic import ValidationError

from drunkenfall.client import APIError, TournamentNotFoundError
from drunkenfall.tournament import Tournament

logger = logging.getLogger(__name__)


class TournamentSource(Protocol):
    def list_tournaments(self) -> list[Tournament]: ...


class TournamentStore:
    def __init__(self, source: TournamentSource, refresh_seconds: float = 2.0):
        self._source = source
        self.refresh_seconds = refresh_seconds
        self._tournaments: dict[str, Tournament] = {}
        self._fetched_at: float | None = None

    @property
    def is_stale(self) -> bool:
        if self._fetched_at is None:
            return True
        return time.monotonic() - self._fetched_at >= self.refresh_seconds

    def populate(self, force: bool = False) -> None:
        """Refresh the cache from the API if it's stale.

        A failed refresh keeps the previous data when there is some. That
        covers an unreachable API and a record that fails validation. With
        nothing cached the error propagates.
        """
        if not force and not self.is_stale:
            return

        try:
            tournaments = self._source.list_tournaments()
        except (APIError, ValidationError) as e:
            if self._fetched_at is None:
                raise
            logger.warning(f"Tournament refresh failed, serving cached data: {e}")
            return

        self._tournaments = {t.id: t for t in tournaments}
        self._fetched_at = time.monotonic()
        logger.debug(f"Cached {len(self._tournaments)} tournaments")

    def all(self) -> list[Tournament]:
        return list(self._tournaments.values())

    def get(self, tournament_id: str) -> Tournament:
        try:
            return self._tournaments[tournament_id]
        except KeyError:
            raise TournamentNotFoundError(tournament_id) from None
