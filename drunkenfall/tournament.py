"""
drunkenfall/tournament.py - Read model for a whole tournament

Wraps the tournament record returned by the API: the player roster, the
tryout/semi/final matches, and the tournament's own lifecycle timestamps.
Nothing here mutates the backend; scoring and bracket moves happen there.
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .match import Match, Player, Timestamp, is_zero_or_absent

logger = logging.getLogger(__name__)

MAX_PLAYERS = 32
MIN_PLAYERS_TO_START = 16
SEMI_COUNT = 2

# URL kind -> attribute holding those matches
_KIND_ATTRS = {
    "tryout": "tryouts",
    "semi": "semis",
}


class MatchNotFoundError(KeyError):
    """Raised when a kind/index pair doesn't name a match in the tournament."""


class Tournament(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str = ""
    players: list[Player] = Field(default_factory=list)
    winners: list[Player] = Field(default_factory=list)
    runnerups: list[str] = Field(default_factory=list)
    tryouts: list[Match] = Field(default_factory=list)
    semis: list[Match] = Field(default_factory=list)
    final: Match | None = None
    opened: Timestamp = None
    started: Timestamp = None
    ended: Timestamp = None

    @field_validator("players", "winners", "runnerups", "tryouts", "semis", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        # Go marshals nil slices as null
        return [] if value is None else value

    @classmethod
    def from_object(cls, raw: dict[str, Any]) -> "Tournament":
        return cls.model_validate(raw)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        """Open for registration."""
        return not is_zero_or_absent(self.opened)

    @property
    def is_joinable(self) -> bool:
        if len(self.players) >= MAX_PLAYERS:
            return False
        return self.is_open and is_zero_or_absent(self.started)

    @property
    def is_startable(self) -> bool:
        count = len(self.players)
        return (
            self.is_open
            and is_zero_or_absent(self.started)
            and MIN_PLAYERS_TO_START <= count <= MAX_PLAYERS
        )

    @property
    def is_running(self) -> bool:
        return not is_zero_or_absent(self.started) and is_zero_or_absent(self.ended)

    def can_join(self, name: str) -> bool:
        """Whether `name` may still sign up."""
        if len(self.players) >= MAX_PLAYERS:
            return False
        return all(p.name != name for p in self.players)

    def runnerup_players(self) -> list[Player]:
        """Players in the runnerup bracket, best candidate first.

        Fewest matches played goes first; ties are broken by score, highest
        first. Names missing from the roster are skipped.
        """
        roster = {p.name: p for p in self.players}
        found = []
        for name in self.runnerups:
            player = roster.get(name)
            if player is None:
                logger.warning(f"{self.id}: runnerup {name!r} is not in the roster")
                continue
            found.append(player)
        return sorted(found, key=lambda p: (p.matches, -p.score()))

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def matches(self) -> list[Match]:
        """All matches in play order: tryouts, semis, final."""
        out = [*self.tryouts, *self.semis]
        if self.final is not None:
            out.append(self.final)
        return out

    def get_match(self, kind: str, index: int) -> Match:
        if kind == "final":
            if self.final is None or index != 0:
                raise MatchNotFoundError(f"{self.id}: no final at index {index}")
            return self.final

        attr = _KIND_ATTRS.get(kind)
        if attr is None:
            raise MatchNotFoundError(f"{self.id}: unknown match kind {kind!r}")

        matches = getattr(self, attr)
        if not 0 <= index < len(matches):
            raise MatchNotFoundError(f"{self.id}: no {kind} at index {index}")
        return matches[index]

    def next_match(self) -> Match | None:
        """The first match that hasn't ended, or None when all are played."""
        for match in self.matches():
            if not match.is_ended:
                return match
        return None

    def match_title(self, match: Match) -> str:
        if match.kind == "final":
            return "Final"
        total = len(self.tryouts) if match.kind == "tryout" else SEMI_COUNT
        return f"{match.kind.title()} {match.index + 1}/{total}"

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        return f"/towerfall/{self.id}/"

    def match_url(self, match: Match) -> str:
        return f"/towerfall/{self.id}/{match.kind}/{match.index}/"

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def summary(self) -> dict[str, Any]:
        """Short form used by the tournament list."""
        upcoming = self.next_match()
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "player_count": len(self.players),
            "is_open": self.is_open,
            "is_joinable": self.is_joinable,
            "is_running": self.is_running,
            "next_match": self.match_url(upcoming) if upcoming else None,
        }

    def view(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True, exclude={"tryouts", "semis", "final"})
        data.update(self.summary())
        data["is_startable"] = self.is_startable

        def _match_view(match: Match) -> dict[str, Any]:
            out = match.view()
            out["title"] = self.match_title(match)
            out["url"] = self.match_url(match)
            return out

        data["tryouts"] = [_match_view(m) for m in self.tryouts]
        data["semis"] = [_match_view(m) for m in self.semis]
        data["final"] = _match_view(self.final) if self.final is not None else None
        return data
