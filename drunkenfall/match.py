"""
drunkenfall/match.py - Match state derived from backend match records

A match record comes from the tournament API as JSON. We keep every field
the backend sends, parse the two timestamps, and derive the lifecycle flags
the views need (started / running / ended) plus the kill threshold that
makes a match endable.

The backend serializes unset timestamps as its zero value,
"0001-01-01T00:00:00Z". That value means "not set", exactly like a missing
field.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

ZERO_DATE = datetime(1, 1, 1, tzinfo=timezone.utc)

# Kills a player needs before the match can be ended
COMPLETION_THRESHOLDS: dict[str, int] = {
    "tryout": 10,
    "semi": 10,
    "final": 20,
}

# Attributes we compute ourselves; never taken from the raw record
_DERIVED_FIELDS = frozenset({
    "end", "is_started", "is_ended", "can_start", "can_end", "is_running",
    "isStarted", "isEnded", "canStart", "canEnd", "isRunning",
})

# The backend emits nanosecond fractions; datetime stops at microseconds
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


# ============================================================================
# Timestamps
# ============================================================================


def _parse_timestamp(value: Any) -> Any:
    """Normalize a raw timestamp before pydantic parses it.

    None, "" and a numeric 0 mean absent; pydantic would otherwise read 0
    as the Unix epoch. Strings get their fractional seconds trimmed to
    microseconds. Anything else is left for pydantic to accept or reject.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and value == 0:
        return None
    if isinstance(value, str):
        return _EXTRA_FRACTION.sub(r"\1", value)
    return value


Timestamp = Annotated[datetime | None, BeforeValidator(_parse_timestamp)]


def is_zero_or_absent(t: datetime | None) -> bool:
    """True if the timestamp is missing or equal to the backend's zero date."""
    if not t:
        return True
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    return t == ZERO_DATE


# ============================================================================
# Player
# ============================================================================


class Player(BaseModel):
    """One slot in a match. An empty name marks a prefill placeholder."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    name: str = ""
    preferred_color: str = ""
    shots: int = 0
    sweeps: int = 0
    kills: int = 0
    self_kills: int = Field(0, alias="self")
    explosions: int = 0
    matches: int = 0
    total_score: int = Field(0, alias="score")

    @property
    def is_prefill(self) -> bool:
        return self.name == ""

    def score(self) -> int:
        """Entertainment score used to rank runnerups.

        A sweep is effectively worth 14: the sweep itself plus the shot and
        three kills that come with it.
        """
        return (
            self.sweeps * 5
            + self.shots * 3
            + self.kills * 2
            + self.self_kills
            + self.explosions
        )


# ============================================================================
# Match
# ============================================================================


class Match(BaseModel):
    """A single tryout, semi or final, as last fetched from the API.

    Instances are immutable. The derived properties are recomputed on every
    access.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    kind: str = ""
    index: int = 0
    started: Timestamp = None
    ended: Timestamp = None
    players: list[Player] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _drop_derived(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if k not in _DERIVED_FIELDS}
        return data

    @field_validator("players", mode="before")
    @classmethod
    def _missing_players(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def from_object(cls, raw: dict[str, Any]) -> "Match":
        """Build a Match from a raw API record.

        Raises pydantic.ValidationError if a timestamp can't be parsed.
        """
        return cls.model_validate(raw)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def end(self) -> int | None:
        """Kill threshold to end the match, or None for an unknown kind."""
        return COMPLETION_THRESHOLDS.get(self.kind)

    @property
    def is_started(self) -> bool:
        return not is_zero_or_absent(self.started)

    @property
    def is_ended(self) -> bool:
        return not is_zero_or_absent(self.ended)

    @property
    def can_start(self) -> bool:
        return not self.is_started

    @property
    def can_end(self) -> bool:
        """True while not ended and at least one player has reached `end`.

        An unknown kind has no threshold, so it can never be ended here.
        """
        if self.is_ended:
            return False
        end = self.end
        if end is None:
            return False
        return any(p.kills >= end for p in self.players)

    @property
    def is_running(self) -> bool:
        return self.is_started and not self.is_ended

    @property
    def status(self) -> str:
        if not self.is_started:
            return "not started"
        if self.is_ended:
            return "ended"
        return "playing"

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------

    @property
    def label(self) -> str:
        if self.kind == "final":
            return "Final"
        return f"{self.kind.title()} {self.index + 1}"

    @property
    def actual_players(self) -> int:
        return sum(1 for p in self.players if not p.is_prefill)

    def by_kills(self) -> list[Player]:
        return sorted(self.players, key=lambda p: p.kills, reverse=True)

    def by_score(self) -> list[Player]:
        return sorted(self.players, key=lambda p: p.score(), reverse=True)

    @property
    def leader(self) -> Player | None:
        ranked = self.by_kills()
        return ranked[0] if ranked else None

    def view(self) -> dict[str, Any]:
        """JSON-ready dict: passthrough data plus every derived attribute."""
        data = self.model_dump(mode="json", by_alias=True)
        data.update(
            end=self.end,
            is_started=self.is_started,
            is_ended=self.is_ended,
            can_start=self.can_start,
            can_end=self.can_end,
            is_running=self.is_running,
            status=self.status,
            label=self.label,
        )
        return data

    def __str__(self) -> str:
        names = " / ".join(p.name for p in self.players)
        return f"<{self.label}: {names} - {self.status}>"
