"""
Drunken TowerFall - tournament tracker for the drinking-game edition of TowerFall

Match and tournament state, the page route table, and a read-only client
for the tournament API.
"""

__version__ = "0.1.0"

from .match import (
    COMPLETION_THRESHOLDS,
    ZERO_DATE,
    Match,
    Player,
    is_zero_or_absent,
)

from .tournament import (
    MatchNotFoundError,
    Tournament,
)

from .routes import (
    REDIRECTS,
    ROUTES,
    Route,
    RouteMatch,
    RouteNotFoundError,
    Router,
)

from .client import (
    APIError,
    TournamentNotFoundError,
    TowerfallClient,
)

__all__ = [
    # Version
    "__version__",
    # Match state
    "COMPLETION_THRESHOLDS",
    "ZERO_DATE",
    "Match",
    "Player",
    "is_zero_or_absent",
    # Tournament
    "MatchNotFoundError",
    "Tournament",
    # Routing
    "REDIRECTS",
    "ROUTES",
    "Route",
    "RouteMatch",
    "RouteNotFoundError",
    "Router",
    # API client
    "APIError",
    "TournamentNotFoundError",
    "TowerfallClient",
]
