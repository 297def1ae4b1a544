"""
towerfall - View server for the Drunken TowerFall site

Resolves the page routes and serves match and tournament state as JSON.
It only reads from the tournament API.
"""

from .server import app
from .store import TournamentStore

__all__ = ["app", "TournamentStore"]
