"""
towerfall/server.py - FastAPI view server for Drunken TowerFall

Serves JSON view models for the pages of the tournament site:

    GET /                                         Redirect to /towerfall/
    GET /towerfall/                               Tournament list
    GET /towerfall/new/                           New tournament page
    GET /towerfall/{tournament}/                  Tournament overview
    GET /towerfall/{tournament}/join/             Join page
    GET /towerfall/{tournament}/{kind}/{match}/   Match state
    GET /health                                   Server health check

Page paths are resolved through drunkenfall.routes, so the route table is
the single source of truth for which pages exist.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI, HTTPException
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ValidationError

from drunkenfall.client import APIError, TournamentNotFoundError, TowerfallClient
from drunkenfall.config import load_config
from drunkenfall.routes import REDIRECTS, RouteMatch, RouteNotFoundError, Router
from drunkenfall.tournament import MatchNotFoundError

from .store import TournamentStore

logger = logging.getLogger(__name__)

# Global store - set during lifespan
_store: TournamentStore | None = None


def get_store() -> TournamentStore:
    assert _store is not None, "Store not initialized"
    return _store


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _store
    config = load_config(getattr(app.state, "config_path", None))
    client = TowerfallClient(config.api.server, timeout=config.api.timeout)
    _store = TournamentStore(client, refresh_seconds=config.viewer.refresh_seconds)
    logger.info(f"Viewer using tournament API at {client.server}")

    yield
    _store = None


app = FastAPI(title="Drunken TowerFall", lifespan=lifespan)
router = Router()


@router.before_each
def _refresh_tournaments(match: RouteMatch) -> None:
    get_store().populate()


# ======================================================================
# Response Models
# ======================================================================


class HealthResponse(BaseModel):
    status: str
    tournaments: int


# ======================================================================
# Views
# ======================================================================


def _tournament_list(params: dict[str, str]) -> dict[str, Any]:
    tournaments = get_store().all()
    return {
        "view": "tournament-list",
        "tournaments": [t.summary() for t in tournaments],
    }


def _new(params: dict[str, str]) -> dict[str, Any]:
    return {"view": "new"}


def _tournament(params: dict[str, str]) -> dict[str, Any]:
    tournament = get_store().get(params["tournament"])
    return {"view": "tournament", "tournament": tournament.view()}


def _join(params: dict[str, str]) -> dict[str, Any]:
    tournament = get_store().get(params["tournament"])
    return {
        "view": "join",
        "tournament": tournament.summary(),
        "players": [p.name for p in tournament.players],
    }


def _match(params: dict[str, str]) -> dict[str, Any]:
    tournament = get_store().get(params["tournament"])
    try:
        index = int(params["match"])
    except ValueError:
        raise MatchNotFoundError(params["match"]) from None

    match = tournament.get_match(params["kind"], index)
    data = match.view()
    data["title"] = tournament.match_title(match)
    data["url"] = tournament.match_url(match)
    return {
        "view": "match",
        "tournament": tournament.summary(),
        "match": data,
    }


VIEWS: dict[str, Callable[[dict[str, str]], dict[str, Any]]] = {
    "tournament-list": _tournament_list,
    "new": _new,
    "tournament": _tournament,
    "join": _join,
    "match": _match,
}


# ======================================================================
# Endpoints
# ======================================================================


@app.get("/")
def root() -> RedirectResponse:
    return RedirectResponse(REDIRECTS["/"])


@app.get("/towerfall/{path:path}")
def page(path: str) -> dict[str, Any]:
    """Resolve a page path and render its view model."""
    try:
        match = router.navigate(f"/towerfall/{path}")
    except RouteNotFoundError:
        raise HTTPException(status_code=404, detail="Page not found")
    except APIError as e:
        logger.error(f"Tournament API unavailable: {e}")
        raise HTTPException(status_code=502, detail="Tournament API unavailable")
    except ValidationError as e:
        logger.error(f"Tournament API sent an invalid record: {e}")
        raise HTTPException(status_code=502, detail="Invalid tournament data")

    try:
        return VIEWS[match.view](match.params)
    except TournamentNotFoundError:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except MatchNotFoundError:
        raise HTTPException(status_code=404, detail="Match not found")


@app.get("/health", response_model=HealthResponse)
def health() -> dict[str, Any]:
    return {"status": "ok", "tournaments": len(get_store().all())}
