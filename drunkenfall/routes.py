"""
drunkenfall/routes.py - URL table for the viewer

Each route maps a URL pattern to a view id. `:name` segments become path
parameters. Routes are tried in order, so fixed segments ("new") must come
before a parameter in the same position.

Navigation runs the registered before-each hooks after a path resolves.
Hooks should be idempotent; they run on every navigation.
"""

import logging
import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Callable

logger = logging.getLogger(__name__)


class RouteNotFoundError(KeyError):
    """Raised when no route matches a path."""


@dataclass(frozen=True)
class Route:
    pattern: str
    view: str

    @cached_property
    def params(self) -> tuple[str, ...]:
        return tuple(
            segment[1:]
            for segment in _segments(self.pattern)
            if segment.startswith(":")
        )

    @cached_property
    def _regex(self) -> re.Pattern:
        parts = []
        for segment in _segments(self.pattern):
            if segment.startswith(":"):
                parts.append(f"(?P<{segment[1:]}>[^/]+)")
            else:
                parts.append(re.escape(segment))
        if not parts:
            return re.compile("^/$")
        return re.compile("^/" + "/".join(parts) + "/$")

    def match(self, path: str) -> dict[str, str] | None:
        m = self._regex.match(path)
        return m.groupdict() if m else None


@dataclass(frozen=True)
class RouteMatch:
    route: Route
    path: str
    params: dict[str, str] = field(default_factory=dict)
    redirected_from: str | None = None

    @property
    def view(self) -> str:
        return self.route.view


ROUTES: tuple[Route, ...] = (
    Route("/towerfall/", "tournament-list"),
    Route("/towerfall/new/", "new"),
    Route("/towerfall/:tournament/", "tournament"),
    Route("/towerfall/:tournament/join/", "join"),
    Route("/towerfall/:tournament/:kind/:match/", "match"),
)

# Drunken TowerFall is the only app on the site, so the root goes straight there
REDIRECTS: dict[str, str] = {
    "/": "/towerfall/",
}

Hook = Callable[[RouteMatch], None]


def _segments(path: str) -> list[str]:
    return [s for s in path.strip("/").split("/") if s]


def normalize_path(path: str) -> str:
    """Drop query/fragment and force leading and trailing slashes."""
    path = path.split("?", 1)[0].split("#", 1)[0]
    segments = _segments(path)
    if not segments:
        return "/"
    return "/" + "/".join(segments) + "/"


class Router:
    def __init__(
        self,
        routes: tuple[Route, ...] = ROUTES,
        redirects: dict[str, str] | None = None,
    ):
        self.routes = routes
        self.redirects = dict(REDIRECTS if redirects is None else redirects)
        self._hooks: list[Hook] = []

    def before_each(self, hook: Hook) -> Hook:
        """Register a pre-navigation hook. Returns it, so it works as a decorator."""
        self._hooks.append(hook)
        return hook

    def resolve(self, path: str) -> RouteMatch:
        original = normalize_path(path)
        target = self.redirects.get(original, original)

        for route in self.routes:
            params = route.match(target)
            if params is not None:
                return RouteMatch(
                    route=route,
                    path=target,
                    params=params,
                    redirected_from=original if target != original else None,
                )

        raise RouteNotFoundError(f"No route for {path!r}")

    def navigate(self, path: str) -> RouteMatch:
        """Resolve `path`, then run every before-each hook with the result."""
        match = self.resolve(path)
        logger.debug(f"Navigating to {match.path} ({match.view})")
        for hook in self._hooks:
            hook(match)
        return match
