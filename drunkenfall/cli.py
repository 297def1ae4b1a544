#!/usr/bin/env python3
"""
drunkenfall/cli.py - Command line interface for Drunken TowerFall

Usage:
    drunkenfall match <file.json>
    drunkenfall tournaments [--server URL]
    drunkenfall show <tournament> [<kind> <index>] [--server URL]
    drunkenfall route <path>
    drunkenfall serve [--port PORT]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _print_match(match, title: str | None = None) -> None:
    print(title or match.label)
    print(f"  Status:    {match.status}")
    print(f"  Ends at:   {match.end if match.end is not None else '-'} kills")
    print(f"  Can start: {'yes' if match.can_start else 'no'}")
    print(f"  Can end:   {'yes' if match.can_end else 'no'}")
    for player in match.by_kills():
        if player.is_prefill:
            continue
        print(f"    {player.name:<20} {player.kills:>3} kills  {player.shots:>3} shots")


def _client(args):
    from drunkenfall.client import TowerfallClient
    from drunkenfall.config import load_config

    config = load_config()
    server = args.server or config.api.server
    return TowerfallClient(server, timeout=config.api.timeout)


def cmd_match(args):
    """Show the derived state of a match record stored as JSON."""
    from drunkenfall.match import Match

    path = Path(args.file)
    try:
        raw = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read {path}: {e}")
        return 1

    try:
        match = Match.from_object(raw)
    except ValidationError as e:
        logger.error(f"Invalid match record in {path}:\n{e}")
        return 1

    _print_match(match)
    return 0


def cmd_tournaments(args):
    """List tournaments from the API."""
    from drunkenfall.client import APIError

    try:
        tournaments = _client(args).list_tournaments()
    except APIError as e:
        logger.error(str(e))
        return 1

    if not tournaments:
        print("No tournaments.")
        return 0

    for t in tournaments:
        if t.is_running:
            state = "running"
        elif t.is_joinable:
            state = "open"
        else:
            state = "closed"
        print(f"  {t.id:<20} {t.name:<30} {len(t.players):>2} players  {state}")
    return 0


def cmd_show(args):
    """Show a tournament, or one of its matches."""
    from drunkenfall.client import APIError, TournamentNotFoundError
    from drunkenfall.tournament import MatchNotFoundError

    try:
        tournament = _client(args).get_tournament(args.tournament)
    except TournamentNotFoundError:
        logger.error(f"No tournament named {args.tournament!r}")
        return 1
    except APIError as e:
        logger.error(str(e))
        return 1

    if args.kind is not None:
        try:
            match = tournament.get_match(args.kind, args.index)
        except MatchNotFoundError as e:
            logger.error(str(e))
            return 1
        _print_match(match, tournament.match_title(match))
        return 0

    print(f"{tournament.name} ({tournament.id})")
    print(f"  Players: {len(tournament.players)}")
    for match in tournament.matches():
        print(f"  {tournament.match_title(match):<12} {match.status}")
    upcoming = tournament.next_match()
    if upcoming is not None:
        print(f"  Next: {tournament.match_url(upcoming)}")
    return 0


def cmd_route(args):
    """Resolve a path against the page route table."""
    from drunkenfall.routes import RouteNotFoundError, Router

    try:
        match = Router().resolve(args.path)
    except RouteNotFoundError:
        logger.error(f"No page for {args.path}")
        return 1

    if match.redirected_from:
        print(f"{match.redirected_from} -> {match.path}")
    print(f"view: {match.view}")
    for name, value in match.params.items():
        print(f"  {name} = {value}")
    return 0


def cmd_serve(args):
    """Start the view server."""
    try:
        import uvicorn
    except ImportError:
        logger.error("The viewer requires extra dependencies: pip install drunkenfall[viewer]")
        return 1

    from drunkenfall.config import load_config
    from towerfall.server import app

    config = load_config()
    port = args.port or config.viewer.port
    logger.info(f"Starting viewer on {config.viewer.host}:{port} (API: {config.api.server})")
    uvicorn.run(app, host=config.viewer.host, port=port, log_level="info")
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="drunkenfall",
        description="Drunken TowerFall tournament tracker",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # match command
    match_parser = subparsers.add_parser("match", help="Show the state of a match JSON file")
    match_parser.add_argument("file", help="Path to a match record (JSON)")
    match_parser.set_defaults(func=cmd_match)

    # tournaments command
    list_parser = subparsers.add_parser("tournaments", help="List tournaments")
    list_parser.add_argument("--server", default=None, help="Tournament API URL (default: from config)")
    list_parser.set_defaults(func=cmd_tournaments)

    # show command
    show_parser = subparsers.add_parser("show", help="Show a tournament or one of its matches")
    show_parser.add_argument("tournament", help="Tournament id")
    show_parser.add_argument("kind", nargs="?", choices=["tryout", "semi", "final"], help="Match kind")
    show_parser.add_argument("index", nargs="?", type=int, default=0, help="Match index (default: 0)")
    show_parser.add_argument("--server", default=None, help="Tournament API URL (default: from config)")
    show_parser.set_defaults(func=cmd_show)

    # route command
    route_parser = subparsers.add_parser("route", help="Resolve a page path")
    route_parser.add_argument("path", help="URL path, e.g. /towerfall/abc/tryout/0/")
    route_parser.set_defaults(func=cmd_route)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the view server")
    serve_parser.add_argument("--port", "-p", type=int, default=None, help="Server port (default: from config)")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
