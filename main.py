#!/usr/bin/env python3
"""
PR Dashboard - Main CLI entrypoint

Lists open GitHub pull requests for a team, an organization or a user,
filtered by age, and serves the same data over a REST API.

Usage:
    python main.py team --org acme --team core              # Team repos, stored day window
    python main.py team --org acme --team core --days 30
    python main.py org --org acme --days all                 # Whole organization, no limit
    python main.py user octocat                              # Repos owned by a user
    python main.py team --watch                              # Re-fetch every REFETCH_INTERVAL_SECONDS
    python main.py days 7                                    # Remember a day window
    python main.py serve --port 8000                         # Start the API server
"""

import argparse
import asyncio
import sys
from datetime import datetime
from typing import Optional

from cache.query_cache import QueryCache, QueryObserver, QueryResult
from fetchers.errors import AuthorizationError
from fetchers.github import GitHubFetcher
from fetchers.queries import org_query, team_query, user_query
from models.data_models import PullRequest
from storage.preferences import PreferenceStore, create_preference_store, load_days_filter, save_days_filter
from utils.config_loader import load_config
from utils.date_utils import format_days, get_relative_time, parse_days
from utils.logger import setup_logger

logger = setup_logger(name=__name__)


def format_pull_request_card(pr: PullRequest, now: Optional[datetime] = None) -> str:
    """
    Render one PR as a plain-text card.

    Example:
        Fix login redirect #123 [draft]
          octocat · 3 days ago · widgets
          https://github.com/acme/widgets/pull/123
    """
    title = f"{pr.title} #{pr.number}"
    if pr.draft:
        title += " [draft]"
    meta = f"{pr.user.login} · {get_relative_time(pr.created_at, now)} · {pr.repository.name}"
    return f"{title}\n  {meta}\n  {pr.html_url}"


def render_result(result: QueryResult, label: str, days: Optional[int]) -> bool:
    """
    Print a query result.

    Returns:
        bool: False when there is nothing to show but an error
    """
    window = "all time" if days is None else f"the last {days} days"

    if result.error is not None and not result.has_data:
        logger.error(f"Error loading pull requests for {label}: {result.error}")
        if isinstance(result.error, AuthorizationError):
            logger.error("Make sure GITHUB_TOKEN is set and has read:org and repo access.")
        return False

    if result.error is not None:
        logger.warning(f"Refresh failed, showing data from {result.updated_at:%H:%M:%S}: {result.error}")

    prs = result.data or []
    if not prs:
        logger.info(f"No open pull requests for {label} from {window}.")
        return True

    logger.info(f"{len(prs)} open pull requests for {label} from {window}")
    print("-" * 80)
    for pr in prs:
        print(format_pull_request_card(pr))
        print("")
    return True


async def show_prs(
    view: str,
    target: str,
    query: tuple,
    days: Optional[int],
    cache: QueryCache,
    watch: bool = False,
) -> bool:
    """
    Fetch and print one view, optionally re-fetching on the refresh interval.

    Args:
        view: "team", "org" or "user" (for display)
        target: Human-readable target (e.g., "acme/core")
        query: (key, fn) pair from fetchers.queries
        days: Day window (None for no limit)
        cache: QueryCache to read through
        watch: Keep running and print each refresh until interrupted

    Returns:
        bool: True if the last render had data (or an empty list) to show
    """
    key, fn = query
    label = f"{view} {target}"
    observer = QueryObserver(cache)

    result = await observer.set_key(key, fn, wait=True)
    ok = render_result(result, label, days)

    while watch:
        await asyncio.sleep(cache.refetch_interval)
        result = await observer.refetch()
        ok = render_result(result, label, days)

    return ok


def resolve_days(arg: Optional[str], preferences: PreferenceStore, default: Optional[int]) -> Optional[int]:
    """--days wins over the stored preference."""
    if arg is None:
        return load_days_filter(preferences, default=default)
    return parse_days(arg)


def add_view_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--days",
        type=str,
        default=None,
        help="Only PRs created in the last N days: 7, 14, 30 or 'all' (default: stored preference)"
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running and re-fetch every REFETCH_INTERVAL_SECONDS"
    )


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="PR Dashboard - open pull requests for a team, organization or user"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Team command
    team_parser = subparsers.add_parser(
        "team",
        help="Open PRs in repositories a team can access"
    )
    team_parser.add_argument("--org", type=str, default=None, help="Organization (default: GITHUB_ORG)")
    team_parser.add_argument("--team", type=str, default=None, help="Team slug (default: GITHUB_TEAM)")
    add_view_arguments(team_parser)

    # Org command
    org_parser = subparsers.add_parser(
        "org",
        help="Open PRs across an entire organization"
    )
    org_parser.add_argument("--org", type=str, default=None, help="Organization (default: GITHUB_ORG)")
    add_view_arguments(org_parser)

    # User command
    user_parser = subparsers.add_parser(
        "user",
        help="Open PRs in repositories owned by a user"
    )
    user_parser.add_argument("username", help="GitHub username (e.g., 'octocat')")
    add_view_arguments(user_parser)

    # Days command
    days_parser = subparsers.add_parser(
        "days",
        help="Show or set the stored day window"
    )
    days_parser.add_argument(
        "value",
        nargs="?",
        default=None,
        help="New day window: 7, 14, 30 or 'all' (omit to show the current one)"
    )

    # Serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the PR Dashboard API server"
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the API server on (default: 8000)"
    )
    serve_parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind the server to (default: 127.0.0.1)"
    )

    args = parser.parse_args(argv)

    # Show help if no command provided
    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Handle serve command
    if args.command == "serve":
        logger.info("=" * 80)
        logger.info("Starting PR Dashboard API Server")
        logger.info("=" * 80)
        logger.info(f"API will be available at: http://{args.host}:{args.port}")
        logger.info(f"API docs available at: http://{args.host}:{args.port}/docs")
        logger.info("Press Ctrl+C to stop the server")
        logger.info("=" * 80)

        import uvicorn
        uvicorn.run(
            "backend.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            log_level="info"
        )
        sys.exit(0)

    # Load config
    config = load_config()
    setup_logger(config.log_level)

    try:
        preferences = create_preference_store(config)
    except Exception as e:
        logger.error(f"Failed to initialize preference store: {e}")
        sys.exit(1)

    # Handle days command
    if args.command == "days":
        if args.value is None:
            days = load_days_filter(preferences, default=config.dashboard.default_days)
            logger.info(f"Day window: {format_days(days)}")
            sys.exit(0)
        try:
            days = parse_days(args.value)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)
        save_days_filter(preferences, days)
        logger.info(f"✓ Day window set to {format_days(days)}")
        sys.exit(0)

    try:
        days = resolve_days(args.days, preferences, config.dashboard.default_days)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    fetcher = GitHubFetcher(
        config.credentials.github_token,
        base_url=config.dashboard.github_api_url,
    )
    cache = QueryCache(
        stale_time=config.dashboard.stale_time_seconds,
        refetch_interval=config.dashboard.refetch_interval_seconds,
    )

    if args.command in ("team", "org"):
        org = args.org or config.dashboard.org
        if not org:
            logger.error("Organization is required: pass --org or set GITHUB_ORG in .env")
            sys.exit(1)

    if args.command == "team":
        team = args.team or config.dashboard.team
        if not team:
            logger.error("Team is required: pass --team or set GITHUB_TEAM in .env")
            sys.exit(1)
        target = f"{org}/{team}"
        query = team_query(fetcher, org, team, days)
    elif args.command == "org":
        target = org
        query = org_query(fetcher, org, days)
    else:
        target = args.username
        query = user_query(fetcher, args.username, days)

    try:
        success = asyncio.run(show_prs(args.command, target, query, days, cache, watch=args.watch))
    except KeyboardInterrupt:
        logger.info("Stopped.")
        success = True

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
