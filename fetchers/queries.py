"""Query keys and fetch functions for the three dashboard views.

Each builder returns (key, fn) for QueryCache: the key is the tuple of
parameters, so changing the org, team, user or day window always lands on a
different cache entry.
"""

import asyncio
from typing import Optional

from cache.query_cache import QueryFn, QueryKey
from fetchers.github import GitHubFetcher
from fetchers.team import search_team_pull_requests


def team_query(fetcher: GitHubFetcher, org: str, team_slug: str, days: Optional[int]) -> tuple[QueryKey, QueryFn]:
    async def fn():
        return await search_team_pull_requests(fetcher, org, team_slug, days)
    return ("team", org, team_slug, days), fn


def org_query(fetcher: GitHubFetcher, org: str, days: Optional[int]) -> tuple[QueryKey, QueryFn]:
    async def fn():
        return await asyncio.to_thread(fetcher.search_org_pull_requests, org, days)
    return ("org", org, days), fn


def user_query(fetcher: GitHubFetcher, username: str, days: Optional[int]) -> tuple[QueryKey, QueryFn]:
    async def fn():
        return await asyncio.to_thread(fetcher.search_user_pull_requests, username, days)
    return ("user", username, days), fn
