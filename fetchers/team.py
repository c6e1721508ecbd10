"""Team pull request view: open PRs in the repositories a team can access.

A search query listing every team repository would exceed GitHub's query
length limit for any team with more than a handful of repos, so instead we
fetch all open PRs in the organization and filter locally against the
team's repository set.
"""

import asyncio
import logging
from typing import Optional

from fetchers.github import GitHubFetcher
from models.data_models import PullRequest
from utils.date_utils import DEFAULT_DAYS

logger = logging.getLogger(__name__)


def filter_by_repositories(prs: list[PullRequest], repositories: list[str]) -> list[PullRequest]:
    """Keep PRs whose repository full name is in `repositories`, preserving order."""
    if not repositories:
        return []
    allowed = set(repositories)
    return [pr for pr in prs if pr.repository.full_name in allowed]


async def search_team_pull_requests(
    fetcher: GitHubFetcher,
    org: str,
    team_slug: str,
    days: Optional[int] = DEFAULT_DAYS,
) -> list[PullRequest]:
    """
    Fetch open PRs from the organization repositories a team can access.

    The team repository listing and the organization-wide PR search are
    independent, so both run at once on worker threads; the filter step
    waits for both. If either fails, the whole operation fails with that
    error and no partial result is returned.

    Args:
        fetcher: GitHub client
        org: Organization login (e.g., "acme")
        team_slug: Team slug (e.g., "core")
        days: Only PRs created in the last N days; None for no limit

    Returns:
        PullRequests in team repositories, newest first
    """
    team_repos, org_prs = await asyncio.gather(
        asyncio.to_thread(fetcher.get_team_repositories, org, team_slug),
        asyncio.to_thread(fetcher.search_org_pull_requests, org, days),
    )

    if not team_repos:
        logger.info(f"Team {org}/{team_slug} has no repositories, nothing to show")
        return []

    prs = filter_by_repositories(org_prs, team_repos)
    logger.info(
        f"{len(prs)} of {len(org_prs)} open PRs in {org} belong to team {team_slug}"
    )
    return prs
