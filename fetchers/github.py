"""GitHub API client for fetching open pull request data.

Two independent read-only fetches feed the dashboard:
- Team repositories: every repository a team can access (paginated list endpoint)
- Organization PRs: every open PR in an organization (paginated search endpoint)

The team view is built by intersecting the two (see fetchers.team).
"""

import logging
import re
from typing import Any, Optional
from urllib.parse import urlparse

import requests

from fetchers.errors import (
    AuthorizationError,
    GitHubAPIError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    SearchValidationError,
    TeamNotFoundError,
)
from models.data_models import Author, PullRequest, Repository, SearchPage
from utils.date_utils import DEFAULT_DAYS, DateWindow

logger = logging.getLogger(__name__)

PER_PAGE = 100

# The search API never returns more than 1000 results for a query, no matter
# how many pages are requested. Older matches beyond that are unavailable.
SEARCH_RESULT_LIMIT = 1000

# Org names, team slugs and logins; anything else cannot be expressed safely
# inside a search qualifier or a URL path segment.
_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_identifier(value: str, kind: str) -> str:
    """Reject identifiers the search syntax cannot represent.

    Raises:
        SearchValidationError: If value is empty or contains whitespace,
            quotes, colons or other characters outside [A-Za-z0-9._-]
    """
    if not value or not _IDENTIFIER_PATTERN.match(value):
        raise SearchValidationError(f"Invalid {kind}: {value!r}")
    return value


def build_search_query(qualifier: str, value: str, window: DateWindow) -> str:
    """Build the search filter expression for open PRs.

    Examples:
        build_search_query("org", "acme", DateWindow.unbounded())
            -> "is:pr is:open org:acme"
        build_search_query("org", "acme", DateWindow.from_days(14))
            -> "is:pr is:open org:acme created:>=2024-10-30"
    """
    validate_identifier(value, qualifier)
    parts = ["is:pr", "is:open", f"{qualifier}:{value}"]
    created = window.search_qualifier()
    if created:
        parts.append(created)
    return " ".join(parts)


def parse_repository_url(repository_url: str) -> Repository:
    """
    Decompose an API repository URL into a Repository.

    The last two path segments are owner and name; the web URL drops the
    "api." host prefix and the "/repos" (or "/api/v3/repos") path prefix.

    Examples:
        "https://api.github.com/repos/facebook/react"
            -> name="react", full_name="facebook/react",
               html_url="https://github.com/facebook/react"
    """
    parsed = urlparse(repository_url)
    segments = [s for s in parsed.path.split("/") if s]
    name = segments[-1] if segments else ""
    full_name = "/".join(segments[-2:])

    host = parsed.netloc
    if host.startswith("api."):
        host = host[len("api."):]
    if "repos" in segments:
        web_segments = segments[segments.index("repos") + 1:]
    else:
        web_segments = segments[-2:]
    html_url = f"{parsed.scheme}://{host}/" + "/".join(web_segments)

    return Repository(name=name, full_name=full_name, html_url=html_url)


def normalize_pull_request(item: dict[str, Any]) -> PullRequest:
    """Convert a raw search API item into a PullRequest.

    A missing user (deleted account) becomes Author.unknown() so nothing
    downstream has to deal with None.
    """
    user = item.get("user")
    if user:
        author = Author(
            login=user.get("login") or "unknown",
            avatar_url=user.get("avatar_url") or "",
            html_url=user.get("html_url") or "",
        )
    else:
        author = Author.unknown()

    return PullRequest(
        id=item["id"],
        number=item["number"],
        title=item["title"],
        html_url=item["html_url"],
        created_at=item["created_at"],
        updated_at=item["updated_at"],
        user=author,
        repository=parse_repository_url(item.get("repository_url") or ""),
        draft=bool(item.get("draft") or False),
        state=item.get("state") or "open",
    )


class GitHubFetcher:
    """Fetch open pull request data from the GitHub REST API.

    Constructed once by the entry point (CLI or API app) and passed to
    whatever needs it; holds no per-request state, so the blocking calls can
    run on worker threads concurrently.
    """

    def __init__(self, token: str, base_url: str = "https://api.github.com", timeout: float = 30.0):
        """Initialize GitHub API client.

        Args:
            token: GitHub personal access token for authentication
            base_url: REST API root (GitHub Enterprise uses https://host/api/v3)
            timeout: Per-request timeout in seconds
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28"
        }

    def _make_github_request(
        self,
        url: str,
        params: Optional[dict] = None,
        not_found_error: type[NotFoundError] = NotFoundError,
    ) -> requests.Response:
        """Make a GitHub API request and translate failures into GitHubAPIError.

        There is no retry here: a rate-limited request fails with
        RateLimitError and the next scheduled refresh tries again.

        Args:
            url: GitHub API URL to request
            params: Optional query parameters
            not_found_error: Error class to raise on 404

        Returns:
            Successful response object from requests

        Raises:
            NetworkError: On transport failures (connection, DNS, timeout)
            AuthorizationError: On 401, or any other 403
            RateLimitError: On 429, or 403 with X-RateLimit-Remaining: 0,
                a Retry-After header or a rate limit message
            NotFoundError: On 404 (not_found_error subclass)
            SearchValidationError: On 422
            GitHubAPIError: On any other non-2xx status
        """
        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Network error requesting {url}: {e}")
            raise NetworkError(f"Network error requesting {url}: {e}") from e

        # Log rate limit info
        remaining = response.headers.get("X-RateLimit-Remaining")
        limit = response.headers.get("X-RateLimit-Limit")
        if remaining and limit:
            logger.debug(f"Rate limit: {remaining}/{limit} remaining")

        status = response.status_code
        if 200 <= status < 300:
            return response

        detail = self._error_detail(response)
        logger.error(f"GitHub API error {status} for {url}: {detail}")

        # Secondary rate limits come back as 403 with Retry-After and quota left
        secondary_limit = "Retry-After" in response.headers or "rate limit" in detail.lower()
        if status == 429 or (status == 403 and (remaining == "0" or secondary_limit)):
            reset = response.headers.get("X-RateLimit-Reset")
            raise RateLimitError(
                f"GitHub rate limit exceeded: {detail}",
                status_code=status,
                reset_at=int(reset) if reset and reset.isdigit() else None,
            )
        if status in (401, 403):
            raise AuthorizationError(f"Not authorized: {detail}", status_code=status)
        if status == 404:
            raise not_found_error(f"Not found: {detail}", status_code=status)
        if status == 422:
            raise SearchValidationError(f"Invalid request: {detail}", status_code=status)
        raise GitHubAPIError(f"GitHub API error {status}: {detail}", status_code=status)

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return (response.text or "")[:200]

    def get_team_repositories(self, org: str, team_slug: str) -> list[str]:
        """Fetch the full names of every repository a team can access.

        Follows pagination until a page comes back with fewer than 100
        repositories; teams can own well over one page.

        Args:
            org: Organization login (e.g., "acme")
            team_slug: Team slug (e.g., "core")

        Returns:
            List of "owner/name" strings in API order

        Raises:
            TeamNotFoundError: If the organization or team does not exist
            GitHubAPIError: On any other failure (no partial result)
        """
        validate_identifier(org, "org")
        validate_identifier(team_slug, "team")

        url = f"{self.base_url}/orgs/{org}/teams/{team_slug}/repos"
        repos: list[str] = []
        page = 1

        while True:
            response = self._make_github_request(
                url,
                params={"per_page": PER_PAGE, "page": page},
                not_found_error=TeamNotFoundError,
            )
            batch = response.json()
            repos.extend(repo["full_name"] for repo in batch)

            logger.debug(f"Team {org}/{team_slug} page {page}: {len(batch)} repos (total: {len(repos)})")

            if len(batch) < PER_PAGE:
                break
            page += 1

        logger.info(f"Team {org}/{team_slug} has access to {len(repos)} repositories")
        return repos

    def search_page(self, query: str, page: int = 1, per_page: int = PER_PAGE) -> SearchPage:
        """Fetch one page of the issue/PR search, newest first."""
        response = self._make_github_request(
            f"{self.base_url}/search/issues",
            params={
                "q": query,
                "sort": "created",
                "order": "desc",
                "per_page": per_page,
                "page": page,
            },
        )
        return SearchPage(**response.json())

    def search_all(self, query: str) -> list[dict[str, Any]]:
        """Fetch every result of a search, following pages to exhaustion.

        Stops on a short page, once total_count items have been collected,
        or at the 1000-result search ceiling.
        """
        items: list[dict[str, Any]] = []
        page = 1

        while True:
            result = self.search_page(query, page=page)
            items.extend(result.items)

            if result.incomplete_results:
                logger.warning(f"Search timed out upstream, results may be incomplete: {query}")

            logger.debug(
                f"Search page {page}: {len(result.items)} items "
                f"(total: {len(items)}/{result.total_count})"
            )

            if len(result.items) < PER_PAGE:
                break
            if len(items) >= min(result.total_count, SEARCH_RESULT_LIMIT):
                if result.total_count > SEARCH_RESULT_LIMIT:
                    logger.warning(
                        f"Search matched {result.total_count} items but only the newest "
                        f"{SEARCH_RESULT_LIMIT} are available: {query}"
                    )
                break
            page += 1

        return items

    def search_org_pull_requests(self, org: str, days: Optional[int] = DEFAULT_DAYS) -> list[PullRequest]:
        """Fetch every open PR in an organization, newest first.

        Args:
            org: Organization login (e.g., "acme")
            days: Only PRs created in the last N days; None for no limit

        Returns:
            List of PullRequest sorted by creation time, descending
        """
        query = build_search_query("org", org, DateWindow.from_days(days))
        logger.info(f"Searching open PRs: {query}")

        prs = [normalize_pull_request(item) for item in self.search_all(query)]

        logger.info(f"Found {len(prs)} open PRs in {org}")
        return prs

    def search_user_pull_requests(self, username: str, days: Optional[int] = DEFAULT_DAYS) -> list[PullRequest]:
        """Fetch open PRs in repositories owned by a user, newest first.

        Only the first page (100 PRs) is requested; a personal account rarely
        has more open PRs than that.

        Args:
            username: GitHub login (e.g., "octocat")
            days: Only PRs created in the last N days; None for no limit
        """
        query = build_search_query("user", username, DateWindow.from_days(days))
        logger.info(f"Searching open PRs: {query}")

        result = self.search_page(query)
        prs = [normalize_pull_request(item) for item in result.items]

        logger.info(f"Found {len(prs)} open PRs in {username}'s repositories")
        return prs
