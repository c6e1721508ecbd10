"""Error types raised by the GitHub fetchers.

Every failure surfaced by the fetch layer is a subclass of GitHubAPIError so
callers (the query cache, the API routes, the CLI) can catch one type and
still tell the categories apart:

- AuthorizationError: missing/invalid token or insufficient scope (401, 403)
- NotFoundError / TeamNotFoundError: organization, team or user unknown (404)
- RateLimitError: quota exhausted (429, or 403 with no remaining requests)
- NetworkError: transport-level failure (DNS, connection reset, timeout)
- SearchValidationError: the search query could not be built or was rejected (422)
"""

from typing import Optional


class GitHubAPIError(Exception):
    """Base class for all GitHub fetch failures."""

    status_code: Optional[int] = None

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class AuthorizationError(GitHubAPIError):
    status_code = 401


class NotFoundError(GitHubAPIError):
    status_code = 404


class TeamNotFoundError(NotFoundError):
    """The organization or team slug does not exist (or is hidden from the token)."""


class RateLimitError(GitHubAPIError):
    status_code = 429

    def __init__(self, message: str, status_code: Optional[int] = None, reset_at: Optional[int] = None):
        super().__init__(message, status_code)
        self.reset_at = reset_at


class NetworkError(GitHubAPIError):
    status_code = None


class SearchValidationError(GitHubAPIError):
    status_code = 422
