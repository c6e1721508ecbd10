"""Data models for pull requests shown on the dashboard."""

from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field


class Author(BaseModel):
    """Author of a pull request.

    Deleted accounts come back from the API with no user at all; those are
    represented by the `unknown()` sentinel instead of None.
    """
    model_config = ConfigDict(frozen=True)

    login: str
    avatar_url: str = ""
    html_url: str = ""

    @classmethod
    def unknown(cls) -> "Author":
        return cls(login="unknown", avatar_url="", html_url="")


class Repository(BaseModel):
    """Repository a pull request belongs to."""
    model_config = ConfigDict(frozen=True)

    name: str  # e.g., "react"
    full_name: str  # e.g., "facebook/react" (join key for team membership)
    html_url: str


class PullRequest(BaseModel):
    """Open pull request as displayed on a dashboard card.

    Built fresh from the search API item on every fetch and never mutated.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    number: int
    title: str
    html_url: str
    created_at: str  # ISO 8601, as returned by the API
    updated_at: str
    user: Author
    repository: Repository
    draft: bool = False
    state: Literal["open", "closed"] = "open"


class SearchPage(BaseModel):
    """One page of results from the issue/PR search endpoint."""

    total_count: int = 0
    incomplete_results: bool = False
    items: list[dict[str, Any]] = Field(default_factory=list)
