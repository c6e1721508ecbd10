"""Data models for the pull request dashboard."""

from models.config_models import Config, CredentialsConfig, DashboardConfig
from models.data_models import Author, PullRequest, Repository, SearchPage

__all__ = [
    "Config",
    "CredentialsConfig",
    "DashboardConfig",
    "Author",
    "PullRequest",
    "Repository",
    "SearchPage",
]
