"""Shared pytest fixtures and configuration."""

from unittest.mock import Mock

import pytest

from models.data_models import Author, PullRequest, Repository


@pytest.fixture
def test_env(monkeypatch, tmp_path):
    """
    Set valid test environment variables.

    This fixture sets up valid test environment variables so config
    can be loaded during tests without requiring real credentials.
    """
    prefs_path = str(tmp_path / "prefs.json")
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test_token_1234567890")
    monkeypatch.setenv("GITHUB_ORG", "acme")
    monkeypatch.setenv("GITHUB_TEAM", "core")
    monkeypatch.setenv("DEFAULT_DAYS", "14")
    monkeypatch.setenv("STALE_TIME_SECONDS", "60")
    monkeypatch.setenv("REFETCH_INTERVAL_SECONDS", "300")
    monkeypatch.setenv("PREFERENCES_PATH", prefs_path)
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_KEY", "")
    monkeypatch.setenv("GITHUB_API_URL", "")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    return {
        "github_token": "ghp_test_token_1234567890",
        "org": "acme",
        "team": "core",
        "preferences_path": prefs_path,
        "log_level": "DEBUG",
    }


@pytest.fixture
def invalid_env(monkeypatch):
    """
    Set up invalid/missing environment variables for testing validation.
    """
    monkeypatch.setenv("GITHUB_TOKEN", "")
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_KEY", "")


@pytest.fixture
def make_response():
    """Factory for mocked requests.Response objects."""
    def _make(status_code=200, json_data=None, headers=None, text=""):
        response = Mock()
        response.status_code = status_code
        response.headers = headers if headers is not None else {
            "X-RateLimit-Remaining": "4999",
            "X-RateLimit-Limit": "5000",
        }
        response.json.return_value = json_data
        response.text = text
        return response
    return _make


@pytest.fixture
def make_pr_item():
    """Factory for raw search API items."""
    def _make(id, repo="acme/a", number=None, created_at="2024-11-01T10:00:00Z", user=True, draft=False):
        item = {
            "id": id,
            "number": number if number is not None else id * 10,
            "title": f"PR {id}",
            "html_url": f"https://github.com/{repo}/pull/{number or id * 10}",
            "created_at": created_at,
            "updated_at": created_at,
            "repository_url": f"https://api.github.com/repos/{repo}",
            "draft": draft,
            "state": "open",
        }
        if user:
            item["user"] = {
                "login": f"user{id}",
                "avatar_url": f"https://avatars.githubusercontent.com/u/{id}",
                "html_url": f"https://github.com/user{id}",
            }
        else:
            item["user"] = None
        return item
    return _make


@pytest.fixture
def make_pr():
    """Factory for normalized PullRequest models."""
    def _make(id, repo="acme/a", created_at="2024-11-01T10:00:00Z"):
        return PullRequest(
            id=id,
            number=id,
            title=f"PR {id}",
            html_url=f"https://github.com/{repo}/pull/{id}",
            created_at=created_at,
            updated_at=created_at,
            user=Author(login=f"user{id}"),
            repository=Repository(
                name=repo.split("/")[-1],
                full_name=repo,
                html_url=f"https://github.com/{repo}",
            ),
        )
    return _make
