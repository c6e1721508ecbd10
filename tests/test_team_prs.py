"""Tests for the team pull request filter."""

import asyncio
import threading
from unittest.mock import Mock

import pytest

from fetchers.errors import NetworkError, TeamNotFoundError
from fetchers.github import GitHubFetcher
from fetchers.team import filter_by_repositories, search_team_pull_requests


@pytest.fixture
def fetcher():
    return Mock(spec=GitHubFetcher)


class TestFilterByRepositories:
    """Tests for filter_by_repositories."""

    def test_keeps_members_in_order(self, make_pr):
        prs = [make_pr(1, "acme/a"), make_pr(2, "acme/c"), make_pr(3, "acme/b"), make_pr(4, "acme/a")]
        result = filter_by_repositories(prs, ["acme/b", "acme/a"])
        assert [pr.id for pr in result] == [1, 3, 4]

    def test_empty_repository_list(self, make_pr):
        assert filter_by_repositories([make_pr(1)], []) == []


class TestSearchTeamPullRequests:
    """Tests for search_team_pull_requests."""

    def test_acme_core_scenario(self, fetcher, make_pr):
        """Team core owns acme/a and acme/b; PRs in acme/c are dropped."""
        org_prs = [
            make_pr(5, "acme/b", "2024-11-05T00:00:00Z"),
            make_pr(4, "acme/c", "2024-11-04T00:00:00Z"),
            make_pr(3, "acme/a", "2024-11-03T00:00:00Z"),
            make_pr(2, "acme/c", "2024-11-02T00:00:00Z"),
            make_pr(1, "acme/b", "2024-11-01T00:00:00Z"),
        ]
        fetcher.get_team_repositories.return_value = ["acme/a", "acme/b"]
        fetcher.search_org_pull_requests.return_value = org_prs

        result = asyncio.run(search_team_pull_requests(fetcher, "acme", "core", 14))

        fetcher.get_team_repositories.assert_called_once_with("acme", "core")
        fetcher.search_org_pull_requests.assert_called_once_with("acme", 14)
        assert [pr.id for pr in result] == [5, 3, 1]
        assert all(pr in org_prs for pr in result)
        assert all(pr.repository.full_name in {"acme/a", "acme/b"} for pr in result)

    def test_empty_team_returns_empty_list(self, fetcher, make_pr):
        fetcher.get_team_repositories.return_value = []
        fetcher.search_org_pull_requests.return_value = [make_pr(1, "acme/a")]

        assert asyncio.run(search_team_pull_requests(fetcher, "acme", "core", 14)) == []

    def test_no_limit_passed_through(self, fetcher):
        fetcher.get_team_repositories.return_value = ["acme/a"]
        fetcher.search_org_pull_requests.return_value = []

        asyncio.run(search_team_pull_requests(fetcher, "acme", "core", None))

        fetcher.search_org_pull_requests.assert_called_once_with("acme", None)

    def test_team_failure_rejects_even_if_org_succeeds(self, fetcher, make_pr):
        fetcher.get_team_repositories.side_effect = TeamNotFoundError("Not found: team")
        fetcher.search_org_pull_requests.return_value = [make_pr(1)]

        with pytest.raises(TeamNotFoundError):
            asyncio.run(search_team_pull_requests(fetcher, "acme", "core", 14))

    def test_org_failure_rejects(self, fetcher):
        fetcher.get_team_repositories.return_value = ["acme/a"]
        fetcher.search_org_pull_requests.side_effect = NetworkError("connection reset")

        with pytest.raises(NetworkError):
            asyncio.run(search_team_pull_requests(fetcher, "acme", "core", 14))

    def test_fetches_run_concurrently(self, fetcher):
        """Each fetch blocks until the other has started; sequential calls would deadlock."""
        team_started = threading.Event()
        org_started = threading.Event()

        def get_team_repositories(org, team):
            team_started.set()
            assert org_started.wait(timeout=5)
            return ["acme/a"]

        def search_org_pull_requests(org, days):
            org_started.set()
            assert team_started.wait(timeout=5)
            return []

        fetcher.get_team_repositories.side_effect = get_team_repositories
        fetcher.search_org_pull_requests.side_effect = search_org_pull_requests

        assert asyncio.run(search_team_pull_requests(fetcher, "acme", "core", 14)) == []
