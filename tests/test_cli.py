"""Tests for the command-line interface."""

import asyncio
import json
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from cache.query_cache import QueryCache, QueryResult, QueryStatus
from fetchers.errors import AuthorizationError, NetworkError
from fetchers.github import GitHubFetcher
from fetchers.queries import org_query, team_query
from main import format_pull_request_card, main, render_result, show_prs
from models.data_models import Author

NOW = datetime(2024, 11, 4, 10, 0, 0, tzinfo=timezone.utc)


class TestFormatPullRequestCard:
    def test_card(self, make_pr):
        card = format_pull_request_card(make_pr(7, "acme/widgets", "2024-11-01T10:00:00Z"), now=NOW)
        lines = card.splitlines()
        assert lines[0] == "PR 7 #7"
        assert lines[1] == "  user7 · 3 days ago · widgets"
        assert lines[2] == "  https://github.com/acme/widgets/pull/7"

    def test_draft_and_unknown_author(self, make_pr):
        pr = make_pr(1).model_copy(update={"draft": True, "user": Author.unknown()})
        card = format_pull_request_card(pr, now=NOW)
        assert "[draft]" in card
        assert "unknown ·" in card


class TestRenderResult:
    def test_error_without_data_fails(self):
        result = QueryResult(key=("org",), status=QueryStatus.ERROR, error=AuthorizationError("Bad credentials"))
        assert render_result(result, "org acme", 14) is False

    def test_error_with_data_still_renders(self, make_pr, capsys):
        result = QueryResult(
            key=("org",),
            status=QueryStatus.STALE,
            data=[make_pr(1)],
            error=NetworkError("connection reset"),
            updated_at=NOW,
        )
        assert render_result(result, "org acme", 14) is True
        assert "PR 1 #1" in capsys.readouterr().out

    def test_empty_list(self):
        result = QueryResult(key=("org",), status=QueryStatus.FRESH, data=[], updated_at=NOW)
        assert render_result(result, "org acme", None) is True


class TestShowPrs:
    def test_team_view(self, make_pr, capsys):
        fetcher = Mock(spec=GitHubFetcher)
        fetcher.get_team_repositories.return_value = ["acme/a"]
        fetcher.search_org_pull_requests.return_value = [make_pr(1, "acme/a"), make_pr(2, "acme/z")]

        ok = asyncio.run(show_prs("team", "acme/core", team_query(fetcher, "acme", "core", 14), 14, QueryCache()))

        out = capsys.readouterr().out
        assert ok is True
        assert "PR 1 #1" in out
        assert "PR 2 #2" not in out

    def test_failure(self):
        fetcher = Mock(spec=GitHubFetcher)
        fetcher.search_org_pull_requests.side_effect = NetworkError("down")

        ok = asyncio.run(show_prs("org", "acme", org_query(fetcher, "acme", 14), 14, QueryCache()))

        assert ok is False


class TestMain:
    def test_no_command_shows_help(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_days_command_stores_preference(self, test_env):
        with pytest.raises(SystemExit) as exc_info:
            main(["days", "30"])
        assert exc_info.value.code == 0

        with open(test_env["preferences_path"]) as f:
            assert json.load(f) == {"days_filter": "30"}

    def test_days_command_rejects_invalid(self, test_env):
        with pytest.raises(SystemExit) as exc_info:
            main(["days", "12"])
        assert exc_info.value.code == 1
