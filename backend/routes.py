"""
API routes for the PR dashboard.

Every PR endpoint reads through the shared QueryCache, so repeated requests
within the stale window never hit GitHub, and stale data is served while a
refresh runs in the background.
"""

from datetime import datetime
from typing import Optional, List
from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from cache.query_cache import QueryCache, QueryFn, QueryKey, QueryResult
from fetchers.errors import GitHubAPIError, NetworkError
from fetchers.queries import org_query, team_query, user_query
from models.data_models import PullRequest
from storage.preferences import save_days_filter
from utils.date_utils import format_days, parse_days
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/api", tags=["prs"])


class PullRequestListResponse(BaseModel):
    """Response model for PR list endpoints."""
    pull_requests: Optional[List[PullRequest]]  # None while the first load runs
    total: int
    days: Optional[int]
    status: str
    is_loading: bool
    is_refetching: bool
    is_stale: bool
    error: Optional[str] = None
    error_type: Optional[str] = None
    updated_at: Optional[datetime] = None


class DaysPreference(BaseModel):
    """Stored day window; days=None means no limit."""
    days: Optional[int]
    label: str


class DaysPreferenceRequest(BaseModel):
    """Request body for updating the day window ("7", "14", "30" or "all")."""
    days: str


def _error_status(error: BaseException) -> int:
    """HTTP status for a failed first load."""
    if isinstance(error, NetworkError):
        return 502
    if isinstance(error, GitHubAPIError):
        return error.status_code or 502
    return 500


def _build_response(result: QueryResult, days: Optional[int]) -> PullRequestListResponse:
    """
    Convert a cache snapshot into the API response.

    A failure with no data to fall back on is an HTTP error; a failure on
    refresh is reported alongside the previous data with status 200.
    """
    if result.error is not None and not result.has_data and not result.is_loading:
        raise HTTPException(
            status_code=_error_status(result.error),
            detail={"error": str(result.error), "error_type": type(result.error).__name__},
        )

    prs = result.data if result.has_data else None
    return PullRequestListResponse(
        pull_requests=prs,
        total=len(prs) if prs is not None else 0,
        days=days,
        status=result.status.value,
        is_loading=result.is_loading,
        is_refetching=result.is_refetching,
        is_stale=result.is_stale,
        error=str(result.error) if result.error is not None else None,
        error_type=type(result.error).__name__ if result.error is not None else None,
        updated_at=result.updated_at,
    )


def _resolve_days(request: Request, days: Optional[str]) -> Optional[int]:
    """Parse the days query param, falling back to the stored preference."""
    if days is None:
        return request.app.state.days_filter
    try:
        return parse_days(days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _resolve_org(request: Request, org: Optional[str]) -> str:
    org = org or request.app.state.config.dashboard.org
    if not org:
        raise HTTPException(status_code=400, detail="Organization is required (set GITHUB_ORG or pass ?org=)")
    return org


def _resolve_team(request: Request, team: Optional[str]) -> str:
    team = team or request.app.state.config.dashboard.team
    if not team:
        raise HTTPException(status_code=400, detail="Team is required (set GITHUB_TEAM or pass ?team=)")
    return team


async def _read(request: Request, query: tuple[QueryKey, QueryFn], wait: bool) -> QueryResult:
    cache: QueryCache = request.app.state.cache
    key, fn = query
    return await cache.read(key, fn, wait=wait)


DAYS_DESCRIPTION = "Day window: 7, 14, 30 or 'all' (default: stored preference)"
WAIT_DESCRIPTION = "Wait for the first load instead of returning a loading state"


@router.get("/prs/team", response_model=PullRequestListResponse)
async def get_team_prs(
    request: Request,
    org: Optional[str] = Query(None, description="Organization (default: GITHUB_ORG)"),
    team: Optional[str] = Query(None, description="Team slug (default: GITHUB_TEAM)"),
    days: Optional[str] = Query(None, description=DAYS_DESCRIPTION),
    wait: bool = Query(True, description=WAIT_DESCRIPTION),
):
    """
    Open PRs in the repositories a team can access, newest first.
    """
    org = _resolve_org(request, org)
    team = _resolve_team(request, team)
    window = _resolve_days(request, days)
    query = team_query(request.app.state.fetcher, org, team, window)
    return _build_response(await _read(request, query, wait), window)


@router.get("/prs/org", response_model=PullRequestListResponse)
async def get_org_prs(
    request: Request,
    org: Optional[str] = Query(None, description="Organization (default: GITHUB_ORG)"),
    days: Optional[str] = Query(None, description=DAYS_DESCRIPTION),
    wait: bool = Query(True, description=WAIT_DESCRIPTION),
):
    """
    Open PRs across every repository in an organization, newest first.
    """
    org = _resolve_org(request, org)
    window = _resolve_days(request, days)
    query = org_query(request.app.state.fetcher, org, window)
    return _build_response(await _read(request, query, wait), window)


@router.get("/prs/user/{username}", response_model=PullRequestListResponse)
async def get_user_prs(
    request: Request,
    username: str,
    days: Optional[str] = Query(None, description=DAYS_DESCRIPTION),
    wait: bool = Query(True, description=WAIT_DESCRIPTION),
):
    """
    Open PRs in repositories owned by a user, newest first.
    """
    window = _resolve_days(request, days)
    query = user_query(request.app.state.fetcher, username, window)
    return _build_response(await _read(request, query, wait), window)


@router.post("/prs/refresh", response_model=PullRequestListResponse)
async def refresh_prs(
    request: Request,
    view: str = Query("team", pattern="^(team|org|user)$", description="Which view to refresh"),
    org: Optional[str] = Query(None),
    team: Optional[str] = Query(None),
    username: Optional[str] = Query(None),
    days: Optional[str] = Query(None, description=DAYS_DESCRIPTION),
):
    """
    Manually refetch one view, bypassing the stale window.

    Waits for the refetch and returns the new result (or the previous data
    with the refresh error attached).
    """
    fetcher = request.app.state.fetcher
    cache: QueryCache = request.app.state.cache
    window = _resolve_days(request, days)

    if view == "team":
        query = team_query(fetcher, _resolve_org(request, org), _resolve_team(request, team), window)
    elif view == "org":
        query = org_query(fetcher, _resolve_org(request, org), window)
    else:
        if not username:
            raise HTTPException(status_code=400, detail="username is required for view=user")
        query = user_query(fetcher, username, window)

    key, fn = query
    logger.info(f"Manual refresh requested for {key}")
    return _build_response(await cache.refetch(key, fn), window)


@router.get("/preferences/days", response_model=DaysPreference)
def get_days_preference(request: Request):
    """Stored day window (or the configured default)."""
    days = request.app.state.days_filter
    return DaysPreference(days=days, label=format_days(days))


@router.put("/preferences/days", response_model=DaysPreference)
def update_days_preference(request: Request, body: DaysPreferenceRequest):
    """Store a new day window."""
    try:
        days = parse_days(body.days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    save_days_filter(request.app.state.preferences, days)
    request.app.state.days_filter = days
    logger.info(f"Day window preference set to {format_days(days)}")
    return DaysPreference(days=days, label=format_days(days))


@router.get("/health")
def health(request: Request):
    """Liveness check with the number of cached queries."""
    return {"status": "ok", "cached_queries": len(request.app.state.cache)}
