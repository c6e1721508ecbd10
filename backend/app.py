"""
FastAPI application for the PR dashboard.

The app owns the lifecycle of its collaborators: the GitHub client, the
query cache (and its refresh timer) and the preference store are built
here, stored on app.state and shared by the routes. The stored day window
is read once at startup and kept on app.state as well.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.routes import router
from cache.query_cache import QueryCache
from fetchers.github import GitHubFetcher
from models.config_models import Config
from storage.preferences import PreferenceStore, create_preference_store, load_days_filter
from utils.config_loader import load_config
from utils.logger import setup_logger

logger = setup_logger(__name__)


def create_app(
    config: Optional[Config] = None,
    fetcher: Optional[GitHubFetcher] = None,
    cache: Optional[QueryCache] = None,
    preferences: Optional[PreferenceStore] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Any collaborator not passed in is created from the configuration
    (loaded from .env when config is None).
    """
    if config is None:
        config = load_config()
        setup_logger(config.log_level)
    if fetcher is None:
        fetcher = GitHubFetcher(
            config.credentials.github_token,
            base_url=config.dashboard.github_api_url,
        )
    if cache is None:
        cache = QueryCache(
            stale_time=config.dashboard.stale_time_seconds,
            refetch_interval=config.dashboard.refetch_interval_seconds,
        )
    if preferences is None:
        preferences = create_preference_store(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cache.start()
        yield
        await cache.stop()

    app = FastAPI(
        title="PR Dashboard API",
        description="Open pull requests for a team, organization or user, with background refresh",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.fetcher = fetcher
    app.state.cache = cache
    app.state.preferences = preferences
    # Read once; update_days_preference keeps it in sync with the store
    app.state.days_filter = load_days_filter(preferences, default=config.dashboard.default_days)

    # Enable CORS for local development
    # This allows the frontend (running on port 5173) to call the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],  # Vite dev server
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    logger.info("FastAPI app initialized")
    return app
