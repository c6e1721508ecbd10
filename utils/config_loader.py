"""Configuration loader that reads from .env and validates with Pydantic."""

import os
import sys
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from pydantic import ValidationError

from models.config_models import Config, CredentialsConfig, DashboardConfig


def _env_days(name: str, default: str = "14") -> Optional[str]:
    """Read a day-window env var; "all" maps to None (no limit)."""
    value = os.getenv(name) or default
    if value.strip().lower() == "all":
        return None
    return value


def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    Reads from .env file in the project root and validates the GitHub token,
    dashboard defaults and optional Supabase credentials using Pydantic models.

    Returns:
        Config: Validated configuration object

    Raises:
        SystemExit: If configuration is invalid or missing required fields
    """
    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    try:
        config = Config(
            credentials=CredentialsConfig(
                github_token=os.getenv("GITHUB_TOKEN", ""),
                supabase_url=os.getenv("SUPABASE_URL") or None,
                supabase_key=os.getenv("SUPABASE_KEY") or None,
            ),
            dashboard=DashboardConfig(
                github_api_url=os.getenv("GITHUB_API_URL") or "https://api.github.com",
                org=os.getenv("GITHUB_ORG") or None,
                team=os.getenv("GITHUB_TEAM") or None,
                default_days=_env_days("DEFAULT_DAYS"),
                stale_time_seconds=os.getenv("STALE_TIME_SECONDS") or 120,
                refetch_interval_seconds=os.getenv("REFETCH_INTERVAL_SECONDS") or 300,
                preferences_path=os.getenv("PREFERENCES_PATH") or ".pr_dashboard_preferences.json",
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

        return config

    except ValidationError as e:
        print("❌ Configuration validation failed:", file=sys.stderr)
        print("\nPlease check your .env file. Missing or invalid fields:", file=sys.stderr)

        for error in e.errors():
            field_path = " → ".join(str(x) for x in error["loc"])
            message = error["msg"]
            print(f"  • {field_path}: {message}", file=sys.stderr)

        print("\nHint: Copy .env.example to .env and fill in your credentials.", file=sys.stderr)
        sys.exit(1)
