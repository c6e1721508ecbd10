"""Configuration models for validation using Pydantic."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class CredentialsConfig(BaseModel):
    """API credentials loaded from environment variables."""

    # GitHub (required)
    github_token: str = Field(..., min_length=1, description="GitHub personal access token (needs read:org for team repos)")

    # Supabase (optional, only used to store user preferences)
    supabase_url: Optional[str] = Field(None, description="Supabase project URL")
    supabase_key: Optional[str] = Field(None, description="Supabase API key")

    @field_validator("github_token")
    @classmethod
    def validate_github_token(cls, v: str) -> str:
        """Validate GitHub token is set."""
        if not v or v == "ghp_your_token_here":
            raise ValueError("GitHub token must be set in .env file")
        return v

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate Supabase URL format when provided."""
        if not v:
            return None
        if v == "https://your-project.supabase.co":
            raise ValueError("Supabase URL must be set in .env file")
        if not v.startswith("https://"):
            raise ValueError("Supabase URL must start with https://")
        return v

    @model_validator(mode='after')
    def validate_supabase_pair(self):
        """Supabase URL and key must be set together."""
        if bool(self.supabase_url) != bool(self.supabase_key):
            raise ValueError(
                "SUPABASE_URL and SUPABASE_KEY must both be set to store preferences in Supabase, "
                "or both left empty to use the local preferences file."
            )
        return self

    @property
    def use_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


class DashboardConfig(BaseModel):
    """What the dashboard shows and how often it refreshes."""

    github_api_url: str = Field(default="https://api.github.com", description="GitHub REST API base URL")
    org: Optional[str] = Field(None, description="Default organization")
    team: Optional[str] = Field(None, description="Default team slug")
    default_days: Optional[int] = Field(default=14, description="Day window used when no preference is stored (None = no limit)")
    stale_time_seconds: float = Field(default=120, gt=0, description="Results are fresh for this long")
    refetch_interval_seconds: float = Field(default=300, gt=0, description="Forced background refresh interval")
    preferences_path: str = Field(default=".pr_dashboard_preferences.json", description="Local preferences file")

    @field_validator("github_api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate API URL format."""
        if not v.startswith(("https://", "http://")):
            raise ValueError("GitHub API URL must start with https:// or http://")
        return v.rstrip("/")

    @field_validator("default_days")
    @classmethod
    def validate_default_days(cls, v: Optional[int]) -> Optional[int]:
        """Validate default window is one of the selectable choices."""
        if v is not None and v not in (7, 14, 30):
            raise ValueError("Default days must be one of: 7, 14, 30, all")
        return v

    @model_validator(mode='after')
    def validate_intervals(self):
        """Stale time should not exceed the forced refresh interval."""
        if self.stale_time_seconds > self.refetch_interval_seconds:
            raise ValueError("STALE_TIME_SECONDS must not exceed REFETCH_INTERVAL_SECONDS")
        return self


class Config(BaseModel):
    """Application configuration."""

    credentials: CredentialsConfig
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper
