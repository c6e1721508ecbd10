"""
User preference storage.

The dashboard remembers one preference across sessions: the selected day
window (7, 14, 30 or "all"). It is read once at startup with a default and
written on every change.

Two backends share the same get/set interface:
- FilePreferenceStore: a small JSON file (default, no setup needed)
- SupabasePreferenceStore: a `user_preferences` table, for dashboards that
  run on more than one machine. Expected schema:

      CREATE TABLE IF NOT EXISTS user_preferences (
          key TEXT PRIMARY KEY,
          value TEXT NOT NULL,
          updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
      );
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from supabase import Client, create_client

from models.config_models import Config
from utils.date_utils import DEFAULT_DAYS, format_days, parse_days
from utils.logger import setup_logger

logger = setup_logger(__name__)

DAYS_FILTER_KEY = "days_filter"


class PreferenceStore:
    """String key/value store for user preferences."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class FilePreferenceStore(PreferenceStore):
    """Preferences kept in a JSON object on disk."""

    def __init__(self, path: str):
        self.path = Path(path).expanduser()

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed preferences file {self.path}")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True))
        logger.debug(f"Saved preference {key}={value} to {self.path}")


class SupabasePreferenceStore(PreferenceStore):
    """Preferences kept in the Supabase `user_preferences` table."""

    def __init__(self, supabase_url: str, supabase_key: str, client: Optional[Client] = None):
        """
        Initialize Supabase preference store.

        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase API key (anon/public key)
            client: Existing Supabase client (optional, created if not provided)
        """
        self.client: Client = client or create_client(supabase_url, supabase_key)
        self.table_name = "user_preferences"
        logger.info(f"Initialized SupabasePreferenceStore for {supabase_url}")

    def get(self, key: str) -> Optional[str]:
        try:
            result = (
                self.client.table(self.table_name)
                .select("value")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to read preference {key}: {e}")
            raise

        if not result.data:
            return None
        return result.data[0]["value"]

    def set(self, key: str, value: str) -> None:
        record = {
            "key": key,
            "value": value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.client.table(self.table_name).upsert(record, on_conflict="key").execute()
        except Exception as e:
            logger.error(f"Failed to save preference {key}: {e}")
            raise
        logger.debug(f"Saved preference {key}={value} to Supabase")


def create_preference_store(config: Config) -> PreferenceStore:
    """Pick the Supabase store when credentials are configured, else the local file."""
    creds = config.credentials
    if creds.use_supabase:
        return SupabasePreferenceStore(creds.supabase_url, creds.supabase_key)
    return FilePreferenceStore(config.dashboard.preferences_path)


def load_days_filter(store: PreferenceStore, default: Optional[int] = DEFAULT_DAYS) -> Optional[int]:
    """
    Read the stored day window.

    Returns the default when nothing is stored or the stored value is not
    one of 7, 14, 30, "all". None means no limit.
    """
    raw = store.get(DAYS_FILTER_KEY)
    if raw is None:
        return default
    try:
        return parse_days(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid stored day window {raw!r}, using {format_days(default)}")
        return default


def save_days_filter(store: PreferenceStore, days: Optional[int]) -> None:
    """Store the day window (None is stored as "all")."""
    store.set(DAYS_FILTER_KEY, format_days(days))
