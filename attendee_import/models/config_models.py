from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the attendee import tool.

These are the typed view of config/import.yml produced by
attendee_import.config.loader.load_config.
"""

DEFAULT_BATCH_SIZE = 200
DEFAULT_SAMPLE_ROW_LIMIT = 100
DEFAULT_PLACEHOLDER_DOMAIN = "import.local"


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ClassifierConfig:
    """Column classification service settings.

    mode="remote" posts headers + sample rows to ``endpoint``;
    mode="headers" classifies locally by header keywords (no network).
    """
    mode: str = "remote"
    endpoint: str | None = None
    api_key_env: str = "CLASSIFIER_API_KEY"
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    event_id: str | None = None  # overridable by --event-id / IMPORT_EVENT_ID
    batch_size: int = DEFAULT_BATCH_SIZE
    sample_row_limit: int = DEFAULT_SAMPLE_ROW_LIMIT
    placeholder_domain: str = DEFAULT_PLACEHOLDER_DOMAIN
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
