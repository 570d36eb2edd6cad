"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``SCANNER_``, nested via ``__``)
2. YAML config file (``SCANNER_CONFIG_PATH`` env var)
3. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cardano_scanner.errors.definitions import ConfigError

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class DatabaseEngine(enum.StrEnum):
    """Supported database engines."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class CardanoNetwork(enum.StrEnum):
    """Cardano networks served by Blockfrost."""

    MAINNET = "mainnet"
    PREPROD = "preprod"
    PREVIEW = "preview"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="SCANNER_SERVER__",
        case_sensitive=False,
    )

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the admin API from a browser",
    )


class DatabaseConfig(BaseSettings):
    """Database settings."""

    model_config = SettingsConfigDict(
        env_prefix="SCANNER_DB__",
        case_sensitive=False,
    )

    engine: DatabaseEngine = Field(
        default=DatabaseEngine.SQLITE,
        description="Database backend: sqlite or postgresql",
    )
    dsn: str = Field(
        default="sqlite+aiosqlite:///./cardano_scanner.db",
        description="Async database connection string",
    )
    max_idle_connections: int = 5
    max_open_connections: int = 10
    debug_sql: bool = False


class BlockfrostConfig(BaseSettings):
    """Blockfrost upstream API settings."""

    model_config = SettingsConfigDict(
        env_prefix="SCANNER_BLOCKFROST__",
        case_sensitive=False,
    )

    project_id: str = ""
    network: CardanoNetwork = CardanoNetwork.MAINNET
    base_url: str = Field(
        default="",
        description="Override the network-derived API URL (e.g. a self-hosted instance)",
    )
    timeout: float = 30.0

    @property
    def api_url(self) -> str:
        """Resolve the API base URL for the configured network."""
        if self.base_url:
            return self.base_url.rstrip("/")
        return f"https://cardano-{self.network.value}.blockfrost.io/api/v0"


class MonitorConfig(BaseSettings):
    """Change detector settings."""

    model_config = SettingsConfigDict(
        env_prefix="SCANNER_MONITOR__",
        case_sensitive=False,
    )

    enabled: bool = True
    poll_interval: float = 30.0  # seconds
    transaction_window: int = Field(default=20, ge=1, le=100)
    dedup_cache_size: int = Field(default=1000, ge=1)
    scan_concurrency: int = Field(default=4, ge=1)


class WebhookConfig(BaseSettings):
    """Webhook delivery engine and sweeper settings."""

    model_config = SettingsConfigDict(
        env_prefix="SCANNER_WEBHOOK__",
        case_sensitive=False,
    )

    max_retries: int = Field(default=5, ge=1)
    retry_delay_ms: int = Field(default=30_000, ge=0)
    timeout_seconds: float = 10.0
    sweep_interval: float = 5.0  # seconds
    sweep_batch_size: int = Field(default=100, ge=1)
    stale_after_seconds: float = 300.0
    shutdown_timeout: float = 15.0
    user_agent: str = "Cardano-Scanner-Webhook/1.0"
    max_response_body: int = 4096


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="SCANNER_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = True


class TaskConfig(BaseSettings):
    """Background task scheduler settings."""

    model_config = SettingsConfigDict(
        env_prefix="SCANNER_TASK__",
        case_sensitive=False,
    )

    enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``SCANNER_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCANNER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    log_level: str = "info"
    config_path: str = ""

    server: ServerConfig = Field(default_factory=ServerConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    blockfrost: BlockfrostConfig = Field(default_factory=BlockfrostConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    task: TaskConfig = Field(default_factory=TaskConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))

    def validate_for_startup(self) -> None:
        """Check settings that are only required once the engine starts.

        Raises:
            ConfigError: If monitoring is enabled without a Blockfrost project id.
        """
        if self.monitor.enabled and not self.blockfrost.project_id:
            msg = "blockfrost.project_id is required when monitoring is enabled"
            raise ConfigError(msg)
