"""Configuration — pydantic-settings models with YAML overlay."""

from cardano_scanner.config.settings import AppConfig

__all__ = ["AppConfig"]
