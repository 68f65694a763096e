"""Persistent user configuration."""

from forgeline.store.config_store import ConfigStore, default_config_path, normalize_config

__all__ = ["ConfigStore", "default_config_path", "normalize_config"]
