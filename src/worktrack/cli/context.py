"""Resolve the project service for CLI commands."""

from __future__ import annotations

from worktrack.core.config import ConfigError, load_config, require_repo_root
from worktrack.lifecycle.service import WorktrackService


def load_service() -> WorktrackService:
    repo_root = require_repo_root()
    config = load_config(repo_root)
    if config.store_backend != "json":
        raise ConfigError(
            f"Store backend '{config.store_backend}' does not persist between commands; "
            "set store.backend to 'json' in .worktrack/config.yaml."
        )
    return WorktrackService.from_config(repo_root, config)
