"""Shared configuration helpers."""

from worktrack.core.config import (
    ConfigError,
    WorktrackConfig,
    load_config,
    locate_project_root,
    require_repo_root,
    save_config,
)

__all__ = [
    "ConfigError",
    "WorktrackConfig",
    "load_config",
    "locate_project_root",
    "require_repo_root",
    "save_config",
]
