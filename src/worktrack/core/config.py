"""Project-scoped configuration in .worktrack/config.yaml."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ruamel.yaml import YAML

CONFIG_DIRNAME = ".worktrack"
DATA_DIR_ENV_VAR = "WORKTRACK_DATA_DIR"
STORE_BACKENDS: tuple[str, ...] = ("json", "memory")


class ConfigError(RuntimeError):
    """Raised when configuration is invalid."""


@dataclass(slots=True)
class WorktrackConfig:
    """Settings stored inside .worktrack/config.yaml."""

    store_backend: str = "json"
    store_path: str = f"{CONFIG_DIRNAME}/data"
    journal_enabled: bool = True

    def to_dict(self) -> dict[str, object]:
        return {
            "store": {
                "backend": self.store_backend,
                "path": self.store_path,
            },
            "journal": {
                "enabled": self.journal_enabled,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, object] | None) -> "WorktrackConfig":
        if not isinstance(data, dict):
            return cls()

        config = cls()
        store = data.get("store")
        if isinstance(store, dict):
            backend = store.get("backend")
            if isinstance(backend, str) and backend.strip().lower() in STORE_BACKENDS:
                config.store_backend = backend.strip().lower()
            path = store.get("path")
            if isinstance(path, str) and path.strip():
                config.store_path = path.strip()

        journal = data.get("journal")
        if isinstance(journal, dict):
            enabled = journal.get("enabled")
            if isinstance(enabled, bool):
                config.journal_enabled = enabled

        return config

    def data_dir(self, repo_root: Path) -> Path:
        """Resolve the data directory; the environment variable wins."""
        override = os.getenv(DATA_DIR_ENV_VAR, "").strip()
        raw = Path(override) if override else Path(self.store_path)
        return raw if raw.is_absolute() else repo_root / raw


def locate_project_root(start: Path) -> Path | None:
    """Walk up from ``start`` to the first directory containing .worktrack/."""
    current = start.resolve()
    for candidate in (current, *current.parents):
        if (candidate / CONFIG_DIRNAME).is_dir():
            return candidate
    return None


def require_repo_root() -> Path:
    """Resolve the current project root or raise a user-facing error."""
    repo_root = locate_project_root(Path.cwd())
    if repo_root is None:
        raise ConfigError(
            "Not inside a worktrack project. Run 'worktrack init' or change to a "
            f"directory with {CONFIG_DIRNAME}/."
        )
    return repo_root


def _config_path(repo_root: Path) -> Path:
    return repo_root / CONFIG_DIRNAME / "config.yaml"


def _read_payload(yaml: YAML, config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            payload = yaml.load(handle) or {}
    except Exception as exc:
        raise ConfigError(f"Failed to parse {config_path}: {exc}") from exc
    return payload if isinstance(payload, dict) else {}


def load_config(repo_root: Path) -> WorktrackConfig:
    """Load config from .worktrack/config.yaml; defaults when absent."""
    return WorktrackConfig.from_dict(_read_payload(YAML(), _config_path(repo_root)))


def save_config(repo_root: Path, config: WorktrackConfig) -> None:
    """Persist config into .worktrack/config.yaml, preserving other sections."""
    config_path = _config_path(repo_root)
    yaml = YAML()
    yaml.preserve_quotes = True

    payload = _read_payload(yaml, config_path)
    payload.update(config.to_dict())

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as handle:
        yaml.dump(payload, handle)
