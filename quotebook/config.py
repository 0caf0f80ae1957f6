"""Configuration management for the quotebook service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .storage import DEFAULT_MAX_RECORD_BYTES, resolve_database_path

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the store and the service."""

    database_path: Path
    max_user_bytes: int = DEFAULT_MAX_RECORD_BYTES
    max_quote_bytes: int = DEFAULT_MAX_RECORD_BYTES
    max_comment_bytes: int = DEFAULT_MAX_RECORD_BYTES
    log_level: str = "INFO"

    @staticmethod
    def from_dict(data: Dict[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from the raw contents of a YAML file."""

        raw_path = data.get("database_path")
        if raw_path:
            candidate = Path(str(raw_path)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        limits = data.get("max_record_bytes") or {}
        if not isinstance(limits, dict):
            raise ValueError("'max_record_bytes' must map collection names to byte limits")
        unknown = set(limits) - {"users", "quotes", "comments"}
        if unknown:
            raise ValueError(f"Unknown collections in 'max_record_bytes': {', '.join(sorted(unknown))}")

        return Settings(
            database_path=database_path,
            max_user_bytes=_positive_int(limits.get("users", DEFAULT_MAX_RECORD_BYTES), "users"),
            max_quote_bytes=_positive_int(limits.get("quotes", DEFAULT_MAX_RECORD_BYTES), "quotes"),
            max_comment_bytes=_positive_int(limits.get("comments", DEFAULT_MAX_RECORD_BYTES), "comments"),
            log_level=_log_level(str(data.get("log_level", "INFO"))),
        )


def _positive_int(value: object, label: str) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid byte limit {value!r} for {label}") from exc
    if number <= 0:
        raise ValueError(f"Byte limit for {label} must be positive")
    return number


def _log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level {value!r}")
    return level


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from an optional YAML file, then apply environment overrides."""

    env = os.environ if environ is None else environ
    if config_path is None and env.get("QUOTEBOOK_CONFIG"):
        config_path = Path(env["QUOTEBOOK_CONFIG"]).expanduser().resolve(strict=False)

    if config_path is not None:
        with config_path.open("r", encoding="utf-8") as handle:
            try:
                raw = yaml.safe_load(handle) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Configuration file {config_path} is not valid YAML") from exc
        if not isinstance(raw, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")
        settings = Settings.from_dict(raw, base_path=config_path.parent)
    else:
        settings = Settings(database_path=resolve_database_path(None))

    db_path = env.get("QUOTEBOOK_DB_PATH")
    if db_path:
        settings = replace(settings, database_path=resolve_database_path(db_path))

    max_bytes = env.get("QUOTEBOOK_MAX_RECORD_BYTES")
    if max_bytes:
        limit = _positive_int(max_bytes, "QUOTEBOOK_MAX_RECORD_BYTES")
        settings = replace(
            settings,
            max_user_bytes=limit,
            max_quote_bytes=limit,
            max_comment_bytes=limit,
        )

    log_level = env.get("QUOTEBOOK_LOG_LEVEL")
    if log_level:
        settings = replace(settings, log_level=_log_level(log_level))

    return settings


__all__ = ["Settings", "load_settings"]
