from __future__ import annotations

import logging
import os
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .domain_models import FIELD_STYLES
from .i18n import SUPPORTED_LANGUAGES
from .remote_store import DEFAULT_TIMEOUT_S, validate_url

SERVER_DIR = Path(__file__).resolve().parents[1]
"""Root of the ``apps/server/`` package tree."""

LOGGER = logging.getLogger(__name__)

REMOTE_URL_ENV = "SPEEDTRACKER_REMOTE_URL"
VALID_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
MIN_REMOTE_TIMEOUT_S = 1.0

DEFAULT_CONFIG: dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 8000},
    "remote": {
        "url": "",
        "timeout_s": DEFAULT_TIMEOUT_S,
        "field_style": "canonical",
    },
    "locale": {"language": "en"},
    "history": {"seed_path": None},
    "logging": {"level": "INFO"},
}


def documented_default_config() -> dict[str, Any]:
    """Return runtime defaults in the shape documented by config.example.yaml."""
    return deepcopy(DEFAULT_CONFIG)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _resolve_config_path(path_text: str, config_path: Path) -> Path:
    path = Path(path_text)
    if path.is_absolute():
        return path
    return config_path.resolve().parent / path


@dataclass(slots=True)
class ServerConfig:
    host: str
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ValueError(f"server.port must be 1-65535, got {self.port!r}")


@dataclass(slots=True)
class RemoteConfig:
    url: str
    timeout_s: float
    field_style: str

    def __post_init__(self) -> None:
        if self.url:
            validate_url(self.url)
        if self.field_style not in FIELD_STYLES:
            raise ValueError(
                f"remote.field_style must be one of {', '.join(FIELD_STYLES)}, "
                f"got {self.field_style!r}"
            )
        if self.timeout_s < MIN_REMOTE_TIMEOUT_S:
            LOGGER.warning(
                "remote.timeout_s=%s is below minimum %s; clamped",
                self.timeout_s,
                MIN_REMOTE_TIMEOUT_S,
            )
            self.timeout_s = MIN_REMOTE_TIMEOUT_S


@dataclass(slots=True)
class LocaleConfig:
    language: str

    def __post_init__(self) -> None:
        if self.language not in SUPPORTED_LANGUAGES:
            raise ValueError(
                f"locale.language must be one of {', '.join(SUPPORTED_LANGUAGES)}, "
                f"got {self.language!r}"
            )


@dataclass(slots=True)
class HistoryConfig:
    seed_path: Path | None


@dataclass(slots=True)
class LoggingConfig:
    level: str

    def __post_init__(self) -> None:
        if self.level not in VALID_LOG_LEVELS:
            LOGGER.warning("logging.level=%r is not a valid level; using INFO", self.level)
            self.level = "INFO"


@dataclass(slots=True)
class AppConfig:
    server: ServerConfig
    remote: RemoteConfig
    locale: LocaleConfig
    history: HistoryConfig
    logging: LoggingConfig
    config_path: Path


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML object at the top level.")
        return data


def load_config(config_path: Path | None = None) -> AppConfig:
    path = config_path or (SERVER_DIR / "config.yaml")
    path = path.resolve()
    override = _read_config_file(path)
    merged = _deep_merge(DEFAULT_CONFIG, override)

    try:
        server_port = int(merged["server"]["port"])
    except (TypeError, ValueError):
        raise ValueError(f"server.port must be an integer, got {merged['server']['port']!r}") from None

    remote_cfg = merged["remote"]
    remote_url = str(remote_cfg.get("url") or "").strip() or os.environ.get(REMOTE_URL_ENV, "")
    try:
        timeout_s = float(remote_cfg.get("timeout_s", DEFAULT_TIMEOUT_S))
    except (TypeError, ValueError):
        raise ValueError(
            f"remote.timeout_s must be a number, got {remote_cfg.get('timeout_s')!r}"
        ) from None

    seed_raw = merged["history"].get("seed_path")
    seed_path = (
        _resolve_config_path(str(seed_raw), path)
        if isinstance(seed_raw, str) and seed_raw.strip()
        else None
    )

    app_config = AppConfig(
        server=ServerConfig(
            host=str(merged["server"]["host"]),
            port=server_port,
        ),
        remote=RemoteConfig(
            url=remote_url.strip(),
            timeout_s=timeout_s,
            field_style=str(remote_cfg.get("field_style") or "canonical").strip().lower(),
        ),
        locale=LocaleConfig(
            language=str(merged["locale"].get("language") or "en").strip().lower(),
        ),
        history=HistoryConfig(seed_path=seed_path),
        logging=LoggingConfig(
            level=str(merged["logging"].get("level") or "INFO").strip().upper(),
        ),
        config_path=path,
    )
    if not app_config.remote.url:
        LOGGER.warning(
            "No remote store URL configured (remote.url or %s); submissions will fail",
            REMOTE_URL_ENV,
        )
    LOGGER.info(
        "Loaded config=%s remote=%s field_style=%s seed_path=%s",
        app_config.config_path,
        app_config.remote.url or "<unset>",
        app_config.remote.field_style,
        app_config.history.seed_path,
    )
    return app_config
