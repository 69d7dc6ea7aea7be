"""Configuration management for the todo service."""
from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .tokens import DEFAULT_TOKEN_TTL

logger = logging.getLogger("todo_service.config")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP service."""

    secret_key: str
    token_ttl: timedelta = DEFAULT_TOKEN_TTL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "Settings":
        """Create :class:`Settings` from raw configuration values."""

        secret = data.get("secret_key")
        secret_key = str(secret).strip() if secret is not None else ""
        if not secret_key:
            secret_key = secrets.token_urlsafe(32)
            logger.warning(
                "No token secret configured; using a random per-process secret. "
                "Issued tokens will stop working after a restart."
            )

        raw_ttl = data.get("token_ttl_seconds")
        token_ttl = DEFAULT_TOKEN_TTL
        if raw_ttl is not None:
            seconds = int(str(raw_ttl))
            if seconds <= 0:
                raise ValueError("token_ttl_seconds must be positive")
            token_ttl = timedelta(seconds=seconds)

        port = int(str(data.get("port", DEFAULT_PORT)))
        if not 0 < port < 65536:
            raise ValueError(f"Invalid port: {port}")

        host = str(data.get("host") or DEFAULT_HOST).strip() or DEFAULT_HOST

        return Settings(secret_key=secret_key, token_ttl=token_ttl, host=host, port=port)


_ENV_OVERRIDES = {
    "TODO_SECRET_KEY": "secret_key",
    "TODO_TOKEN_TTL_SECONDS": "token_ttl_seconds",
    "TODO_HOST": "host",
    "TODO_PORT": "port",
}


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from an optional YAML file, then apply environment overrides."""

    raw: Dict[str, object] = {}
    if config_path is not None and config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            try:
                loaded = yaml.safe_load(handle) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Could not parse configuration file {config_path}") from exc
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping of settings")
        raw.update(loaded)

    env = os.environ if environ is None else environ
    for variable, key in _ENV_OVERRIDES.items():
        value = env.get(variable)
        if value is not None and value.strip():
            raw[key] = value.strip()

    return Settings.from_dict(raw)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "settings.yaml").resolve(strict=False)
    return candidate


__all__ = ["Settings", "load_settings", "resolve_config_path"]
