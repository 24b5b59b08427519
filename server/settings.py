"""Environment-driven configuration for the CLI and HTTP service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_MAX_BYTES = 1024 * 1024
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8787

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def env_int(environ: Mapping[str, str], name: str, fallback: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return fallback
    try:
        return int(raw)
    except ValueError:
        return fallback


def env_bool(environ: Mapping[str, str], name: str, fallback: bool) -> bool:
    raw = environ.get(name, "").strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    return fallback


@dataclass(frozen=True)
class Settings:
    token: str = ""
    max_bytes: int = DEFAULT_MAX_BYTES
    wrap_pre: bool = False
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Read ``SHELLVETICA_*`` variables; unparsable values keep their defaults."""
    if environ is None:
        environ = os.environ
    max_bytes = env_int(environ, "SHELLVETICA_MAX_BYTES", DEFAULT_MAX_BYTES)
    return Settings(
        token=environ.get("SHELLVETICA_TOKEN", "").strip(),
        max_bytes=max_bytes if max_bytes > 0 else DEFAULT_MAX_BYTES,
        wrap_pre=env_bool(environ, "SHELLVETICA_WRAP_PRE", False),
        host=environ.get("SHELLVETICA_HOST", "").strip() or DEFAULT_HOST,
        port=env_int(environ, "SHELLVETICA_PORT", DEFAULT_PORT),
    )
