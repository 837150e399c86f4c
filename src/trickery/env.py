"""
Environment configuration for providers.

Credentials and endpoints come from the process environment. For local
development a ``.env`` file in the working directory (or the project root)
is read first; variables already set in the environment always win.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional

from .exceptions import MissingCredentialError

logger = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"
BASE_URL_ENV = "OPENAI_BASE_URL"
DEFAULT_BASE_URL = "https://api.openai.com/v1"


def _parse_env_line(line: str) -> Optional[tuple]:
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    if stripped.startswith("export "):
        stripped = stripped[len("export ") :].lstrip()
    key, value = stripped.split("=", 1)
    key = key.strip()
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return (key, value) if key else None


def load_env_if_present(candidate_paths: Iterable[Path]) -> Optional[Path]:
    """
    Load ``KEY=value`` pairs from the first readable file among the candidates.

    Returns the path that was loaded, or ``None``.
    """
    for env_path in candidate_paths:
        if not env_path.is_file():
            continue
        try:
            text = env_path.read_text()
        except OSError as exc:
            logger.debug("Skipping unreadable env file %s: %s", env_path, exc)
            continue
        for line in text.splitlines():
            parsed = _parse_env_line(line)
            if parsed and parsed[0] not in os.environ:
                os.environ[parsed[0]] = parsed[1]
        logger.debug("Loaded environment from %s", env_path)
        return env_path
    return None


def load_default_env() -> Optional[Path]:
    """Load from common locations: cwd/.env, then the project root .env."""
    return load_env_if_present(
        [
            Path.cwd() / ".env",
            Path(__file__).resolve().parents[2] / ".env",
        ]
    )


@dataclass(frozen=True)
class ProviderSettings:
    """Resolved credential and endpoint for the completion provider."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProviderSettings":
        """
        Read settings from ``environ`` (defaults to ``os.environ``).

        Raises:
            MissingCredentialError: If ``OPENAI_API_KEY`` is unset or empty.
        """
        env = os.environ if environ is None else environ
        api_key = env.get(API_KEY_ENV)
        if not api_key:
            raise MissingCredentialError(API_KEY_ENV)
        return cls(api_key=api_key, base_url=env.get(BASE_URL_ENV) or DEFAULT_BASE_URL)


__all__ = [
    "ProviderSettings",
    "load_default_env",
    "load_env_if_present",
    "API_KEY_ENV",
    "BASE_URL_ENV",
    "DEFAULT_BASE_URL",
]
