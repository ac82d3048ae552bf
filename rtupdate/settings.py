"""Connection settings for the record type catalog.

Values come from the environment, after loading a ``.env`` file with
python-dotenv. Variables already set in the environment win over the file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError, PathNotAllowedError
from .rules import DEFAULT_API_VERSION, DEFAULT_TIMEOUT_SECONDS

__all__ = ["Settings", "load_data_dir", "load_settings", "resolve_data_path"]

INSTANCE_URL_VAR = "SF_INSTANCE_URL"
ACCESS_TOKEN_VAR = "SF_ACCESS_TOKEN"
API_VERSION_VAR = "SF_API_VERSION"
TIMEOUT_VAR = "SF_TIMEOUT"
LOG_LEVEL_VAR = "RTUPDATE_LOG_LEVEL"
DATA_DIR_VAR = "RTUPDATE_DATA_DIR"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
    instance_url: str
    access_token: str
    api_version: str = DEFAULT_API_VERSION
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"


def _require(env: Mapping[str, str], key: str) -> str:
    value = (env.get(key) or "").strip()
    if not value:
        raise ConfigurationError(
            f"Missing required setting {key}",
            key=key,
            suggestion=f"Set {key} in the environment or in a .env file",
        )
    return value


def _load_env_file(env_file: Optional[Union[str, Path]]) -> None:
    # search from the working directory, not from this package
    load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True), override=False)


def load_data_dir(
    env_file: Optional[Union[str, Path]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    """Directory that request file paths must stay inside.

    ``RTUPDATE_DATA_DIR``, defaulting to the working directory.
    """
    if environ is None:
        _load_env_file(env_file)
        environ = os.environ
    return Path(environ.get(DATA_DIR_VAR) or ".").resolve()


def resolve_data_path(data_dir: Union[str, Path], file_path: Union[str, Path]) -> Path:
    """Resolve ``file_path`` against ``data_dir``.

    Relative paths are taken from ``data_dir``. Raises PathNotAllowedError
    when the resolved path, symlinks included, is outside ``data_dir``.
    """
    root = Path(data_dir).resolve()
    candidate = (root / file_path).resolve()
    try:
        candidate.relative_to(root)
    except ValueError as exc:
        raise PathNotAllowedError(str(file_path), data_dir=str(root)) from exc
    return candidate


def load_settings(
    env_file: Optional[Union[str, Path]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build Settings from ``environ`` (default ``os.environ``).

    When ``environ`` is not given, ``env_file`` (or a ``.env`` found from the
    working directory) is loaded into the process environment first.
    """
    if environ is None:
        _load_env_file(env_file)
        environ = os.environ

    raw_timeout = environ.get(TIMEOUT_VAR) or str(DEFAULT_TIMEOUT_SECONDS)
    try:
        timeout = float(raw_timeout)
    except ValueError as exc:
        raise ConfigurationError(
            f"{TIMEOUT_VAR} must be a number of seconds, got {raw_timeout!r}",
            key=TIMEOUT_VAR,
        ) from exc

    log_level = (environ.get(LOG_LEVEL_VAR) or "INFO").strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigurationError(
            f"{LOG_LEVEL_VAR} must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}",
            key=LOG_LEVEL_VAR,
        )

    return Settings(
        instance_url=_require(environ, INSTANCE_URL_VAR),
        access_token=_require(environ, ACCESS_TOKEN_VAR),
        api_version=environ.get(API_VERSION_VAR) or DEFAULT_API_VERSION,
        timeout=timeout,
        log_level=log_level,
    )
