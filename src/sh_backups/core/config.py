"""Configuration loading for sh-backups.

Configuration sources (highest to lowest priority):
  1. CLI arguments (passed directly)
  2. Environment variables (API_KEY, API_BASE_URL, LOCAL_FOLDER_PATH and SH_BACKUPS_*)
  3. Credential file written at registration (~/apikey.lic, else ./apikey.lic)
  4. Config file (~/.config/sh-backups/config.toml)
  5. Defaults
"""

from __future__ import annotations

import contextlib
import os
import sys
import tomllib
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from sh_backups.core.exceptions import ConfigError
from sh_backups.core.models import (
    ApiConfig,
    AppConfig,
    BackupConfig,
    LogFormat,
    LoggingConfig,
)

# ──────────────────── Paths ──────────────────────────────

_APP_NAME = "sh-backups"
LICENSE_FILE_NAME = "apikey.lic"


def _get_config_dir() -> Path:
    """Return the platform-appropriate config directory."""
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    elif sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / _APP_NAME


CONFIG_DIR = _get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.toml"


def default_license_path() -> Path:
    """Return ``~/apikey.lic`` if it exists, otherwise ``./apikey.lic``."""
    home_license = Path.home() / LICENSE_FILE_NAME
    if home_license.exists():
        return home_license
    return Path(LICENSE_FILE_NAME)


# ──────────────────── Environment Loading ────────────────

_ENV_PREFIX = "SH_BACKUPS_"


def _env(key: str, default: str | None = None) -> str | None:
    """Read an environment variable with the SH_BACKUPS_ prefix."""
    return os.environ.get(f"{_ENV_PREFIX}{key}", default)


def _load_api_from_env() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if key := os.environ.get("API_KEY"):
        overrides["api_key"] = key
    if url := os.environ.get("API_BASE_URL"):
        overrides["base_url"] = url
    if timeout := _env("TIMEOUT"):
        try:
            overrides["timeout"] = float(timeout)
        except ValueError as exc:
            raise ConfigError(f"Invalid {_ENV_PREFIX}TIMEOUT: {timeout!r}") from exc
    return overrides


def _load_backup_from_env() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if folder := os.environ.get("LOCAL_FOLDER_PATH"):
        overrides["local_folder_path"] = Path(folder)
    if prefix := _env("ARCHIVE_PREFIX"):
        overrides["archive_prefix"] = prefix
    if tag := _env("LOC_TAG"):
        overrides["loc_tag"] = tag
    return overrides


def _load_logging_from_env() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if ll := _env("LOG_LEVEL"):
        overrides["level"] = ll.upper()
    if ld := _env("LOG_DIR"):
        overrides["log_dir"] = Path(ld)
    if fmt := _env("LOG_FORMAT"):
        try:
            overrides["format"] = LogFormat(fmt.lower())
        except ValueError as exc:
            raise ConfigError(f"Invalid {_ENV_PREFIX}LOG_FORMAT: {fmt!r}") from exc
    return overrides


# ──────────────────── File Loading ───────────────────────


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load and return the raw TOML config dict. Returns empty dict if file missing."""
    config_path = path or CONFIG_FILE
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {config_path}: {exc}") from exc


def load_license_file(path: Path | None = None) -> dict[str, Any]:
    """Read the KEY=VALUE credential file. Returns empty dict if file missing."""
    license_path = path or default_license_path()
    if not license_path.exists():
        return {}
    values = dotenv_values(license_path)
    overrides: dict[str, Any] = {}
    if values.get("API_KEY"):
        overrides["api_key"] = values["API_KEY"]
    if values.get("API_BASE_URL"):
        overrides["base_url"] = values["API_BASE_URL"]
    return overrides


def write_license_file(api_key: str, base_url: str, path: Path | None = None) -> Path:
    """Persist the credentials handed out at registration."""
    license_path = path or Path.home() / LICENSE_FILE_NAME
    license_path.parent.mkdir(parents=True, exist_ok=True)
    license_path.write_text(f"API_KEY={api_key}\nAPI_BASE_URL={base_url}", encoding="utf-8")

    # Restrict file permissions (Unix only)
    with contextlib.suppress(OSError):
        license_path.chmod(0o600)

    return license_path


# ──────────────────── Main Loader ────────────────────────


def load_config(config_path: Path | None = None, license_path: Path | None = None) -> AppConfig:
    """Load the full application config (TOML file + credential file + env)."""
    raw = load_config_file(config_path)

    api_data = raw.get("api", {})
    api_data.update(load_license_file(license_path))
    api_data.update(_load_api_from_env())

    backup_data = raw.get("backup", {})
    backup_data.update(_load_backup_from_env())

    log_data = raw.get("logging", {})
    log_data.update(_load_logging_from_env())

    try:
        return AppConfig(
            api=ApiConfig(**api_data),
            backup=BackupConfig(**backup_data),
            logging=LoggingConfig(**log_data),
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def require_credentials(config: AppConfig, *, need_key: bool = True) -> tuple[str, str]:
    """Return ``(api_key, base_url)`` or raise ConfigError naming what is missing."""
    missing = []
    if need_key and config.api.api_key is None:
        missing.append("API_KEY")
    if not config.api.base_url:
        missing.append("API_BASE_URL")
    if missing:
        raise ConfigError(f"Missing configuration: {', '.join(missing)}")
    api_key = config.api.api_key.get_secret_value() if config.api.api_key else ""
    return api_key, config.api.base_url  # type: ignore[return-value]
