"""
goal: configuration loader for the REST service. loads settings from a JSON file and environment
      variables, with sensible defaults. handles PyInstaller frozen executables by detecting
      the base directory correctly. returns a frozen Config dataclass that is passed explicitly
      to the app factory (nothing reads process-wide flags at request time).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "INTEGRITY_CHECKER_"


# figure out where the app is running from (handles PyInstaller bundles)
def _resolve_base_dir() -> Path:
    import sys

    # if we are frozen (PyInstaller), use the executable's directory
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    # otherwise, go up one level from this file (rest/config.py -> project root)
    return Path(__file__).resolve().parents[1]


# frozen dataclass to hold all config values (immutable once created)
@dataclass(frozen=True)
class Config:
    base_dir: Path  # root directory of the project
    wp_root: Path  # WordPress install being checked
    plugins_path: Path  # wp-content/plugins unless moved
    themes_path: Path  # wp-content/themes unless moved
    settings_path: Path  # operator settings JSON
    process_path: Path  # process status JSON
    results_path: Path  # stored test results JSON
    api_url: str  # checksum service base URL
    api_timeout: float  # seconds before a reference fetch gives up
    no_rest_auth: bool  # skip the nonce check entirely (trusted contexts only)
    nonce_secret: str  # HMAC secret for REST nonces
    nonce_lifetime: int  # seconds a nonce stays valid
    host: str  # web server host address
    port: int  # web server port number
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    mail_from: str


# coerce a raw env or JSON value to the type of its default, falling back to the default
def _coerce(raw, default):
    # bool before int, bool is an int subclass
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, (int, float)):
        if isinstance(raw, bool):
            return default
        try:
            return type(default)(raw)
        except (TypeError, ValueError):
            return default
    if isinstance(default, str) and not isinstance(raw, str):
        return str(raw)
    return raw


# get a config value with priority: environment variable > JSON file > default
def _get(obj: dict, key: str, default):
    env = os.getenv(f"{ENV_PREFIX}{key.upper()}")
    if env is not None:
        return _coerce(env, default)
    raw = obj.get(key)
    if raw is None:
        return default
    return _coerce(raw, default)


def load_config() -> Config:
    base = Path(os.getenv(f"{ENV_PREFIX}BASE_DIR") or _resolve_base_dir())
    cfg_file = base / "data" / "config.json"
    obj = {}
    if cfg_file.exists():
        try:
            obj = json.loads(cfg_file.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError):
            # broken config file means all defaults
            obj = {}
    if not isinstance(obj, dict):
        obj = {}

    wp_root = Path(_get(obj, "wp_root", str(base / "wordpress")))
    plugins = _get(obj, "plugins_path", "")
    themes = _get(obj, "themes_path", "")

    return Config(
        base_dir=base,
        wp_root=wp_root,
        plugins_path=Path(plugins) if plugins else wp_root / "wp-content" / "plugins",
        themes_path=Path(themes) if themes else wp_root / "wp-content" / "themes",
        settings_path=base / _get(obj, "settings_path", "data/settings.json"),
        process_path=base / _get(obj, "process_path", "data/process.json"),
        results_path=base / _get(obj, "results_path", "data/test_results.json"),
        api_url=_get(obj, "api_url", "https://api.wpessentials.io/v1/"),
        api_timeout=_get(obj, "api_timeout", 30.0),
        no_rest_auth=_get(obj, "no_rest_auth", False),
        nonce_secret=_get(obj, "nonce_secret", ""),
        nonce_lifetime=_get(obj, "nonce_lifetime", 86400),
        host=_get(obj, "host", "127.0.0.1"),
        port=_get(obj, "port", 8766),
        smtp_host=_get(obj, "smtp_host", ""),
        smtp_port=_get(obj, "smtp_port", 587),
        smtp_user=_get(obj, "smtp_user", ""),
        smtp_password=_get(obj, "smtp_password", ""),
        mail_from=_get(obj, "mail_from", ""),
    )
