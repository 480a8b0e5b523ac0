from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from rest.config import Config

NONCE_SECRET = "test_nonce_secret_for_testing_only"

AKISMET_MAIN = """<?php
/**
 * Plugin Name: Akismet Anti-spam: Spam Protection
 * Version: 5.3
 * Author: Automattic
 */
"""

HELLO_MAIN = """<?php
/*
Plugin Name: Hello Dolly
Version: 1.7.2
*/
"""

THEME_STYLE = """/*
Theme Name: Twenty Twenty-Four
Version: 1.0
*/
body { margin: 0; }
"""


def make_response(
    status: int = 200,
    body: bytes | str | dict = b"",
    headers: dict[str, str] | None = None,
    reason: str = "",
) -> requests.Response:
    """build a real requests.Response without touching the network"""
    resp = requests.Response()
    resp.status_code = status
    if isinstance(body, dict):
        body = json.dumps(body)
    resp._content = body.encode("utf-8") if isinstance(body, str) else body
    resp.headers = CaseInsensitiveDict(headers or {})
    resp.reason = reason
    return resp


@pytest.fixture
def wp_root(tmp_path: Path) -> Path:
    """a minimal WordPress install: core version, two plugins, one theme"""
    root = tmp_path / "wordpress"
    (root / "wp-includes").mkdir(parents=True)
    (root / "wp-includes" / "version.php").write_text(
        "<?php\n$wp_version = '6.4.2';\n$wp_db_version = 56657;\n", encoding="utf-8"
    )
    (root / "wp-login.php").write_text("<?php // login\n", encoding="utf-8")

    plugins = root / "wp-content" / "plugins"
    (plugins / "akismet").mkdir(parents=True)
    (plugins / "akismet" / "akismet.php").write_text(AKISMET_MAIN, encoding="utf-8")
    (plugins / "akismet" / "class.akismet.php").write_text("<?php v1\n", encoding="utf-8")
    (plugins / "hello.php").write_text(HELLO_MAIN, encoding="utf-8")

    theme = root / "wp-content" / "themes" / "twentytwentyfour"
    theme.mkdir(parents=True)
    (theme / "style.css").write_text(THEME_STYLE, encoding="utf-8")
    (theme / "functions.php").write_text("<?php // theme functions\n", encoding="utf-8")
    return root


@pytest.fixture
def config(tmp_path: Path, wp_root: Path) -> Config:
    data = tmp_path / "data"
    return Config(
        base_dir=tmp_path,
        wp_root=wp_root,
        plugins_path=wp_root / "wp-content" / "plugins",
        themes_path=wp_root / "wp-content" / "themes",
        settings_path=data / "settings.json",
        process_path=data / "process.json",
        results_path=data / "test_results.json",
        api_url="https://checksum.test/v1/",
        api_timeout=5.0,
        no_rest_auth=False,
        nonce_secret=NONCE_SECRET,
        nonce_lifetime=86400,
        host="127.0.0.1",
        port=8766,
        smtp_host="smtp.test",
        smtp_port=587,
        smtp_user="",
        smtp_password="",
        mail_from="checker@example.com",
    )


@pytest.fixture
def session() -> MagicMock:
    """stand-in for requests.Session; set session.request.return_value per test"""
    mock = MagicMock(spec=requests.Session)
    mock.request.return_value = make_response(200, b"")
    return mock


def assert_has_keys(obj: dict[str, Any], required: tuple[str, ...]) -> None:
    missing = [k for k in required if k not in obj]
    assert not missing, f"Missing keys: {missing} in {obj}"
