"""
Tests for checker.file_diff - comparing installed files with their reference copies
"""

from __future__ import annotations

import os

import pytest

from checker.api_client import ApiClient
from checker.errors import (
    BadRequestError,
    MissingFileError,
    NotFoundError,
    RemoteFailureError,
)
from checker.file_diff import LOCAL_REMAIN_HEADER, FileDiff
from checker.resources import lookups_for
from checker.settings import Settings
from checker.storage import JsonStore
from checker.text_diff import has_changes
from checker.wp_host import WordPressHost
from conftest import make_response


@pytest.fixture
def file_diff(tmp_path, wp_root, session):
    client = ApiClient(Settings(JsonStore(tmp_path / "s.json")), "https://checksum.test/v1/", session=session)
    return FileDiff(client, lookups_for(WordPressHost(wp_root)))


class TestGetDiff:
    def test_identical_plugin_file_is_an_empty_diff(self, file_diff, session):
        session.request.return_value = make_response(
            200, b"<?php v1\n", {"x-checksum-diff-remain": "17"}
        )
        envelope = file_diff.get_diff("plugin", "akismet", "class.akismet.php")
        assert not has_changes(envelope.html)
        assert envelope.headers == {LOCAL_REMAIN_HEADER: "17"}

    def test_requests_reference_with_plugin_version(self, file_diff, session):
        session.request.return_value = make_response(200, b"<?php v1\n")
        file_diff.get_diff("plugin", "akismet", "class.akismet.php")
        args, kwargs = session.request.call_args
        assert args[1].endswith("file/plugin/akismet/5.3")
        assert kwargs["headers"]["X-Filename"] == "class.akismet.php"

    def test_changed_file_contains_both_texts(self, file_diff, session):
        session.request.return_value = make_response(200, b"<?php v0\n")
        envelope = file_diff.get_diff("plugin", "akismet", "class.akismet.php")
        assert has_changes(envelope.html)
        assert "&lt;?php v0" in envelope.html
        assert "&lt;?php v1" in envelope.html
        assert envelope.headers == {}

    def test_core_uses_core_slug_and_version(self, file_diff, session):
        session.request.return_value = make_response(200, b"<?php // login\n")
        file_diff.get_diff("core", "ignored", "wp-login.php")
        assert session.request.call_args[0][1].endswith("file/core/core/6.4.2")

    def test_theme_file(self, file_diff, session):
        session.request.return_value = make_response(200, b"<?php // original\n")
        envelope = file_diff.get_diff("theme", "twentytwentyfour", "functions.php")
        assert "theme functions" in envelope.html
        assert session.request.call_args[0][1].endswith("file/theme/twentytwentyfour/1.0")

    def test_deleted_local_file_still_diffs(self, file_diff, session):
        session.request.return_value = make_response(200, b"<?php removed\n")
        envelope = file_diff.get_diff("plugin", "akismet", "gone.php")
        assert "<del>&lt;?php removed</del>" in envelope.html

    def test_unknown_plugin(self, file_diff, session):
        with pytest.raises(NotFoundError) as exc:
            file_diff.get_diff("plugin", "jetpack", "jetpack.php")
        assert exc.value.message == "Local plugin not found"
        session.request.assert_not_called()

    def test_unknown_theme(self, file_diff):
        with pytest.raises(NotFoundError) as exc:
            file_diff.get_diff("theme", "astra", "style.css")
        assert exc.value.message == "Local theme not found"

    def test_unsupported_type_is_file_not_found(self, file_diff, session):
        with pytest.raises(MissingFileError) as exc:
            file_diff.get_diff("muplugin", "x", "x.php")
        assert exc.value.status == 400
        assert exc.value.message == "File not found"
        session.request.assert_not_called()

    def test_remote_failure_wins_over_local_content(self, file_diff, session):
        session.request.return_value = make_response(404, b'{"status":404,"message":"X"}')
        with pytest.raises(RemoteFailureError) as exc:
            file_diff.get_diff("plugin", "akismet", "class.akismet.php")
        assert (exc.value.code, exc.value.message) == (404, "X")

    def test_remote_failure_without_body(self, file_diff, session):
        session.request.return_value = make_response(503, b"", reason="Service Unavailable")
        with pytest.raises(RemoteFailureError) as exc:
            file_diff.get_diff("core", "core", "wp-login.php")
        assert (exc.value.code, exc.value.message) == (503, "Service Unavailable")

    def test_both_sides_empty(self, file_diff, session):
        session.request.return_value = make_response(200, b"")
        with pytest.raises(MissingFileError) as exc:
            file_diff.get_diff("plugin", "akismet", "missing.php")
        assert exc.value.code == "fail"
        assert exc.value.status == 400

    def test_path_outside_resource_is_rejected(self, file_diff, session):
        with pytest.raises(BadRequestError):
            file_diff.get_diff("plugin", "akismet", "../../../wp-config.php")
        session.request.assert_not_called()

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions")
    def test_unreadable_local_file_counts_as_empty(self, file_diff, session, wp_root):
        target = wp_root / "wp-content" / "plugins" / "akismet" / "class.akismet.php"
        target.chmod(0)
        try:
            session.request.return_value = make_response(200, b"<?php v1\n")
            envelope = file_diff.get_diff("plugin", "akismet", "class.akismet.php")
            assert "<del>&lt;?php v1</del>" in envelope.html
        finally:
            target.chmod(0o644)
