"""
Tests for checker.api_client - checksum service client
"""

from __future__ import annotations

import pytest
import requests

from checker.api_client import ApiClient, error_from_remote
from checker.errors import BadRequestError, RemoteFailureError
from checker.settings import Settings
from checker.storage import JsonStore
from conftest import make_response


@pytest.fixture
def settings(tmp_path):
    return Settings(JsonStore(tmp_path / "settings.json"))


@pytest.fixture
def client(settings, session):
    return ApiClient(settings, "https://checksum.test/v1", timeout=5.0, session=session)


class TestErrorFromRemote:
    def test_uses_json_body(self):
        err = error_from_remote(404, "Not Found", b'{"status": 404, "message": "X"}')
        assert err.code == 404
        assert err.message == "X"

    def test_body_status_wins_over_http_status(self):
        err = error_from_remote(400, "Bad Request", b'{"status": 429, "message": "Quota exceeded"}')
        assert err.code == 429

    def test_empty_body_uses_status_line(self):
        err = error_from_remote(503, "Service Unavailable", b"")
        assert (err.code, err.message) == (503, "Service Unavailable")

    def test_non_json_body_uses_status_line(self):
        err = error_from_remote(500, "Internal Server Error", b"<html>oops</html>")
        assert (err.code, err.message) == (500, "Internal Server Error")


class TestGetFile:
    def test_builds_url_and_headers(self, client, session):
        session.request.return_value = make_response(
            200, b"<?php v1", {"X-Checksum-Diff-Remain": "42"}, "OK"
        )
        result = client.get_file("plugin", "akismet", "5.3", "akismet.php")

        args, kwargs = session.request.call_args
        assert args == ("GET", "https://checksum.test/v1/file/plugin/akismet/5.3")
        assert kwargs["headers"]["X-Filename"] == "akismet.php"
        assert kwargs["timeout"] == 5.0
        assert result.status_code == 200
        assert result.body == b"<?php v1"
        assert result.headers["x-checksum-diff-remain"] == "42"

    def test_sends_stored_api_key(self, client, session, settings):
        settings.set("apiKey", "abc123")
        client.get_file("core", "core", "6.4.2", "wp-login.php")
        _, kwargs = session.request.call_args
        assert kwargs["headers"]["Authorization"] == "abc123"

    def test_non_200_is_returned_not_raised(self, client, session):
        session.request.return_value = make_response(404, b'{"status":404,"message":"X"}')
        result = client.get_file("core", "core", "6.4.2", "nope.php")
        assert result.status_code == 404

    def test_transport_failure_raises(self, client, session):
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(RemoteFailureError) as exc:
            client.get_file("core", "core", "6.4.2", "wp-login.php")
        assert exc.value.code == 502


class TestAccountCalls:
    def test_get_quota(self, client, session):
        session.request.return_value = make_response(200, {"used": 3, "limit": 100})
        assert client.get_quota() == {"used": 3, "limit": 100}
        assert session.request.call_args[0] == ("GET", "https://checksum.test/v1/quota")

    def test_get_quota_failure(self, client, session):
        session.request.return_value = make_response(401, {"status": 401, "message": "Invalid key"})
        with pytest.raises(RemoteFailureError) as exc:
            client.get_quota()
        assert exc.value.code == 401
        assert exc.value.message == "Invalid key"

    def test_verify_api_key_saves_key(self, client, session, settings):
        session.request.return_value = make_response(200, {"valid": True})
        assert client.verify_api_key("  k-1  ") == {"valid": True}
        assert session.request.call_args[1]["headers"]["Authorization"] == "k-1"
        assert settings.get("apiKey") == "k-1"

    def test_rejected_api_key_is_not_saved(self, client, session, settings):
        session.request.return_value = make_response(403, {"status": 403, "message": "Bad key"})
        with pytest.raises(RemoteFailureError):
            client.verify_api_key("nope")
        assert settings.get("apiKey") == ""

    def test_verify_api_key_requires_key(self, client):
        with pytest.raises(RemoteFailureError) as exc:
            client.verify_api_key(None)
        assert exc.value.code == 400

    def test_non_string_inputs_are_rejected(self, client, session):
        with pytest.raises(BadRequestError):
            client.verify_api_key(123)
        with pytest.raises(BadRequestError):
            client.register_email(["ops@example.com"])
        session.request.assert_not_called()

    def test_register_email_stores_returned_key(self, client, session, settings):
        session.request.return_value = make_response(200, {"apiKey": "new-key"})
        client.register_email("ops@example.com")
        args, kwargs = session.request.call_args
        assert args == ("POST", "https://checksum.test/v1/userdata")
        assert kwargs["json"] == {"email": "ops@example.com"}
        assert settings.get("email") == "ops@example.com"
        assert settings.get("apiKey") == "new-key"

    def test_invalid_json_reply(self, client, session):
        session.request.return_value = make_response(200, b"not json")
        with pytest.raises(RemoteFailureError) as exc:
            client.get_quota()
        assert exc.value.code == 502
