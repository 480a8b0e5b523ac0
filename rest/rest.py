# SPDX-License-Identifier: GPL-3.0-or-later
"""
goal: REST endpoints for the integrity checker under the integrity-checker/v1 namespace.
      every route shares one permission check (REST nonce in X-WP-NONCE), successful results are
      wrapped in a JSend style envelope and every CheckerError is normalized into
      {code, message, data: {status}} with a matching HTTP status.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from flask import Blueprint, Flask, Response, jsonify, request
from werkzeug.routing import BaseConverter

from checker.api_client import ApiClient
from checker.errors import BadRequestError, CheckerError
from checker.file_diff import FileDiff
from checker.process import Process
from checker.settings import Settings
from rest.nonce import NonceManager

logger = logging.getLogger("integrity_checker.rest")

NAMESPACE = "integrity-checker/v1"
NONCE_HEADER = "X-WP-NONCE"
NONCE_ACTION = "wp_rest"

# "&" that does not already start an entity; keeps escaping idempotent
_BARE_AMP_RE = re.compile(r"&(?!(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);)")


class SegmentConverter(BaseConverter):
    """path segment limited to letters, digits and dashes"""

    regex = r"[a-zA-Z0-9-]+"


def esc_html(text: str) -> str:
    """HTML-escape text without double-encoding entities that are already there"""
    # markupsafe.escape re-encodes "&amp;", which would break idempotence
    text = _BARE_AMP_RE.sub("&amp;", text)
    return (
        text.replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#039;")
    )


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "on", "yes")


class Rest:
    """binds the REST routes to their delegates"""

    def __init__(
        self,
        settings: Settings,
        api_client: ApiClient,
        process: Process,
        file_diff: FileDiff,
        nonces: NonceManager | None,
        no_rest_auth: bool = False,
    ) -> None:
        self.settings = settings
        self.api_client = api_client
        self.process = process
        self.file_diff = file_diff
        self.nonces = nonces
        self.no_rest_auth = no_rest_auth

    # ---------------- envelope helpers ----------------

    def check_permissions(self, req: Any) -> bool:
        if self.no_rest_auth:
            return True
        nonce = req.headers.get(NONCE_HEADER)
        if nonce and self.nonces is not None:
            return self.nonces.verify_nonce(nonce, NONCE_ACTION)
        return False

    @staticmethod
    def err_send(error: CheckerError) -> CheckerError:
        """make sure the error data carries a status"""
        if "status" in error.data:
            return error
        try:
            status = int(error.code)
        except (TypeError, ValueError):
            status = 500
        error.data = {"status": status, "message": error.message}
        return error

    @staticmethod
    def j_send(response: Any) -> dict[str, Any]:
        return {"code": "success", "message": None, "data": response}

    def escape_object_strings(self, obj: Any) -> Any:
        """escape every string in a nested dict/list structure, in place"""
        if isinstance(obj, str):
            return esc_html(obj)
        if isinstance(obj, dict):
            for key, item in obj.items():
                obj[key] = self.escape_object_strings(item)
        elif isinstance(obj, list):
            for i, item in enumerate(obj):
                obj[i] = self.escape_object_strings(item)
        return obj

    def _send(self, result: Any) -> Response:
        return jsonify(self.j_send(result))

    def _error_response(self, error: CheckerError) -> tuple[Response, int]:
        error = self.err_send(error)
        status = error.status or 500
        if not 100 <= status <= 599:
            status = 500
        logger.info("%s %s -> %s %s", request.method, request.path, status, error.message)
        return jsonify(error.to_dict()), status

    def _guard(self) -> tuple[Response, int] | None:
        if self.check_permissions(request):
            return None
        logger.warning("rejected %s %s: missing or invalid nonce", request.method, request.path)
        body = {
            "code": "rest_forbidden",
            "message": "Sorry, you are not allowed to do that.",
            "data": {"status": 401},
        }
        return jsonify(body), 401

    @staticmethod
    def _param(name: str) -> Any:
        # query string first, then a JSON body
        if name in request.args:
            return request.args.get(name)
        body = request.get_json(silent=True, force=True)
        if isinstance(body, dict):
            return body.get(name)
        return None

    # ---------------- user and quota ----------------

    def quota(self) -> Response:
        return self._send(self.api_client.get_quota())

    def apikey(self) -> Response:
        return self._send(self.api_client.verify_api_key(self._param("apiKey")))

    def userdata(self) -> Response:
        return self._send(self.api_client.register_email(self._param("email")))

    # ---------------- processes ----------------

    def process_status(self, name: str | None = None) -> Response:
        return self._send(self.process.status(name))

    def process_update(self, name: str) -> Response:
        return self._send(self.process.update(name, request.get_json(silent=True, force=True)))

    # ---------------- test results ----------------

    def test_results(self, name: str) -> Response:
        ret = self.process.get_test_results(name)
        if _truthy(request.args.get("esc")):
            ret = self.escape_object_strings(ret)
        return self._send(ret)

    def truncate_history(self) -> Response:
        data = request.get_json(silent=True, force=True)
        ret = self.process.change_test_results("scanall", "truncateHistory", data)
        if _truthy(request.args.get("esc")):
            ret = self.escape_object_strings(ret)
        return self._send(ret)

    # ---------------- file diff ----------------

    def diff(self, resource_type: str, slug: str) -> Response:
        # the file path travels in a header so it can hold any character
        file_name = request.headers.get("X-Filename")
        if not file_name:
            raise BadRequestError("Missing X-Filename header")
        envelope = self.file_diff.get_diff(resource_type, slug, file_name)
        resp = self._send(envelope.html)
        for key, value in envelope.headers.items():
            resp.headers[key] = value
        return resp

    # ---------------- settings ----------------

    def test_email(self, emails: str) -> Response:
        return self._send(self.settings.test_email(emails))

    def put_settings(self) -> Response:
        new_settings = request.get_json(silent=True, force=True)
        if not isinstance(new_settings, dict):
            raise BadRequestError("Invalid request body")
        return self._send(self.settings.put_settings(new_settings))

    def register_rest_endpoints(self, app: Flask) -> None:
        """register all REST endpoints on the app"""
        app.url_map.converters["seg"] = SegmentConverter

        bp = Blueprint("integrity_checker", __name__, url_prefix="/" + NAMESPACE)
        bp.before_request(self._guard)
        bp.register_error_handler(CheckerError, self._error_response)

        bp.add_url_rule("/quota", "quota", self.quota, methods=["GET"])
        bp.add_url_rule("/apikey", "apikey", self.apikey, methods=["PUT"])
        bp.add_url_rule("/userdata", "userdata", self.userdata, methods=["PUT"])

        bp.add_url_rule("/process/status", "process_status", self.process_status, methods=["GET"])
        bp.add_url_rule(
            "/process/status/<seg:name>",
            "process_status_named",
            self.process_status,
            methods=["GET"],
        )
        bp.add_url_rule(
            "/process/status/<seg:name>", "process_update", self.process_update, methods=["PUT"]
        )

        bp.add_url_rule(
            "/testresult/<seg:name>", "test_results", self.test_results, methods=["GET"]
        )
        bp.add_url_rule(
            "/testresult/scanall/truncatehistory",
            "truncate_history",
            self.truncate_history,
            methods=["PUT"],
        )

        bp.add_url_rule(
            "/diff/<seg:resource_type>/<seg:slug>", "diff", self.diff, methods=["GET"]
        )

        bp.add_url_rule("/testemail/<path:emails>", "test_email", self.test_email, methods=["GET"])
        bp.add_url_rule("/settings", "settings", self.put_settings, methods=["PUT"])

        app.register_blueprint(bp)
