"""
goal: client for the remote checksum service. fetches known-good reference copies of core,
      plugin and theme files, and handles the small account API (quota, API key, email sign-up).

reference-file fetches hand back the raw response (status, body, headers) because the caller
decides what a non-200 means. the account calls decode JSON and raise RemoteFailureError on
anything but success.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import requests

from checker.errors import BadRequestError, RemoteFailureError

if TYPE_CHECKING:
    from checker.settings import Settings

logger = logging.getLogger("integrity_checker.api")

DEFAULT_API_URL = "https://api.wpessentials.io/v1/"


@dataclass
class RemoteFetchResult:
    status_code: int
    reason: str = ""
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)  # names are lower-cased


def error_from_remote(status_code: int, reason: str, body: bytes) -> RemoteFailureError:
    """
    build the error for a failed remote call.
    the service explains failures as {"status": int, "message": str}; when the body is empty or
    not such an object we fall back to the HTTP status line.
    """
    if body:
        try:
            obj = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
            obj = None
        if isinstance(obj, dict) and "message" in obj:
            try:
                status = int(obj.get("status") or status_code)
            except (TypeError, ValueError):
                status = status_code
            return RemoteFailureError(status, str(obj["message"]))
    return RemoteFailureError(status_code, reason or f"HTTP {status_code}")


class ApiClient:
    def __init__(
        self,
        settings: Settings,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.api_url = api_url if api_url.endswith("/") else api_url + "/"
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, api_key: str | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        key = api_key if api_key is not None else self.settings.get("apiKey")
        if key:
            headers["Authorization"] = str(key)
        return headers

    def _send(self, method: str, path: str, **kw: Any) -> requests.Response:
        url = self.api_url + path
        try:
            return self.session.request(method, url, timeout=self.timeout, **kw)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise RemoteFailureError(502, f"Could not reach {self.api_url}: {e}") from e

    def _json(self, resp: requests.Response) -> Any:
        if resp.status_code != 200:
            raise error_from_remote(resp.status_code, resp.reason or "", resp.content)
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteFailureError(502, "Invalid response from the checksum service") from e

    def get_file(self, kind: str, slug: str, version: str, path: str) -> RemoteFetchResult:
        """fetch the reference copy of one file; the relative path travels in X-Filename"""
        headers = self._headers()
        headers["X-Filename"] = path
        resp = self._send("GET", f"file/{kind}/{slug}/{version}", headers=headers)
        logger.debug("reference %s/%s/%s %s -> %s", kind, slug, version, path, resp.status_code)
        return RemoteFetchResult(
            status_code=resp.status_code,
            reason=resp.reason or "",
            body=resp.content or b"",
            headers={k.lower(): v for k, v in resp.headers.items()},
        )

    def get_quota(self) -> Any:
        return self._json(self._send("GET", "quota", headers=self._headers()))

    def verify_api_key(self, api_key: Any) -> Any:
        if api_key is not None and not isinstance(api_key, str):
            raise BadRequestError("API key must be a string")
        api_key = (api_key or "").strip()
        if not api_key:
            raise RemoteFailureError(400, "Missing API key")
        data = self._json(self._send("GET", "apikey", headers=self._headers(api_key)))
        # only a key the service accepted gets stored
        self.settings.set("apiKey", api_key)
        logger.info("API key verified and saved")
        return data

    def register_email(self, email: Any) -> Any:
        if email is not None and not isinstance(email, str):
            raise BadRequestError("Email address must be a string")
        email = (email or "").strip()
        if not email:
            raise RemoteFailureError(400, "Missing email address")
        data = self._json(
            self._send("POST", "userdata", headers=self._headers(), json={"email": email})
        )
        self.settings.set("email", email)
        if isinstance(data, dict) and data.get("apiKey"):
            self.settings.set("apiKey", str(data["apiKey"]))
        logger.info("registered email %s", email)
        return data
