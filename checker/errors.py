"""
goal: request-scoped error types for the integrity checker. every failure a REST handler can
      report is a CheckerError carrying a code, a human message and a data mapping (which holds
      the HTTP status once normalized). none of these are fatal to the process.
"""

from __future__ import annotations

from typing import Any


class CheckerError(Exception):
    """an error that is surfaced to the REST client as {code, message, data}"""

    def __init__(self, code: int | str, message: str, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data: dict[str, Any] = dict(data) if data else {}

    @property
    def status(self) -> int | None:
        status = self.data.get("status")
        return int(status) if status is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "data": self.data}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class NotFoundError(CheckerError):
    """the requested plugin/theme is not installed locally"""

    def __init__(self, message: str) -> None:
        super().__init__(400, message)


class RemoteFailureError(CheckerError):
    """the reference service answered with something other than 200 (or not at all)"""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(status, message)


class MissingFileError(CheckerError):
    """neither a local nor a reference copy of the file exists"""

    def __init__(self, message: str = "File not found") -> None:
        super().__init__("fail", message, {"status": 400})


class BadRequestError(CheckerError):
    def __init__(self, message: str = "Invalid request body") -> None:
        super().__init__("fail", message, {"status": 400})
