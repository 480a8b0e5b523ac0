"""
goal: operator settings for the integrity checker, persisted as JSON. also sends the test email
      the settings page uses to check alert delivery.
"""

from __future__ import annotations

import logging
import re
import smtplib
from email.message import EmailMessage
from typing import Any

from checker.errors import BadRequestError, CheckerError
from checker.storage import JsonStore

logger = logging.getLogger("integrity_checker.settings")

DEFAULTS: dict[str, Any] = {
    "apiKey": "",
    "email": "",
    "scheduleScans": False,
    "scheduleFrequency": "weekly",
    "alertEmails": "",
    "followSymlinks": False,
}
FREQUENCIES = ("daily", "weekly")

_EMAIL_RE = re.compile(r"^[^@\s,]+@[^@\s,]+\.[^@\s,]+$")


class Settings:
    def __init__(
        self,
        store: JsonStore,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        mail_from: str = "",
    ) -> None:
        self.store = store
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.mail_from = mail_from or smtp_user

    def _all(self) -> dict[str, Any]:
        data = dict(DEFAULTS)
        data.update({k: v for k, v in self.store.load().items() if k in DEFAULTS})
        return data

    def get(self, key: str) -> Any:
        return self._all().get(key, DEFAULTS.get(key))

    def set(self, key: str, value: Any) -> None:
        data = self._all()
        data[key] = value
        self.store.save(data)

    def get_settings(self) -> dict[str, Any]:
        data = self._all()
        # never echo the key back, the client only needs to know one is set
        data["apiKey"] = "*" * 8 if data.get("apiKey") else ""
        return data

    def put_settings(self, new: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(new, dict):
            raise BadRequestError()
        data = self._all()
        for key, value in new.items():
            if key not in DEFAULTS or key == "apiKey":
                continue  # the key only changes through the apikey endpoint
            expected = type(DEFAULTS[key])
            if not isinstance(value, expected):
                raise BadRequestError(f"Invalid value for {key}")
            if key == "scheduleFrequency" and value not in FREQUENCIES:
                raise BadRequestError(f"Invalid value for {key}")
            data[key] = value
        self.store.save(data)
        logger.info("settings updated")
        return self.get_settings()

    def test_email(self, emails: str) -> dict[str, Any]:
        """send a test message to every valid address in a comma separated list"""
        candidates = [e.strip() for e in (emails or "").split(",") if e.strip()]
        valid = [e for e in candidates if _EMAIL_RE.match(e)]
        invalid = [e for e in candidates if not _EMAIL_RE.match(e)]
        if not valid:
            raise BadRequestError("No valid email address")
        if not self.smtp_host:
            raise CheckerError("fail", "No SMTP server configured", {"status": 500})

        msg = EmailMessage()
        msg["Subject"] = "Integrity Checker test email"
        msg["From"] = self.mail_from or "integrity-checker@localhost"
        msg["To"] = ", ".join(valid)
        msg.set_content(
            "This is a test message from Integrity Checker.\n"
            "If you received it, scan alerts will reach this address."
        )

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                server.starttls()
                if self.smtp_user:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("test email failed: %s", e)
            raise CheckerError("fail", f"Could not send email: {e}", {"status": 500}) from e

        logger.info("test email sent to %s", ", ".join(valid))
        return {"sent": valid, "invalid": invalid}
