"""
goal: short-lived anti-forgery tokens for the REST API, compatible in shape with WordPress nonces.

a nonce is the HMAC of "tick|action|user" truncated to 10 hex characters. the tick advances every
half lifetime and a nonce from the previous tick is still accepted, so a token lives between
lifetime/2 and lifetime seconds.
"""

from __future__ import annotations

import hashlib
import hmac
import math
import time


class NonceError(ValueError):
    """raised when nonces cannot be issued or checked"""


class NonceManager:
    def __init__(self, secret: str, lifetime: int = 86400) -> None:
        if not secret:
            raise NonceError("a nonce secret is required (set INTEGRITY_CHECKER_NONCE_SECRET)")
        if lifetime < 2:
            raise NonceError("nonce lifetime must be at least 2 seconds")
        self._secret = secret.encode("utf-8")
        self.lifetime = lifetime

    def tick(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        return math.ceil(now / (self.lifetime / 2))

    def _hash(self, tick: int, action: str, user: str) -> str:
        digest = hmac.new(
            self._secret, f"{tick}|{action}|{user}".encode(), hashlib.sha256
        ).hexdigest()
        return digest[-12:-2]

    def create_nonce(self, action: str, user: str = "", now: float | None = None) -> str:
        return self._hash(self.tick(now), action, user)

    def verify_nonce(
        self, token: str | None, action: str, user: str = "", now: float | None = None
    ) -> bool:
        if not token:
            return False
        given = token.encode("utf-8", errors="replace")
        tick = self.tick(now)
        # current half-lifetime, then the one before it
        for t in (tick, tick - 1):
            if hmac.compare_digest(self._hash(t, action, user).encode(), given):
                return True
        return False
