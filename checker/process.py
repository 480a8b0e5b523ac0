"""
goal: bookkeeping for the scan processes (checksum, permissions, settings, scanall) and their
      stored test results. nothing here runs a scan; it records the state clients report and
      serves the results back.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from checker.errors import BadRequestError, CheckerError
from checker.storage import JsonStore

logger = logging.getLogger("integrity_checker.process")

PROCESSES = ("checksum", "permissions", "settings", "scanall")
STATES = ("started", "finished", "stopped")


class Process:
    def __init__(self, status_store: JsonStore, results_store: JsonStore) -> None:
        self.status_store = status_store
        self.results_store = results_store

    @staticmethod
    def _check_name(name: str) -> None:
        if name not in PROCESSES:
            raise CheckerError(400, f"Unknown process {name}")

    def _states(self) -> dict[str, dict[str, Any]]:
        stored = self.status_store.load()
        states: dict[str, dict[str, Any]] = {}
        for name in PROCESSES:
            row = stored.get(name)
            states[name] = dict(row) if isinstance(row, dict) else {"state": "idle"}
        return states

    def status(self, name: str | None = None) -> dict[str, Any]:
        states = self._states()
        if name is None:
            running = any(s.get("state") == "started" for s in states.values())
            return {"state": "started" if running else "idle", "processes": states}
        self._check_name(name)
        return {"name": name, **states[name]}

    def update(self, name: str, data: Any) -> dict[str, Any]:
        self._check_name(name)
        state = data.get("state") if isinstance(data, dict) else None
        if state not in STATES:
            raise BadRequestError(f"Invalid state, expected one of {', '.join(STATES)}")

        states = self._states()
        row = states[name]
        row["state"] = state
        now = time.time()
        if state == "started":
            row["started"] = now
            row.pop("finished", None)
        else:
            row["finished"] = now
        self.status_store.save(states)
        logger.info("process %s -> %s", name, state)
        return {"name": name, **row}

    def get_test_results(self, name: str) -> Any:
        self._check_name(name)
        return self.results_store.load().get(name) or {}

    def change_test_results(self, name: str, action: str, data: Any) -> Any:
        if (name, action) != ("scanall", "truncateHistory"):
            raise CheckerError(400, f"Unsupported action {action} for {name}")

        keep = data.get("keep", 0) if isinstance(data, dict) else 0
        if isinstance(keep, bool) or not isinstance(keep, int) or keep < 0:
            raise BadRequestError("keep must be a non-negative integer")

        results = self.results_store.load()
        current = results.get(name)
        if not isinstance(current, dict):
            current = {}
        history = current.get("history")
        history = history if isinstance(history, list) else []
        # history is stored oldest first
        current["history"] = history[-keep:] if keep else []
        results[name] = current
        self.results_store.save(results)
        logger.info("truncated %s history to %d entries", name, len(current["history"]))
        return current
