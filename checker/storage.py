"""
goal: tiny JSON file store used for settings, process status and test results.
      reads are forgiving (missing or broken file -> default), writes create the parent folder.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from checker.errors import CheckerError

logger = logging.getLogger("integrity_checker.storage")


class JsonStore:
    """one JSON object persisted in one file"""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        try:
            with open(self.path, encoding="utf-8") as f:
                content = f.read().strip()
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning("could not read %s: %s", self.path, e)
            return {}
        if not content:
            return {}
        try:
            data = json.loads(content)
        except (json.JSONDecodeError, ValueError):
            logger.warning("ignoring malformed JSON in %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error("could not write %s: %s", self.path, e)
            raise CheckerError("fail", f"Could not save {self.path.name}", {"status": 500}) from e
