from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional, Protocol


logger = logging.getLogger(__name__)

STORAGE_KEY = "great7-mandala-chart-data"


class KeyValueStorage(Protocol):
    def load(self, key: str) -> Optional[Any]:
        """Return the stored JSON value, or None when absent or unreadable."""

    def save(self, key: str, data: Any) -> bool:
        """Store a JSON value. Returns False when storage is unavailable."""


class MemoryStorage:
    """Dict-backed storage. Values are kept as JSON text, like a browser store."""

    def __init__(self, *, fail_saves: bool = False) -> None:
        self.items: dict[str, str] = {}
        self.fail_saves = fail_saves

    def load(self, key: str) -> Optional[Any]:
        raw = self.items.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("stored value for %s is not valid JSON", key)
            return None

    def save(self, key: str, data: Any) -> bool:
        if self.fail_saves:
            return False
        self.items[key] = json.dumps(data)
        return True


class FileStorage:
    """One `<key>.json` file per key under a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]+", "_", key)
        return self.directory / f"{safe}.json"

    def load(self, key: str) -> Optional[Any]:
        p = self.path_for(key)
        if not p.exists():
            return None
        try:
            return json.loads(p.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("could not read %s: %s", p, e)
            return None

    def save(self, key: str, data: Any) -> bool:
        p = self.path_for(key)
        tmp_name: Optional[str] = None
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=p.name, suffix=".tmp", dir=str(p.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(tmp_name, p)
            return True
        except OSError as e:
            logger.warning("could not write %s: %s", p, e)
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False
