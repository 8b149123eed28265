from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


class BlobStorage(Protocol):
    def load(self, key: str, default: Any = None) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...


class JsonFileStorage:
    """One pretty-printed JSON file per key inside ``base_dir``.

    ``load`` never raises: a missing or unreadable file yields ``default``.
    ``save`` lets ``OSError`` through so callers decide how loud to be.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def load(self, key: str, default: Any = None) -> Any:
        path = self.path_for(key)
        if not path.exists():
            return default
        try:
            return read_json(path)
        except (OSError, ValueError):
            logger.warning("Could not read %s; using defaults", path, exc_info=True)
            return default

    def save(self, key: str, value: Any) -> None:
        ensure_dir(self.base_dir)
        write_json(self.path_for(key), value)
        logger.debug("Saved %s", self.path_for(key))
