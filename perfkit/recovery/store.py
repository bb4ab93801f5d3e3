"""Key-value local stores with browser localStorage semantics.

Values are raw strings; callers encode JSON themselves or use
:func:`safe_get_item` / :func:`safe_set_item`, which tolerate corrupt data.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class LocalStore(Protocol):
    """Minimal string key-value store."""

    def get_item(self, key: str) -> Optional[str]:
        """Return the raw value or None."""

    def set_item(self, key: str, value: str) -> None:
        """Store a raw value."""

    def remove_item(self, key: str) -> None:
        """Delete a key if present."""

    def keys(self) -> List[str]:
        """Return all stored keys."""


class MemoryStore:
    """In-process store, useful for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class JsonFileStore:
    """Store persisted as one JSON object mapping keys to raw strings.

    The file is re-read on every access and rewritten on every change. A
    missing file reads as an empty store.

    Raises
    ------
    ValueError
        If the file exists but does not hold a JSON object.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return {str(k): v if isinstance(v, str) else json.dumps(v) for k, v in data.items()}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)

    def keys(self) -> List[str]:
        return list(self._load())


def safe_get_item(store: LocalStore, key: str, default: Any = None) -> Any:
    """Return the decoded JSON value for ``key`` or ``default``.

    Corrupt values are removed from the store so later reads start clean.
    """
    raw = store.get_item(key)
    if raw is None or raw == "":
        return default
    try:
        return json.loads(raw)
    except ValueError as exc:
        logger.warning(
            f"Failed to read {key} from local store",
            extra={"key": key, "error": str(exc)},
        )
        try:
            store.remove_item(key)
        except OSError as clear_exc:
            logger.warning(
                f"Failed to clear corrupted key {key}",
                extra={"key": key, "error": str(clear_exc)},
            )
        return default


def safe_set_item(store: LocalStore, key: str, value: Any) -> bool:
    """Encode ``value`` as JSON and store it. Returns False on failure."""
    try:
        store.set_item(key, json.dumps(value))
    except (TypeError, ValueError, OSError) as exc:
        logger.warning(
            f"Failed to write {key} to local store",
            extra={"key": key, "error": str(exc)},
        )
        return False
    return True
