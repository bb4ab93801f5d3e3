"""
Inspection, export and backup of locally stored application data.

The journaling app keeps its collections as JSON under a fixed set of local
keys (:data:`DATA_KEYS`). These helpers report what is present, export it
for safekeeping, write and restore backups, and merge two copies of a
collection without duplicates. None of them raise on corrupt data: problems
are logged and reported in the return value.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..utils.keys import SerializationError, serialize
from .store import LocalStore

logger = logging.getLogger(__name__)

DATA_KEYS = (
    "journalEntries",
    "killTargets",
    "relapseEntries",
    "compassChecks",
    "blackMirrorEntries",
    "userPreferences",
    "oracleFeedbacks",
)

BACKUP_KEY_PREFIX = "innerOps_backup_"


@dataclass
class KeyReport:
    """
    What was found under one data key.

    Attributes
    ----------
    exists : bool
        True if the key held parseable data
    count : int
        List length, mapping size, or 1 for a scalar
    sample : Any
        First two list items, or the whole value for non-lists
    last_modified : str
        Date of the first list item's ``timestamp``, or "Unknown"
    error : str, optional
        Parse error message when the stored value is corrupt
    """

    exists: bool
    count: int = 0
    sample: Any = None
    last_modified: Optional[str] = None
    error: Optional[str] = None


@dataclass
class DataSummary:
    """Totals across all data keys."""

    has_data: bool = False
    total_entries: int = 0
    data_types: List[str] = field(default_factory=list)
    details: Dict[str, KeyReport] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _to_datetime(value: Any) -> Optional[datetime]:
    """Parse an epoch-milliseconds number or ISO-8601 string."""
    try:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        if isinstance(value, str):
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    except (ValueError, OverflowError, OSError):
        return None
    return None


def _count(value: Any) -> int:
    if isinstance(value, (list, dict)):
        return len(value)
    return 1


def _last_modified(value: Any) -> str:
    if isinstance(value, list) and value and isinstance(value[0], dict):
        parsed = _to_datetime(value[0].get("timestamp"))
        if parsed is not None:
            return parsed.date().isoformat()
    return "Unknown"


def inspect_local_data(store: LocalStore) -> Dict[str, KeyReport]:
    """Report presence, size and a sample for each of :data:`DATA_KEYS`."""
    found: Dict[str, KeyReport] = {}
    total_entries = 0
    for key in DATA_KEYS:
        raw = store.get_item(key)
        if not raw:
            found[key] = KeyReport(exists=False)
            logger.debug(f"No data found for {key}", extra={"key": key})
            continue
        try:
            parsed = json.loads(raw)
        except ValueError as exc:
            logger.error(
                f"Error parsing {key}", extra={"key": key, "error": str(exc)}
            )
            found[key] = KeyReport(exists=False, error=str(exc))
            continue

        report = KeyReport(
            exists=True,
            count=_count(parsed),
            sample=parsed[:2] if isinstance(parsed, list) else parsed,
            last_modified=_last_modified(parsed),
        )
        found[key] = report
        total_entries += report.count
        logger.info(
            f"Found {key}: {report.count} entries",
            extra={"key": key, "count": report.count},
        )

    logger.info(
        f"Total entries found: {total_entries}", extra={"total": total_entries}
    )
    return found


def local_data_summary(store: LocalStore) -> DataSummary:
    """Summarize :func:`inspect_local_data` into totals."""
    details = inspect_local_data(store)
    summary = DataSummary(details=details)
    for key, report in details.items():
        if report.exists and report.count > 0:
            summary.has_data = True
            summary.total_entries += report.count
            summary.data_types.append(key)
    return summary


def export_local_data(store: LocalStore) -> Dict[str, Any]:
    """Return ``{"exportDate": ..., "userData": {...}}`` for all readable keys."""
    export: Dict[str, Any] = {
        "exportDate": datetime.now(timezone.utc).isoformat(),
        "userData": {},
    }
    for key in DATA_KEYS:
        raw = store.get_item(key)
        if not raw:
            continue
        try:
            export["userData"][key] = json.loads(raw)
        except ValueError as exc:
            logger.error(
                f"Error exporting {key}", extra={"key": key, "error": str(exc)}
            )
    return export


def create_backup(store: LocalStore) -> Optional[str]:
    """Write an export into the store under a timestamped key.

    Returns the backup key, or None if it could not be written.
    """
    backup = export_local_data(store)
    backup_key = f"{BACKUP_KEY_PREFIX}{int(time.time() * 1000)}"
    try:
        store.set_item(backup_key, json.dumps(backup))
    except (TypeError, ValueError, OSError) as exc:
        logger.error("Failed to create backup", extra={"error": str(exc)})
        return None
    logger.info(f"Created backup at key: {backup_key}", extra={"key": backup_key})
    return backup_key


def restore_from_backup(store: LocalStore, backup_key: str) -> bool:
    """Write every key of a backup made by :func:`create_backup` back to the store.

    The backup is decoded and re-encoded in full before anything is written.
    If a write fails, keys already written are put back to their previous
    values and False is returned.
    """
    raw = store.get_item(backup_key)
    if not raw:
        logger.error(f"Backup not found: {backup_key}", extra={"key": backup_key})
        return False
    try:
        user_data = json.loads(raw)["userData"]
        encoded = {str(key): json.dumps(data) for key, data in user_data.items()}
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.error(
            "Failed to restore from backup",
            extra={"key": backup_key, "error": str(exc)},
        )
        return False

    previous = {key: store.get_item(key) for key in encoded}
    written: List[str] = []
    try:
        for key, value in encoded.items():
            store.set_item(key, value)
            written.append(key)
    except OSError as exc:
        logger.error(
            "Failed to restore from backup",
            extra={"key": backup_key, "error": str(exc), "rolled_back": written},
        )
        for key in written:
            if previous[key] is None:
                store.remove_item(key)
            else:
                store.set_item(key, previous[key])
        return False
    logger.info("Restored from backup successfully", extra={"key": backup_key})
    return True


def _is_duplicate(candidate: Any, existing: Any) -> bool:
    if not isinstance(candidate, dict) or not isinstance(existing, dict):
        return False
    if candidate.get("id") and existing.get("id"):
        return candidate["id"] == existing["id"]
    if candidate.get("timestamp") and existing.get("timestamp"):
        if candidate["timestamp"] != existing["timestamp"]:
            return False
        try:
            return serialize(candidate) == serialize(existing)
        except SerializationError:
            return False
    return False


def _sort_key(item: Any) -> float:
    if not isinstance(item, dict):
        return 0.0
    parsed = _to_datetime(item.get("timestamp") or item.get("createdAt"))
    return parsed.timestamp() if parsed is not None else 0.0


def merge_data_arrays(existing: Any, incoming: Any) -> Any:
    """
    Merge two copies of a collection.

    Lists are merged without duplicates (same ``id``, or same ``timestamp``
    and identical content) and sorted newest first by ``timestamp`` or
    ``createdAt``. Two mappings are merged with ``incoming`` winning. Any
    other combination returns ``incoming``.
    """
    if not isinstance(existing, list) or not isinstance(incoming, list):
        if isinstance(existing, dict) and isinstance(incoming, dict):
            return {**existing, **incoming}
        return incoming

    merged = list(existing)
    for item in incoming:
        if not any(_is_duplicate(item, other) for other in merged):
            merged.append(item)
    merged.sort(key=_sort_key, reverse=True)
    return merged
