"""Local data recovery: inspect, summarize, export, back up and restore."""

from .data import (
    DATA_KEYS,
    DataSummary,
    KeyReport,
    create_backup,
    export_local_data,
    inspect_local_data,
    local_data_summary,
    merge_data_arrays,
    restore_from_backup,
)
from .store import JsonFileStore, LocalStore, MemoryStore, safe_get_item, safe_set_item

__all__ = [
    "DATA_KEYS",
    "DataSummary",
    "JsonFileStore",
    "KeyReport",
    "LocalStore",
    "MemoryStore",
    "create_backup",
    "export_local_data",
    "inspect_local_data",
    "local_data_summary",
    "merge_data_arrays",
    "restore_from_backup",
    "safe_get_item",
    "safe_set_item",
]
