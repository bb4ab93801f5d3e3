"""
Cache key derivation from call arguments.

Keys are canonical JSON: mappings are emitted with sorted keys so two
structurally equal argument lists always produce the same key regardless
of dict insertion order. Tuples encode like lists, and dataclasses and
Pydantic models are reduced to their field mappings first.

Values JSON cannot tell apart from a plain string or list are tagged:
bytes as ``{"__bytes__": hex}``, sets as ``{"__set__": [...]}`` (sorted by
their own encoding), and mappings with non-string keys, or with a key that
collides with a tag, as ``{"__map__": [[key, value], ...]}``. A call is
always keyed as ``{"args": [...], "kwargs": {...}}``.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any, Mapping, Sequence, Set

from pydantic import BaseModel

logger = logging.getLogger(__name__)

_TAGS = frozenset({"__bytes__", "__set__", "__map__"})


class SerializationError(ValueError):
    """Arguments cannot be deterministically serialized to a cache key.

    Raised for cyclic structures and for values with no canonical JSON
    form (functions, open files, arbitrary objects).
    """


def _dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _canonical(value: Any, active: Set[int]) -> Any:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, BaseModel):
        return _canonical(value.model_dump(mode="json"), active)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _canonical(dataclasses.asdict(value), active)
    if isinstance(value, (bytes, bytearray)):
        return {"__bytes__": bytes(value).hex()}
    if not isinstance(value, (Mapping, list, tuple, set, frozenset)):
        raise TypeError(f"Object of type {type(value).__name__} has no canonical key form")

    marker = id(value)
    if marker in active:
        raise ValueError("Circular reference detected")
    active.add(marker)
    try:
        if isinstance(value, Mapping):
            if all(isinstance(k, str) and k not in _TAGS for k in value):
                return {k: _canonical(v, active) for k, v in value.items()}
            pairs = [[_canonical(k, active), _canonical(v, active)] for k, v in value.items()]
            return {"__map__": sorted(pairs, key=_dumps)}
        if isinstance(value, (set, frozenset)):
            return {"__set__": sorted((_canonical(v, active) for v in value), key=_dumps)}
        return [_canonical(v, active) for v in value]
    finally:
        active.discard(marker)


def serialize(value: Any) -> str:
    """Return the canonical JSON encoding of ``value``.

    Raises
    ------
    SerializationError
        If ``value`` contains a cycle or an unsupported type.
    """
    try:
        return _dumps(_canonical(value, set()))
    except (TypeError, ValueError, RecursionError) as exc:
        logger.debug(
            "cache_key.serialize_failed",
            extra={"error": str(exc), "value_type": type(value).__name__},
        )
        raise SerializationError(f"Cannot derive cache key: {exc}") from exc


def make_key(args: Sequence[Any], kwargs: Mapping[str, Any] | None = None) -> str:
    """Derive the cache key for a call with ``args`` and ``kwargs``."""
    return serialize({"args": list(args), "kwargs": dict(kwargs or {})})
