"""Config models and loader.

This module defines Pydantic models for the option records accepted by the
throttling, caching and batching wrappers, plus environment-based settings.
JSON parsing prefers `orjson` when available and falls back to the standard
library's `json` module otherwise.
"""

from __future__ import annotations

import json as _json
from pathlib import Path
from typing import Any, Callable, Optional, Type, TypeVar

try:
    import orjson as _orjson_mod  # type: ignore[assignment]
except ImportError:  # pragma: no cover - optional dependency
    _orjson_mod = None  # type: ignore[assignment]
    _loads_orjson: Optional[Callable[[bytes], Any]] = None
else:

    def _loads_orjson(buf: bytes) -> Any:
        loader = getattr(_orjson_mod, "loads")  # type: ignore[assignment]
        return loader(buf)


from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ThrottleConfig(BaseModel):
    """Options for :class:`perfkit.utils.throttle.RateLimiter`.

    Attributes
    ----------
    delay_ms: float
        Minimum spacing between effective invocations, in milliseconds.
    """

    delay_ms: float = Field(100.0, ge=0, description="Throttle window in ms")


class ExpiringCacheConfig(BaseModel):
    """Options for :class:`perfkit.utils.cache.ExpiringCache`.

    Attributes
    ----------
    expiry_time_ms: float
        Age in milliseconds after which an entry is recomputed.
    max_size: int
        Maximum number of entries; the earliest inserted is evicted first.
    """

    expiry_time_ms: float = Field(5000.0, ge=0, description="Entry TTL in ms")
    max_size: int = Field(10, ge=1, description="Maximum cached entries")


class LRUCacheConfig(BaseModel):
    """Options for :class:`perfkit.utils.cache.BoundedLRUCache`."""

    max_cache_size: int = Field(50, ge=1, description="Maximum cached entries")


class BatchConfig(BaseModel):
    """Options for :class:`perfkit.utils.batching.BatchCollector`."""

    delay_ms: float = Field(50.0, ge=0, description="Quiet period before flush")


class DebounceConfig(BaseModel):
    """Options for the trailing-edge debounce helpers."""

    delay_ms: float = Field(300.0, ge=0, description="Quiet period in ms")


class PerfConfig(BaseModel):
    """Top-level grouping of all wrapper options.

    Attributes
    ----------
    throttle: ThrottleConfig
    expiring_cache: ExpiringCacheConfig
    lru_cache: LRUCacheConfig
    batch: BatchConfig
    debounce: DebounceConfig
    """

    throttle: ThrottleConfig = Field(default_factory=ThrottleConfig)
    expiring_cache: ExpiringCacheConfig = Field(default_factory=ExpiringCacheConfig)
    lru_cache: LRUCacheConfig = Field(default_factory=LRUCacheConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    debounce: DebounceConfig = Field(default_factory=DebounceConfig)

    @staticmethod
    def load(path: Path) -> "PerfConfig":
        """Load wrapper options from a JSON file.

        Missing sections fall back to their defaults.
        """
        raw = path.read_bytes()
        if _loads_orjson is not None:
            data = _loads_orjson(raw)
        else:
            data = _json.loads(raw.decode("utf-8"))
        return PerfConfig.model_validate(data)


class EnvSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    debug: bool
        Development mode. Enables the render performance monitor.
    config_path: Optional[str]
        Optional path to a JSON file loaded with :meth:`PerfConfig.load`.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="PERFKIT_")

    log_level: str = Field("INFO")
    debug: bool = Field(False, description="Enable development diagnostics")
    config_path: Optional[str] = Field(
        None, description="JSON file with wrapper options"
    )

    def load_perf_config(self) -> PerfConfig:
        """Return wrapper options from ``config_path`` or the defaults."""
        if not self.config_path:
            return PerfConfig()
        return PerfConfig.load(Path(self.config_path))


ConfigT = TypeVar("ConfigT", bound=BaseModel)


def resolve_config(
    model: Type[ConfigT], config: Optional[ConfigT] = None, **overrides: Any
) -> ConfigT:
    """Merge keyword overrides into an options record and validate the result.

    ``None`` overrides are ignored so wrappers can forward optional keyword
    arguments unchanged.
    """
    values = {name: value for name, value in overrides.items() if value is not None}
    if config is None:
        return model.model_validate(values)
    if not values:
        return config
    return model.model_validate({**config.model_dump(), **values})
