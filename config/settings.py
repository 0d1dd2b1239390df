from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from .public_config import PublicConfig

SCRATCH_STRATEGIES = frozenset({"auto", "mkstemp", "counter"})
COPY_STRATEGIES = frozenset({"auto", "sendfile", "stream"})


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Merged settings view (dot-access).
    """

    public: PublicConfig

    def __getattr__(self, name: str) -> Any:
        return getattr(self.public, name)


def _validate_settings(s: Settings) -> None:
    bad: list[str] = []
    if str(s.public.scratch_strategy).strip().lower() not in SCRATCH_STRATEGIES:
        bad.append(f"ASSET_FILEIO_SCRATCH_STRATEGY={s.public.scratch_strategy!r}")
    if str(s.public.copy_strategy).strip().lower() not in COPY_STRATEGIES:
        bad.append(f"ASSET_FILEIO_COPY_STRATEGY={s.public.copy_strategy!r}")
    if int(s.public.copy_chunk_size) <= 0:
        bad.append("ASSET_FILEIO_COPY_CHUNK_SIZE must be > 0")
    if int(s.public.scratch_max_attempts) <= 0:
        bad.append("ASSET_FILEIO_SCRATCH_MAX_ATTEMPTS must be > 0")
    if bad:
        raise ConfigError("Invalid file I/O configuration: " + ", ".join(bad))


def get_safe_config_report() -> dict[str, Any]:
    """
    Deterministic config report (paths are stringified for stable JSON output).
    """
    s = get_settings()
    out: dict[str, Any] = {}
    for k, v in s.public.model_dump().items():
        out[k] = str(v) if hasattr(v, "__fspath__") else v
    return {"public": out}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    s = Settings(public=PublicConfig())
    _validate_settings(s)
    return s


class _SettingsProxy:
    """
    Lazy proxy so tests can set env vars before first access.
    """

    def __getattr__(self, name: str) -> Any:
        return getattr(get_settings(), name)

    def reload(self) -> None:
        get_settings.cache_clear()

    def snapshot(self) -> Settings:
        return get_settings()


# Single access point
SETTINGS = _SettingsProxy()
