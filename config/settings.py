from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from pydantic import ValidationError

from desk_notify.errors import NotifyError

from .bus_config import BusConfig
from .public_config import PublicConfig


class ConfigError(NotifyError):
    pass


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Merged settings view (dot-access).

    Precedence:
      - bus config overrides public when names overlap
    """

    public: PublicConfig
    bus: BusConfig

    def __getattr__(self, name: str) -> Any:
        if hasattr(self.bus, name):
            return getattr(self.bus, name)
        return getattr(self.public, name)


def _validate(s: Settings) -> None:
    if int(s.public.await_grace_ms) < 0:
        raise ConfigError("NOTIFY_AWAIT_GRACE_MS must be >= 0")
    if float(s.bus.connect_timeout_sec) <= 0:
        raise ConfigError("NOTIFY_CONNECT_TIMEOUT_SEC must be > 0")


def get_safe_config_report() -> dict[str, Any]:
    """
    Deterministic config report (paths are stringified).
    """
    s = get_settings()
    out: dict[str, Any] = {}
    for section, model in (("public", s.public), ("bus", s.bus)):
        vals: dict[str, Any] = {}
        for k, v in sorted(model.model_dump().items()):
            vals[k] = str(v) if hasattr(v, "__fspath__") else v
        out[section] = vals
    return out


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    try:
        s = Settings(public=PublicConfig(), bus=BusConfig())
    except ValidationError as ex:
        raise ConfigError(f"invalid configuration: {ex}") from ex
    _validate(s)
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
