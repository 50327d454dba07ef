from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BusConfig(BaseSettings):
    """
    Session bus connection config.

    Values normally come from the desktop session environment:
      - DBUS_SESSION_BUS_ADDRESS is set by the login session
      - NOTIFY_* knobs are optional overrides
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # None lets the bus library resolve the session address itself.
    session_bus_address: str | None = Field(default=None, alias="DBUS_SESSION_BUS_ADDRESS")
    connect_timeout_sec: float = Field(default=5.0, alias="NOTIFY_CONNECT_TIMEOUT_SEC")
