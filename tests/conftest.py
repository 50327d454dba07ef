from __future__ import annotations

from collections.abc import Iterator

import pytest

from desk_notify.config import get_settings

_ENV_KEYS = (
    "NOTIFY_APP_NAME",
    "NOTIFY_AWAIT_GRACE_MS",
    "NOTIFY_LOG_LEVEL",
    "NOTIFY_LOG_FILE",
    "NOTIFY_LOG_MAX_BYTES",
    "NOTIFY_LOG_BACKUP_COUNT",
    "NOTIFY_CONNECT_TIMEOUT_SEC",
    "DBUS_SESSION_BUS_ADDRESS",
)


@pytest.fixture(autouse=True)
def _test_env(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    root = tmp_path_factory.mktemp("notify_test")
    # keep a developer's .env out of the run
    monkeypatch.chdir(root)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
