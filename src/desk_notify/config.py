"""
Settings shim.

The canonical config lives in the top-level `config/` package:
  - `config/public_config.py` (request defaults, logging)
  - `config/bus_config.py` (session bus connection)
  - `config/settings.py` exposes `get_settings()`

Package code imports `from desk_notify.config import get_settings`.
"""

from __future__ import annotations

from config.settings import ConfigError as ConfigError
from config.settings import Settings as Settings
from config.settings import get_safe_config_report as get_safe_config_report
from config.settings import get_settings as get_settings
