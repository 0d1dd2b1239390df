"""
Settings shim.

The canonical config lives in `config/`:
  - `config/public_config.py` (defaults, env / `.env` overrides)
  - `config/settings.py` exposes `get_settings` and `SETTINGS`

Imports inside the package go through `asset_fileio.config`.
"""

from __future__ import annotations

from config.settings import ConfigError as ConfigError
from config.settings import Settings as Settings
from config.settings import get_settings as get_settings
