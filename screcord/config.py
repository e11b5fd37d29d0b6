"""
Configuration parser for screcord.

Handles TOML file parsing. Only a [General] table is recognized:

    [General]
    timezone = "Asia/Tokyo"
    prodid = "-//screcord//screcord//EN"
    debug = false
"""

import tomllib
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from . import timezone_utils
from .debug import set_debug, debug_print


DEFAULT_PRODID = "-//screcord//screcord//EN"


@dataclass
class Config:
    """Main configuration container for screcord."""

    timezone: str = "UTC"
    prodid: str = DEFAULT_PRODID
    debug: bool = False
    source: Optional[Path] = None  # File this was loaded from, if any

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'screcord' / 'screcord.toml'

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from a TOML file.

        Without an explicit path the default location is tried, and
        built-in defaults are used when nothing is there. An explicit
        path that does not exist is an error.
        """
        if config_path is None:
            config_path = cls.get_default_config_path()
            if not config_path.exists():
                return cls()
        elif not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)

        general = data.get('General', {})
        config = cls(
            timezone=general.get('timezone', cls.timezone),
            prodid=general.get('prodid', cls.prodid),
            debug=bool(general.get('debug', cls.debug)),
            source=config_path,
        )
        debug_print("CONFIG", f"Loaded configuration from {config_path}")
        return config

    def apply(self) -> None:
        """Push timezone and debug settings into the running process."""
        set_debug(self.debug)
        timezone_utils.set_timezone(self.timezone)
        debug_print("CONFIG", f"Local timezone {timezone_utils.get_timezone_name()} ({self.source or 'defaults'})")
