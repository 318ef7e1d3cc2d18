"""
Configuration manager for EventPump.

Loads and saves stream and storage settings from a config.ini file so a
host can tune sessions without code changes.
"""

import configparser
import logging
from typing import Dict, Any
from utils.constants import (
    CONFIG_FILE_PATH,
    CACHE_MECHANISM,
    DEFAULT_SLEEP_TIME,
    DEFAULT_EXEC_LIMIT,
    DEFAULT_CLIENT_RECONNECT,
    DEFAULT_KEEP_ALIVE_TIME,
)


class ConfigManager:
    """Manages application configuration loading and saving."""

    # Default configuration values
    DEFAULTS = {
        'Stream': {
            'sleep_time': DEFAULT_SLEEP_TIME,
            'exec_limit': DEFAULT_EXEC_LIMIT,
            'client_reconnect': DEFAULT_CLIENT_RECONNECT,
            'allow_cors': False,
            'keep_alive_time': DEFAULT_KEEP_ALIVE_TIME,
            'use_chunked_encoding': False,
        },
        'Storage': {
            'mechanism': CACHE_MECHANISM,
            'path': '',
        },
        'Logging': {
            'enable_debug_logging': False,
        },
    }

    def __init__(self, config_path: str = CONFIG_FILE_PATH):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file (defaults to CONFIG_FILE_PATH constant)
        """
        self.config_path = config_path
        self.config = configparser.ConfigParser()

    def load_settings(self) -> Dict[str, Any]:
        """
        Load application settings from config file.

        Returns:
            Dictionary containing all application settings with proper types
        """
        self.config.read(self.config_path)

        settings = {}

        # === Stream Settings ===
        stream = self.DEFAULTS['Stream']
        settings['sleep_time'] = self.config.getfloat(
            'Stream', 'sleep_time', fallback=stream['sleep_time']
        )
        settings['exec_limit'] = self.config.getint(
            'Stream', 'exec_limit', fallback=stream['exec_limit']
        )
        settings['client_reconnect'] = self.config.getint(
            'Stream', 'client_reconnect', fallback=stream['client_reconnect']
        )
        settings['allow_cors'] = self.config.getboolean(
            'Stream', 'allow_cors', fallback=stream['allow_cors']
        )
        settings['keep_alive_time'] = self.config.getint(
            'Stream', 'keep_alive_time', fallback=stream['keep_alive_time']
        )
        settings['use_chunked_encoding'] = self.config.getboolean(
            'Stream', 'use_chunked_encoding', fallback=stream['use_chunked_encoding']
        )

        # === Storage Settings ===
        settings['mechanism'] = self.config.get(
            'Storage', 'mechanism', fallback=self.DEFAULTS['Storage']['mechanism']
        )
        settings['path'] = self.config.get(
            'Storage', 'path', fallback=self.DEFAULTS['Storage']['path']
        )

        # === Logging Settings ===
        settings['enable_debug_logging'] = self.config.getboolean(
            'Logging', 'enable_debug_logging',
            fallback=self.DEFAULTS['Logging']['enable_debug_logging']
        )

        logging.debug(f"Loaded settings from {self.config_path}")
        return settings

    def save_settings(self, settings: Dict[str, Any]) -> None:
        """
        Save application settings to config file.

        Args:
            settings: Dictionary containing all application settings
        """
        # Read existing config to preserve other sections
        self.config.read(self.config_path)

        for section, keys in self.DEFAULTS.items():
            if not self.config.has_section(section):
                self.config.add_section(section)
            for key in keys:
                self.config.set(section, key, str(settings.get(key, keys[key])))

        try:
            with open(self.config_path, 'w') as f:
                self.config.write(f)
            logging.debug(f"Saved settings to {self.config_path}")
        except (IOError, OSError) as e:
            logging.error(f"Failed to save settings to {self.config_path}: {e}")
            raise

    def get_default_settings(self) -> Dict[str, Any]:
        """
        Get default application settings.

        Returns:
            Dictionary containing default settings with proper types
        """
        settings = {}

        # Flatten the DEFAULTS structure
        for section in self.DEFAULTS.values():
            settings.update(section)

        return settings
