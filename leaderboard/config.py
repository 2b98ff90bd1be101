"""
Configuration management for the leaderboard.
Supports both JSON file configuration and environment variable overrides.
Secrets are read from the environment only and never written to the file.
"""

import copy
import json
import logging
import os
import secrets
from pathlib import Path
from typing import Dict, Any, Optional

from .errors import ConfigurationError
from .validation import MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)


class LeaderboardConfig:
    """Configuration management for the leaderboard."""

    DEFAULT_CONFIG = {
        "site_name": "Leaderboard",
        "subtitle": "Live rankings",
        "ui": {
            "show_timestamps": True,
            "max_leaderboard_entries": 0,  # 0 shows every entry
        },
        "admin": {
            "session_max_age": 12 * 60 * 60,
            "setup_token_max_age": 10 * 60,
            "min_password_length": MIN_PASSWORD_LENGTH,
        },
    }

    SETUP_KEY_ENV = "ADMIN_SETUP_KEY"
    SESSION_SECRET_ENV = "SESSION_SECRET"

    def __init__(
        self,
        config_path: str = "leaderboard_config.json",
    ) -> None:
        """Initialize configuration from file, environment variables, or defaults."""
        self.config_path = Path(config_path)
        self.config = self._load_config()
        self._apply_env_overrides()
        self._validate_config()

        self._setup_key = os.getenv(self.SETUP_KEY_ENV) or None
        self._session_secret = os.getenv(self.SESSION_SECRET_ENV) or None

        if self._session_secret is None:
            logger.warning(
                "%s is not set, using a random key; admin sessions end on restart",
                self.SESSION_SECRET_ENV,
            )
            self._session_secret = secrets.token_hex(32)

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from JSON file or create default.

        @return: Dictionary containing the loaded configuration
        """
        config = copy.deepcopy(self.DEFAULT_CONFIG)

        if not self.config_path.exists():
            self._create_default_config()
            return config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.error("Error loading config from %s: %s", self.config_path, e)
            logger.error("Using default configuration")
            return config

        if not isinstance(loaded_config, dict):
            logger.error("Config file %s is not a JSON object, using defaults", self.config_path)
            return config

        # Merge with defaults to ensure all keys exist
        self._deep_merge(config, loaded_config)
        return config

    def _deep_merge(
        self,
        base_dict: Dict[str, Any],
        update_dict: Dict[str, Any],
    ) -> None:
        """
        Recursively merge dictionaries.

        @param base_dict: Base dictionary to merge into
        @param update_dict: Dictionary with updates to merge
        """
        for key, value in update_dict.items():
            if (
                key in base_dict
                and isinstance(base_dict[key], dict)
                and isinstance(value, dict)
            ):
                self._deep_merge(base_dict[key], value)
            else:
                base_dict[key] = value

    def _apply_env_overrides(self) -> None:
        """
        Apply environment variable overrides to configuration.

        Environment variables follow the pattern: SECTION_KEY (e.g., SITE_NAME, SESSION_MAX_AGE)
        """
        env_mappings = {
            "SITE_NAME": ("site_name",),
            "SUBTITLE": ("subtitle",),

            # UI configuration
            "SHOW_TIMESTAMPS": ("ui", "show_timestamps"),
            "MAX_LEADERBOARD_ENTRIES": ("ui", "max_leaderboard_entries"),

            # Admin configuration
            "SESSION_MAX_AGE": ("admin", "session_max_age"),
            "SETUP_TOKEN_MAX_AGE": ("admin", "setup_token_max_age"),
            "MIN_PASSWORD_LENGTH": ("admin", "min_password_length"),
        }

        for env_var, config_path in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                converted_value = self._convert_env_value(env_value)
                self._set_nested_config(config_path, converted_value)

    def _convert_env_value(self, value: str) -> Any:
        """
        Convert environment variable string to appropriate type.

        @param value: String value from environment variable
        @return: Converted value (bool, int, or string)
        """
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        return value

    def _set_nested_config(self, path: tuple, value: Any) -> None:
        """
        Set a nested configuration value using a path tuple.

        @param path: Tuple representing the nested path (e.g., ("admin", "session_max_age"))
        @param value: Value to set
        """
        current = self.config
        for key in path[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    def _create_default_config(self) -> None:
        """
        Create a default configuration file.

        Writes the default configuration to the configured file path.
        """
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self.DEFAULT_CONFIG, f, indent=2)
            logger.info("Created default configuration file: %s", self.config_path)
        except IOError as e:
            logger.warning("Could not create config file %s: %s", self.config_path, e)

    def _validate_positive_int(
        self,
        section: str,
        key: str,
        minimum: int = 1,
    ) -> None:
        if not isinstance(self.config.get(section), dict):
            logger.warning("Invalid %s section, using defaults", section)
            self.config[section] = copy.deepcopy(self.DEFAULT_CONFIG[section])

        value = self.config[section].get(key)
        default = self.DEFAULT_CONFIG[section][key]

        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            logger.warning("Invalid %s.%s, using %s", section, key, default)
            self.config[section][key] = default

    def _validate_config(self) -> None:
        """
        Validate configuration values.

        Checks configuration values for validity and sets defaults for invalid values.
        """
        self._validate_positive_int("ui", "max_leaderboard_entries", minimum=0)
        self._validate_positive_int("admin", "session_max_age")
        self._validate_positive_int("admin", "setup_token_max_age")
        self._validate_positive_int(
            "admin", "min_password_length", minimum=MIN_PASSWORD_LENGTH
        )

    def get(
        self,
        *keys: str,
    ) -> Any:
        """
        Get nested configuration value.

        @param keys: Variable arguments representing nested keys to traverse
        @return: Configuration value at the specified path, None if not found
        """
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return None
        return value

    @property
    def setup_key_configured(self) -> bool:
        return self._setup_key is not None

    def get_setup_key(self) -> str:
        """
        Return the server-held setup secret.

        @return: The value of ADMIN_SETUP_KEY
        @raise ConfigurationError: If the secret is not set
        """
        if self._setup_key is None:
            raise ConfigurationError(
                "Admin setup is not configured on the server. "
                f"Please set the {self.SETUP_KEY_ENV} environment variable."
            )
        return self._setup_key

    def get_session_secret(self) -> bytes:
        return self._session_secret.encode("utf-8")

    def set_secrets(
        self,
        setup_key: Optional[str] = None,
        session_secret: Optional[str] = None,
    ) -> None:
        """
        Replace the secrets read from the environment.

        @param setup_key: New setup secret, None leaves the current one
        @param session_secret: New signing key, None leaves the current one
        """
        if setup_key is not None:
            self._setup_key = setup_key
        if session_secret is not None:
            self._session_secret = session_secret

