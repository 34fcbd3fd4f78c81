#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Configuration module for Videocatalog.

Defines configuration parameters and loads values from environment variables.
"""

import os
import logging
from typing import Dict, Any

# Initialize a basic logger for config loading issues
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Default configuration values
_CONFIG_DEFAULTS: Dict[str, Any] = {
    # YouTube API Configuration
    "API_KEY": "",
    "API_KEY_ENV_VAR": "YOUTUBE_API_KEY",

    # Import search window (fixed for every import run)
    "SEARCH_QUERY": "manipulação medicamentos",
    "SEARCH_REGION_CODE": "BR",
    "MAX_SEARCH_RESULTS": 10,
    "SEARCH_PUBLISHED_AFTER": "2025-01-01T00:00:00Z",
    "SEARCH_PUBLISHED_BEFORE": "2026-01-01T00:00:00Z",

    # Database
    "DATABASE_URL": "sqlite:///./videocatalog.db",
    "DB_ECHO": False,

    # Authentication
    "AUTH_USERNAME": "admin",
    "AUTH_PASSWORD": "password",
    "AUTH_SECRET_KEY": "",
    "AUTH_SECRET_SALT": "videocatalog-token-salt",
    "TOKEN_TTL_SECONDS": 1800,  # 30 minutes
    "TOKEN_ISSUER": "videocatalog",
    "TOKEN_AUDIENCE": "videocatalog-clients",

    # Error responses
    "EXPOSE_ERROR_DETAILS": False,  # Append exception messages to 500 responses

    # Web Server
    "DEFAULT_ENCODING": "utf-8",
    "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,  # 1MB max POST/PUT body size

    # CORS
    "ALLOWED_ORIGINS": [
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ],
}


class Config:
    """Configuration class that loads values from environment variables."""

    def __init__(self, load_from_env=True):
        """Initialize configuration with default values and optionally from environment.

        Args:
            load_from_env: Whether to load values from environment variables
        """
        # Set all default values as attributes
        for key, value in _CONFIG_DEFAULTS.items():
            setattr(self, key, value)

        # Load from environment if requested
        if load_from_env:
            self.load_from_env()

    def load_from_env(self):
        """Load configuration values from environment variables."""
        # Load API key
        self.API_KEY = os.environ.get(self.API_KEY_ENV_VAR, self.API_KEY)

        # Load CORS origins
        env_origins = os.environ.get("ALLOWED_ORIGINS", "")
        if env_origins:
            origins = [origin.strip() for origin in env_origins.split(",")]
            self.ALLOWED_ORIGINS = [o for o in origins if o]
            logger.info(f"CORS origins set from environment: {self.ALLOWED_ORIGINS}")

        # Plain string values
        for key in ("DATABASE_URL", "SEARCH_QUERY", "SEARCH_REGION_CODE",
                    "SEARCH_PUBLISHED_AFTER", "SEARCH_PUBLISHED_BEFORE",
                    "AUTH_USERNAME", "AUTH_PASSWORD", "AUTH_SECRET_KEY",
                    "AUTH_SECRET_SALT", "TOKEN_ISSUER", "TOKEN_AUDIENCE"):
            self._load_str_from_env(key)

        # Load numeric values with type conversion
        self._load_int_from_env("MAX_SEARCH_RESULTS")
        self._load_int_from_env("TOKEN_TTL_SECONDS")
        self._load_int_from_env("MAX_CONTENT_LENGTH")

        self._load_bool_from_env("DB_ECHO")
        self._load_bool_from_env("EXPOSE_ERROR_DETAILS")

        # Warn if API key is missing
        if not self.API_KEY:
            logger.warning(f"API key not found in env var {self.API_KEY_ENV_VAR}. Video import will be unavailable.")

    def _load_str_from_env(self, key):
        """Load a string value from environment variable.

        Args:
            key: The configuration key to load

        Returns:
            bool: True if the value was loaded, False otherwise
        """
        env_value = os.environ.get(key)
        if env_value:
            setattr(self, key, env_value)
            return True
        return False

    def _load_int_from_env(self, key):
        """Load an integer value from environment variable.

        Args:
            key: The configuration key to load

        Returns:
            bool: True if the value was loaded, False otherwise
        """
        env_value = os.environ.get(key)
        if env_value is not None:
            try:
                setattr(self, key, int(env_value))
                return True
            except ValueError:
                logger.warning(f"Invalid integer value for {key}: {env_value}")
        return False

    def _load_bool_from_env(self, key):
        """Load a boolean flag ("true", "1", "yes", "on") from environment variable."""
        env_value = os.environ.get(key)
        if env_value is not None:
            setattr(self, key, env_value.strip().lower() in ("true", "1", "yes", "y", "on"))
            return True
        return False


# Create a single instance of Config to be imported by other modules
config = Config(load_from_env=True)
