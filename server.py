#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Uvicorn server entry point for the Videocatalog application.

Handles environment loading (.env), final logging configuration based on environment,
and starts the Uvicorn server process.
"""

import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

# Import config components and logging setup
from config import config
from logging_config import setup_logging


def load_environment(env_path: Path = Path(".") / ".env") -> None:
    """Load a .env file if present, then reload the configuration from the environment."""
    if env_path.is_file():
        load_dotenv(dotenv_path=env_path, override=True)
        print(f"Loaded environment variables from: {env_path.resolve()}")
    else:
        print(".env file not found, using system environment variables.")

    # Environment variables override defaults defined in Config
    config.load_from_env()


def configure_logging() -> None:
    """Set up logging from LOG_LEVEL_CONSOLE, LOG_LEVEL_FILE and LOG_STRUCTURED."""
    log_level_console_str = os.environ.get("LOG_LEVEL_CONSOLE", "INFO").upper()
    log_level_file_str = os.environ.get("LOG_LEVEL_FILE", "DEBUG").upper()
    log_structured_str = os.environ.get("LOG_STRUCTURED", "true").lower()

    setup_logging(
        log_level_console=getattr(logging, log_level_console_str, logging.INFO),
        log_level_file=getattr(logging, log_level_file_str, logging.DEBUG),
        structured=log_structured_str in ("true", "1", "yes")
    )


def main():
    """Load configuration, set up logging and run the Uvicorn server."""
    # 1. Environment and configuration
    load_environment()

    # 2. Logging based on final configuration
    configure_logging()

    # 3. Check for essential configuration
    if not config.API_KEY:
        logging.warning("=" * 80)
        logging.warning(" WARNING: YOUTUBE_API_KEY is not defined.")
        logging.warning(" Please define it in a .env file or as an environment variable.")
        logging.warning(" The catalogue will start, but POST /videos/fetch will answer 503.")
        logging.warning("=" * 80)
    if not config.AUTH_SECRET_KEY:
        logging.warning("AUTH_SECRET_KEY is not defined. Tokens will be invalidated on every restart.")

    # 4. Uvicorn server parameters
    run_host = os.environ.get("HOST", "127.0.0.1")
    try:
        run_port = int(os.environ.get("PORT", "8000"))
    except ValueError:
        logging.warning(f"Invalid PORT environment variable '{os.environ.get('PORT')}', using default 8000.")
        run_port = 8000

    # Reload should only be enabled for development
    debug_mode = os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")
    uvicorn_log_level = os.environ.get("UVICORN_LOG_LEVEL", "debug" if debug_mode else "info").lower()

    # 5. Start the Uvicorn server
    logging.info(f"Starting Uvicorn server on http://{run_host}:{run_port}")
    logging.info(f"Debug mode: {debug_mode}, Reload: {debug_mode}, Uvicorn Log Level: {uvicorn_log_level}")

    uvicorn.run(
        "main:app",
        host=run_host,
        port=run_port,
        reload=debug_mode,
        log_level=uvicorn_log_level,
    )


if __name__ == "__main__":
    main()
