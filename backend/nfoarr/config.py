"""
Configuration Management for Nfoarr

This module centralizes process-level configuration: database location,
logging, and the signature probe used by the NFO classifier.

Administrator tunables (retry count, batch size, size window, temp path) live
in the database ``Settings`` row and are read once per pipeline instance; the
values here only provide their defaults.

All configuration values have sensible defaults and can be overridden via
environment variables for production deployment.
"""

import os
import tempfile


class Config:
    """
    Centralized configuration management using environment variables.
    """

    # =============================================================================
    # APPLICATION SETTINGS
    # =============================================================================
    APP_VERSION = "1.0.0"
    APP_TITLE = "Nfoarr"

    DEBUG = os.getenv("DEBUG", "false").lower() == "true"

    # =============================================================================
    # DATABASE CONFIGURATION
    # =============================================================================
    # When in backend/, ./data/ works. When in project root, ./backend/data/ works
    _db_path = "./data/nfoarr.db" if os.path.exists("./data") else "./backend/data/nfoarr.db"
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{_db_path}"
    )

    # =============================================================================
    # LOGGING
    # =============================================================================
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()
    LOG_JSON = os.getenv("LOG_JSON", "false").lower() == "true"

    # =============================================================================
    # SIGNATURE PROBE
    # =============================================================================
    # Fallback temp directory when the settings row has no tmp_unrar_path
    NFO_TMP_PATH = os.getenv("NFO_TMP_PATH", tempfile.gettempdir())

    # External file-type identification tool
    FILE_COMMAND = os.getenv("FILE_COMMAND", "file")

    # Probe timeout (seconds)
    PROBE_TIMEOUT = int(os.getenv("PROBE_TIMEOUT", "10"))

    # =============================================================================
    # NFO PROCESSING DEFAULTS
    # =============================================================================
    DEFAULT_MAX_NFO_PROCESSED = int(os.getenv("DEFAULT_MAX_NFO_PROCESSED", "100"))
    DEFAULT_MAX_NFO_RETRIES = int(os.getenv("DEFAULT_MAX_NFO_RETRIES", "5"))
    DEFAULT_MAX_SIZE_TO_PROCESS_NFO = int(os.getenv("DEFAULT_MAX_SIZE_TO_PROCESS_NFO", "100"))  # GB
    DEFAULT_MIN_SIZE_TO_PROCESS_NFO = int(os.getenv("DEFAULT_MIN_SIZE_TO_PROCESS_NFO", "100"))  # MB

    @classmethod
    def validate(cls) -> bool:
        """
        Validate critical configuration values.

        Returns:
            True if configuration is valid, False otherwise
        """
        if not cls.DATABASE_URL:
            return False

        if cls.PROBE_TIMEOUT <= 0:
            return False

        if cls.DEFAULT_MAX_NFO_PROCESSED <= 0:
            return False

        return True

    @classmethod
    def get_summary(cls) -> dict:
        """
        Get configuration summary for logging/debugging.

        Returns:
            Dictionary with non-sensitive configuration values
        """
        return {
            "app_version": cls.APP_VERSION,
            "debug": cls.DEBUG,
            "database_url": cls.DATABASE_URL.split("@")[-1] if "@" in cls.DATABASE_URL else "sqlite",
            "log_level": cls.LOG_LEVEL,
            "log_json": cls.LOG_JSON,
            "nfo_tmp_path": cls.NFO_TMP_PATH,
            "file_command": cls.FILE_COMMAND,
            "probe_timeout": cls.PROBE_TIMEOUT,
            "default_max_nfo_processed": cls.DEFAULT_MAX_NFO_PROCESSED,
            "default_max_nfo_retries": cls.DEFAULT_MAX_NFO_RETRIES,
        }


# Singleton instance
config = Config()
