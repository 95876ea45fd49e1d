"""
Configuration module for the TradieIQ client core.

Provides centralized configuration management with support for:
- Environment variables
- Default values
- Path resolution
- Feature flags
- Logging configuration
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file at project root
# config.py is in tradieiq/, so .env is in parent directory
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)


def _parse_bool(env_var: str, default: bool) -> bool:
    """Parse a boolean value from an environment variable."""
    value = os.getenv(env_var)
    if value is None:
        return default
    return value.lower() in ("true", "1", "t", "y", "yes")


def _parse_int(env_var: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back on junk."""
    value = os.getenv(env_var)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Config:
    """
    Configuration class for the TradieIQ client core and its local backends.

    Supports configuration via environment variables (and .env file) with sensible defaults.
    All paths are resolved relative to the repository root.
    """

    def __init__(self):
        """Initialize configuration from environment variables and defaults."""
        # Repository root detection
        self._repo_root = self._find_repo_root()

        # Local backend database
        self.db_path = self._resolve_db_path()

        # Logging configuration
        self.log_level = os.getenv("TRADIEIQ_LOG_LEVEL", "INFO").upper()
        self.log_file = self._resolve_log_path()

        # Server configuration
        self.server_name = os.getenv("TRADIEIQ_SERVER_NAME", "tradieiq-mcp-server")

        # Feature flags. Earlier client builds shipped with Google sign-in
        # hidden and recording on; both are explicit switches here.
        self.enable_google_sign_in = _parse_bool("TRADIEIQ_ENABLE_GOOGLE_SIGN_IN", False)
        self.enable_recording = _parse_bool("TRADIEIQ_ENABLE_RECORDING", True)

        # Form and notification defaults
        self.min_password_length = _parse_int("TRADIEIQ_MIN_PASSWORD_LENGTH", 6)
        self.notification_ms = _parse_int("TRADIEIQ_NOTIFICATION_MS", 4000)

        # Local auth backend
        self.max_failed_sign_ins = _parse_int("TRADIEIQ_MAX_FAILED_SIGN_INS", 5)
        self.sign_in_lockout_seconds = _parse_int("TRADIEIQ_SIGN_IN_LOCKOUT_SECONDS", 300)

        # Account the local backend signs in for Google sign-in
        self.google_account_email = os.getenv("TRADIEIQ_GOOGLE_ACCOUNT_EMAIL") or None
        self.google_account_name = os.getenv("TRADIEIQ_GOOGLE_ACCOUNT_NAME") or None

    def _find_repo_root(self) -> Path:
        """
        Find the repository root directory.

        Returns:
            Path to repository root (parent of the tradieiq package)
        """
        current_file = Path(__file__).resolve()
        return current_file.parent.parent

    def _resolve_db_path(self) -> Path:
        """
        Resolve the local backend database path from environment or default.

        Resolution order:
        1. TRADIEIQ_DB environment variable (absolute or relative)
        2. TRADIEIQ_ROOT/data/tradieiq.db
        3. Default: <repo_root>/data/tradieiq.db

        Returns:
            Resolved absolute Path to database
        """
        db_env = os.getenv("TRADIEIQ_DB")
        if db_env:
            db_path = Path(db_env)
            if db_path.is_absolute():
                return db_path
            return self._repo_root / db_path

        root_env = os.getenv("TRADIEIQ_ROOT")
        if root_env:
            return Path(root_env) / "data" / "tradieiq.db"

        return self._repo_root / "data" / "tradieiq.db"

    def _resolve_log_path(self) -> Optional[Path]:
        """
        Resolve the log file path from environment.

        If TRADIEIQ_LOG_FILE is set, logs will be written to that file.
        Otherwise, logs go to stderr only.

        Returns:
            Path to log file, or None for stderr-only logging
        """
        log_env = os.getenv("TRADIEIQ_LOG_FILE")
        if not log_env:
            return None

        log_path = Path(log_env)
        if log_path.is_absolute():
            return log_path
        return self._repo_root / log_path

    def setup_logging(self):
        """
        Configure logging based on configuration settings.

        Sets up logging to stderr and optionally to a file.
        Log level is controlled by TRADIEIQ_LOG_LEVEL.
        """
        numeric_level = getattr(logging, self.log_level, logging.INFO)

        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(numeric_level)

        # Remove existing handlers to avoid duplicates
        root_logger.handlers.clear()

        # Always add stderr handler
        stderr_handler = logging.StreamHandler()
        stderr_handler.setLevel(numeric_level)
        stderr_handler.setFormatter(formatter)
        root_logger.addHandler(stderr_handler)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(self.log_file)
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

            logging.info(f"Logging to file: {self.log_file}")

        logging.info(f"Log level set to: {self.log_level}")
        logging.info(f"Database path: {self.db_path}")
        logging.info(
            f"Features: google_sign_in={self.enable_google_sign_in} "
            f"recording={self.enable_recording}"
        )

    def get_db_path_str(self) -> str:
        """Get database path as string for the sqlite backends."""
        return str(self.db_path)

    def validate(self) -> list[str]:
        """
        Validate configuration and return any warnings.

        Returns:
            List of warning messages (empty if all valid)
        """
        warnings = []

        if self.min_password_length < 1:
            warnings.append(
                f"TRADIEIQ_MIN_PASSWORD_LENGTH={self.min_password_length} is below 1; "
                "empty passwords will only be rejected by the empty-field check."
            )

        if self.notification_ms <= 0:
            warnings.append(
                f"TRADIEIQ_NOTIFICATION_MS={self.notification_ms} hides notifications immediately."
            )

        if self.enable_google_sign_in and not self.google_account_email:
            warnings.append(
                "TRADIEIQ_ENABLE_GOOGLE_SIGN_IN is on but TRADIEIQ_GOOGLE_ACCOUNT_EMAIL is not set; "
                "Google sign-in will fail."
            )

        if self.sign_in_lockout_seconds <= 0:
            warnings.append(
                f"TRADIEIQ_SIGN_IN_LOCKOUT_SECONDS={self.sign_in_lockout_seconds} disables the sign-in lockout."
            )

        # Check if log file directory is writable (if configured)
        if self.log_file:
            log_dir = self.log_file.parent
            if not log_dir.exists():
                try:
                    log_dir.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    warnings.append(f"Cannot create log directory {log_dir}: {e}")
            elif not os.access(log_dir, os.W_OK):
                warnings.append(f"Log directory not writable: {log_dir}")

        return warnings


# Global configuration instance
config = Config()


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Global Config instance
    """
    return config
