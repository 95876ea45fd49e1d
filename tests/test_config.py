"""
Unit tests for configuration module.

Tests configuration loading, path resolution, feature flags and validation.
"""

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from tradieiq.config import Config


@pytest.fixture
def restore_root_logger():
    """setup_logging replaces root handlers; put pytest's back afterwards."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


class TestConfig:
    """Test suite for Config class."""

    def test_default_configuration(self):
        """Test that default configuration values are set correctly."""
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

            assert config.log_level == "INFO"
            assert config.log_file is None
            assert config.server_name == "tradieiq-mcp-server"
            assert config.enable_google_sign_in is False
            assert config.enable_recording is True
            assert config.min_password_length == 6
            assert config.notification_ms == 4000
            assert config.max_failed_sign_ins == 5
            assert config.sign_in_lockout_seconds == 300
            assert config.google_account_email is None
            assert config.google_account_name is None

            assert config._repo_root.exists()
            assert config._repo_root.is_dir()

    def test_db_path_from_env_absolute(self):
        test_path = "/absolute/path/to/tradieiq.db"
        with patch.dict(os.environ, {"TRADIEIQ_DB": test_path}, clear=True):
            config = Config()
            assert str(config.db_path) == test_path

    def test_db_path_from_env_relative(self):
        with patch.dict(os.environ, {"TRADIEIQ_DB": "custom/jobs.db"}, clear=True):
            config = Config()
            assert config.db_path.name == "jobs.db"
            assert config.db_path.is_absolute()
            assert "custom" in str(config.db_path)

    def test_db_path_from_root(self):
        with patch.dict(os.environ, {"TRADIEIQ_ROOT": "/opt/tradieiq"}, clear=True):
            config = Config()
            assert config.db_path == Path("/opt/tradieiq") / "data" / "tradieiq.db"

    def test_db_path_default(self):
        with patch.dict(os.environ, {}, clear=True):
            config = Config()
            assert config.db_path.name == "tradieiq.db"
            assert config.db_path.parent.name == "data"

    def test_db_path_priority(self):
        """TRADIEIQ_DB takes priority over TRADIEIQ_ROOT."""
        with patch.dict(
            os.environ, {"TRADIEIQ_DB": "/custom/db.db", "TRADIEIQ_ROOT": "/opt/tradieiq"}, clear=True
        ):
            config = Config()
            assert str(config.db_path) == "/custom/db.db"

    def test_log_level_case_insensitive(self):
        with patch.dict(os.environ, {"TRADIEIQ_LOG_LEVEL": "debug"}, clear=True):
            config = Config()
            assert config.log_level == "DEBUG"

    def test_log_file_from_env_relative(self):
        with patch.dict(os.environ, {"TRADIEIQ_LOG_FILE": "logs/server.log"}, clear=True):
            config = Config()
            assert config.log_file.name == "server.log"
            assert "logs" in str(config.log_file)

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("YES", True), ("off", False)])
    def test_feature_flags_from_env(self, raw, expected):
        with patch.dict(
            os.environ,
            {"TRADIEIQ_ENABLE_GOOGLE_SIGN_IN": raw, "TRADIEIQ_ENABLE_RECORDING": raw},
            clear=True,
        ):
            config = Config()
            assert config.enable_google_sign_in is expected
            assert config.enable_recording is expected

    def test_integer_settings_from_env(self):
        with patch.dict(
            os.environ,
            {
                "TRADIEIQ_MIN_PASSWORD_LENGTH": "10",
                "TRADIEIQ_NOTIFICATION_MS": "2500",
                "TRADIEIQ_MAX_FAILED_SIGN_INS": "3",
                "TRADIEIQ_SIGN_IN_LOCKOUT_SECONDS": "60",
            },
            clear=True,
        ):
            config = Config()
            assert config.min_password_length == 10
            assert config.notification_ms == 2500
            assert config.max_failed_sign_ins == 3
            assert config.sign_in_lockout_seconds == 60

    def test_google_account_from_env(self):
        with patch.dict(
            os.environ,
            {"TRADIEIQ_GOOGLE_ACCOUNT_EMAIL": "tom@gmail.com", "TRADIEIQ_GOOGLE_ACCOUNT_NAME": "Tom Builder"},
            clear=True,
        ):
            config = Config()
            assert config.google_account_email == "tom@gmail.com"
            assert config.google_account_name == "Tom Builder"

    def test_integer_settings_fall_back_on_junk(self):
        with patch.dict(os.environ, {"TRADIEIQ_NOTIFICATION_MS": "soon"}, clear=True):
            config = Config()
            assert config.notification_ms == 4000

    def test_server_name_from_env(self):
        with patch.dict(os.environ, {"TRADIEIQ_SERVER_NAME": "custom-server"}, clear=True):
            config = Config()
            assert config.server_name == "custom-server"

    def test_get_db_path_str(self):
        with patch.dict(os.environ, {"TRADIEIQ_DB": "/test/db.db"}, clear=True):
            config = Config()
            assert config.get_db_path_str() == "/test/db.db"


class TestConfigValidate:
    def test_defaults_have_no_warnings(self):
        with patch.dict(os.environ, {}, clear=True):
            assert Config().validate() == []

    def test_warns_on_zero_password_length(self):
        with patch.dict(os.environ, {"TRADIEIQ_MIN_PASSWORD_LENGTH": "0"}, clear=True):
            warnings = Config().validate()
            assert any("TRADIEIQ_MIN_PASSWORD_LENGTH" in w for w in warnings)

    def test_warns_on_non_positive_notification_duration(self):
        with patch.dict(os.environ, {"TRADIEIQ_NOTIFICATION_MS": "0"}, clear=True):
            warnings = Config().validate()
            assert any("TRADIEIQ_NOTIFICATION_MS" in w for w in warnings)

    def test_warns_on_google_sign_in_without_account(self):
        with patch.dict(os.environ, {"TRADIEIQ_ENABLE_GOOGLE_SIGN_IN": "1"}, clear=True):
            warnings = Config().validate()
            assert any("TRADIEIQ_GOOGLE_ACCOUNT_EMAIL" in w for w in warnings)

        env = {"TRADIEIQ_ENABLE_GOOGLE_SIGN_IN": "1", "TRADIEIQ_GOOGLE_ACCOUNT_EMAIL": "tom@gmail.com"}
        with patch.dict(os.environ, env, clear=True):
            assert Config().validate() == []

    def test_log_directory_created(self, tmp_path):
        log_file = tmp_path / "logs" / "test.log"
        with patch.dict(os.environ, {"TRADIEIQ_LOG_FILE": str(log_file)}, clear=True):
            warnings = Config().validate()

            assert not [w for w in warnings if "Log directory" in w]
            assert log_file.parent.is_dir()


class TestSetupLogging:
    def test_setup_logging_default(self, restore_root_logger):
        with patch.dict(os.environ, {}, clear=True):
            Config().setup_logging()

            root_logger = logging.getLogger()
            assert root_logger.level == logging.INFO
            assert len(root_logger.handlers) >= 1

    def test_setup_logging_with_file(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "nested" / "tradieiq.log"
        with patch.dict(
            os.environ,
            {"TRADIEIQ_LOG_FILE": str(log_file), "TRADIEIQ_LOG_LEVEL": "DEBUG"},
            clear=True,
        ):
            Config().setup_logging()

            root_logger = logging.getLogger()
            assert root_logger.level == logging.DEBUG
            assert len(root_logger.handlers) >= 2
            assert log_file.parent.is_dir()

    def test_setup_logging_invalid_level_falls_back_to_info(self, restore_root_logger):
        with patch.dict(os.environ, {"TRADIEIQ_LOG_LEVEL": "CHATTY"}, clear=True):
            Config().setup_logging()
            assert logging.getLogger().level == logging.INFO
