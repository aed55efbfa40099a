"""Tests for configuration management."""

import logging

import pytest

from mailrules.config import ConfigError, load_imap_config, load_run_config, setup_logging

ENV_KEYS = (
    "IMAP_HOST", "IMAP_PORT", "IMAP_USER", "IMAP_PASSWORD", "IMAP_SSL",
    "IMAP_STARTTLS", "LOG_LEVEL", "LOG_DIR", "LOG_RETENTION_DAYS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestCredentials:
    """Test credential resolution order."""

    def test_missing_server(self, monkeypatch):
        monkeypatch.setenv("IMAP_USER", "user@example.com")
        monkeypatch.setenv("IMAP_PASSWORD", "password")

        with pytest.raises(ConfigError, match="server"):
            load_imap_config()

    def test_missing_password(self):
        with pytest.raises(ConfigError, match="password"):
            load_imap_config(server="imap.example.com", user="bob")

    def test_from_environment(self, monkeypatch):
        self._set_required_env(monkeypatch)

        config = load_imap_config()
        assert config.host == "imap.example.com"
        assert config.user == "user@example.com"
        assert config.password == "password"

    def test_arguments_override_environment(self, monkeypatch):
        self._set_required_env(monkeypatch)

        config = load_imap_config(server="cli.example.com", user="cli")
        assert config.host == "cli.example.com"
        assert config.user == "cli"
        assert config.password == "password"

    def test_rule_file_credentials_fill_gaps(self, monkeypatch):
        monkeypatch.setenv("IMAP_USER", "env-user")
        fallback = {"server": "file.example.com", "username": "file-user", "password": "pw"}

        config = load_imap_config(fallback=fallback)
        assert config.host == "file.example.com"
        assert config.user == "env-user"
        assert config.password == "pw"

    def _set_required_env(self, monkeypatch):
        """Set required environment variables."""
        monkeypatch.setenv("IMAP_HOST", "imap.example.com")
        monkeypatch.setenv("IMAP_USER", "user@example.com")
        monkeypatch.setenv("IMAP_PASSWORD", "password")


class TestSSLAutoDetection:
    """Test SSL/STARTTLS auto-detection."""

    def test_port_993_uses_ssl(self, monkeypatch):
        self._set_required_env(monkeypatch)
        monkeypatch.setenv("IMAP_PORT", "993")

        config = load_imap_config()
        assert config.use_ssl is True

    def test_port_143_is_plain(self, monkeypatch):
        self._set_required_env(monkeypatch)
        monkeypatch.setenv("IMAP_PORT", "143")

        config = load_imap_config()
        assert config.use_ssl is False
        assert config.starttls is False

    def test_explicit_ssl_override(self, monkeypatch):
        self._set_required_env(monkeypatch)
        monkeypatch.setenv("IMAP_PORT", "143")
        monkeypatch.setenv("IMAP_SSL", "true")

        config = load_imap_config()
        assert config.use_ssl is True

    def test_no_ssl_argument(self, monkeypatch):
        self._set_required_env(monkeypatch)

        config = load_imap_config(use_ssl=False)
        assert config.port == 993
        assert config.use_ssl is False

    def test_starttls(self, monkeypatch):
        self._set_required_env(monkeypatch)

        config = load_imap_config(port=143, starttls=True)
        assert config.use_ssl is False
        assert config.starttls is True

    def test_ssl_and_starttls_conflict(self, monkeypatch):
        self._set_required_env(monkeypatch)
        monkeypatch.setenv("IMAP_SSL", "yes")

        with pytest.raises(ConfigError):
            load_imap_config(starttls=True)

    def test_invalid_port(self, monkeypatch):
        self._set_required_env(monkeypatch)
        monkeypatch.setenv("IMAP_PORT", "imap")

        with pytest.raises(ConfigError):
            load_imap_config()

    def _set_required_env(self, monkeypatch):
        """Set required environment variables."""
        monkeypatch.setenv("IMAP_HOST", "imap.example.com")
        monkeypatch.setenv("IMAP_USER", "user@example.com")
        monkeypatch.setenv("IMAP_PASSWORD", "password")


class TestRunConfig:
    """Test execution and logging options."""

    def test_defaults(self):
        config = load_run_config()
        assert config.dry_run is False
        assert config.use_cache is True
        assert config.log_level == "INFO"
        assert config.log_dir is None
        assert config.log_retention_days == 3

    def test_verbose_wins_over_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")

        assert load_run_config().log_level == "WARNING"
        assert load_run_config(verbose=True).log_level == "DEBUG"

    def test_log_dir_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOG_DIR", str(tmp_path))

        assert load_run_config().log_dir == str(tmp_path)


class TestSetupLogging:
    """Test logging configuration."""

    def test_file_handler(self, tmp_path):
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging("DEBUG", str(tmp_path / "logs"))
            logging.getLogger("mailrules.test").info("written to file")
            for handler in root.handlers:
                handler.flush()

            assert root.level == logging.DEBUG
            assert "written to file" in (tmp_path / "logs" / "mailrules.log").read_text()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers, root.level = saved[0], saved[1]
