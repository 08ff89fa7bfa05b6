"""
Tests for environment-driven settings.
"""
import os
import subprocess
import sys
from pathlib import Path

import pytest

from apnspush.core.config import Settings, get_settings

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        for name in ("APNS_KEY_FILE", "APNS_USE_SANDBOX", "LOG_LEVEL", "APNS_TIMEOUT_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        config = Settings(_env_file=None)

        assert config.APNS_KEY_FILE is None
        assert config.APNS_USE_SANDBOX is False
        assert config.APNS_TIMEOUT_SECONDS == 30.0
        assert config.APNS_CONNECT_TIMEOUT_SECONDS == 10.0
        assert config.LOG_LEVEL == "INFO"
        assert config.apns_ready is False

    def test_reads_environment(self, monkeypatch, test_key_file):
        monkeypatch.setenv("APNS_KEY_FILE", test_key_file)
        monkeypatch.setenv("APNS_KEY_ID", "KEYID12345")
        monkeypatch.setenv("APNS_TEAM_ID", "TEAMID1234")
        monkeypatch.setenv("APNS_BUNDLE_ID", "com.example.app")
        monkeypatch.setenv("APNS_USE_SANDBOX", "true")

        config = get_settings()

        assert config.APNS_KEY_ID == "KEYID12345"
        assert config.APNS_USE_SANDBOX is True
        assert config.apns_ready is True

    def test_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("APNS_BUNDLE_ID", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("APNS_BUNDLE_ID=com.example.fromfile\nUNRELATED=1\n")

        config = Settings(_env_file=str(env_file))

        assert config.APNS_BUNDLE_ID == "com.example.fromfile"

    def test_apns_not_ready_when_key_missing(self, tmp_path):
        config = Settings(
            _env_file=None,
            APNS_KEY_FILE=str(tmp_path / "missing.p8"),
            APNS_KEY_ID="KEYID12345",
            APNS_TEAM_ID="TEAMID1234",
            APNS_BUNDLE_ID="com.example.app",
        )
        assert config.apns_ready is False

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, LOG_LEVEL="chatty")

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, APNS_TIMEOUT_SECONDS=0)


class TestImportWithBadEnvironment:
    """Importing the package must not read settings."""

    def _import_package(self, cwd, **env):
        environ = {**os.environ, "PYTHONPATH": str(PROJECT_ROOT), **env}
        return subprocess.run(
            [sys.executable, "-c", "import apnspush; import apnspush.core.logging_config"],
            cwd=cwd,
            env=environ,
            capture_output=True,
            text=True,
        )

    def test_invalid_log_level_in_environment(self, tmp_path):
        proc = self._import_package(tmp_path, LOG_LEVEL="trace")

        assert proc.returncode == 0, proc.stderr

    def test_invalid_value_in_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("APNS_USE_SANDBOX=maybe\n")

        proc = self._import_package(tmp_path)

        assert proc.returncode == 0, proc.stderr

    def test_invalid_settings_still_reported_when_read(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "trace")

        with pytest.raises(ValueError):
            get_settings()
