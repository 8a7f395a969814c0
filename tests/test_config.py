"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from control_tower.config import (
    ConfigurationError,
    load_config,
    load_environment_config,
    validate_config_file,
)
from control_tower.config.environment import DEFAULT_DATABASE_URL, DEFAULT_FROM_EMAIL
from control_tower.config.models import AppConfig, NotificationsConfig, ScheduleConfig
from control_tower.config.validators import check_for_warnings

ENV_VARS = (
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_FROM",
    "GOOGLE_CHAT_WEBHOOK_URL",
    "APP_URL",
    "LOG_LEVEL",
    "DATABASE_URL",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove notifier variables and run from an empty directory."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content)
    return path


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_defaults_when_no_file(self, clean_env):
        app_config, env_config = load_config()

        assert app_config.schedule.hour == 9
        assert app_config.schedule.minute == 0
        assert app_config.schedule.timezone == "America/New_York"
        assert app_config.notifications.broadcast_role == "general_manager"
        assert app_config.notifications.app_url == "http://localhost:5173"
        assert app_config.logging.format == "key-value"
        assert env_config.smtp_configured is False
        assert env_config.database_url == DEFAULT_DATABASE_URL

    def test_load_full_config(self, clean_env, tmp_path):
        path = write_config(
            tmp_path,
            """
schedule:
  hour: 8
  minute: 30
  timezone: Europe/London
notifications:
  broadcast_role: director
  app_url: https://tower.example.com/
email:
  use_tls: false
logging:
  level: DEBUG
  format: json
""",
        )

        app_config, _ = load_config(path)

        assert app_config.schedule.hour == 8
        assert app_config.schedule.minute == 30
        assert str(app_config.schedule.tzinfo) == "Europe/London"
        assert app_config.notifications.broadcast_role == "director"
        assert app_config.notifications.app_url == "https://tower.example.com"
        assert app_config.email.use_tls is False
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"

    def test_default_location_is_picked_up(self, clean_env, tmp_path):
        write_config(tmp_path, "schedule:\n  hour: 10\n")

        app_config, _ = load_config()

        assert app_config.schedule.hour == 10

    def test_empty_file_uses_defaults(self, clean_env, tmp_path):
        path = write_config(tmp_path, "")

        app_config, _ = load_config(path)

        assert app_config == AppConfig()

    def test_explicit_missing_file_raises(self, clean_env):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(Path("missing.yaml"))

        assert "not found" in str(exc_info.value)

    def test_invalid_yaml_syntax(self, clean_env, tmp_path):
        path = write_config(tmp_path, "schedule: [unclosed\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert "YAML" in str(exc_info.value)

    def test_top_level_must_be_mapping(self, clean_env, tmp_path):
        path = write_config(tmp_path, "- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_out_of_range_hour_lists_field(self, clean_env, tmp_path):
        path = write_config(tmp_path, "schedule:\n  hour: 25\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert any("schedule -> hour" in error for error in exc_info.value.errors)

    def test_unknown_timezone_rejected(self, clean_env, tmp_path):
        path = write_config(tmp_path, "schedule:\n  timezone: Mars/Olympus\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert any("Unknown timezone" in error for error in exc_info.value.errors)

    def test_app_url_env_overrides_file(self, clean_env, tmp_path):
        path = write_config(tmp_path, "notifications:\n  app_url: https://file.example.com\n")
        clean_env.setenv("APP_URL", "https://env.example.com/")

        app_config, _ = load_config(path)

        assert app_config.notifications.app_url == "https://env.example.com"

    def test_validate_config_file_utility(self, tmp_path, capsys):
        good = write_config(tmp_path, "schedule:\n  hour: 9\n")
        assert validate_config_file(good) is True

        bad = tmp_path / "bad.yaml"
        bad.write_text("schedule:\n  minute: 99\n")
        assert validate_config_file(bad) is False
        assert "validation failed" in capsys.readouterr().out


class TestEnvironmentConfig:
    """Test environment variable loading."""

    def test_defaults(self, clean_env):
        env_config = load_environment_config()

        assert env_config.smtp_host == "localhost"
        assert env_config.smtp_port == 587
        assert env_config.smtp_from == DEFAULT_FROM_EMAIL
        assert env_config.google_chat_webhook_url is None
        assert env_config.smtp_configured is False

    def test_smtp_configured_with_credentials(self, clean_env):
        clean_env.setenv("SMTP_HOST", "smtp.example.com")
        clean_env.setenv("SMTP_PORT", "465")
        clean_env.setenv("SMTP_USER", "bot@example.com")
        clean_env.setenv("SMTP_PASS", "secret")
        clean_env.setenv("GOOGLE_CHAT_WEBHOOK_URL", "https://chat.googleapis.com/v1/spaces/x")

        env_config = load_environment_config()

        assert env_config.smtp_port == 465
        assert env_config.smtp_configured is True
        assert env_config.google_chat_webhook_url.startswith("https://chat.googleapis.com")

    def test_invalid_port(self, clean_env):
        clean_env.setenv("SMTP_PORT", "not-a-number")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert any("SMTP_PORT" in error for error in exc_info.value.errors)

    def test_user_without_password(self, clean_env):
        clean_env.setenv("SMTP_USER", "bot@example.com")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert any("SMTP_PASS" in error for error in exc_info.value.errors)

    def test_every_problem_reported(self, clean_env):
        clean_env.setenv("SMTP_PORT", "70000")
        clean_env.setenv("LOG_LEVEL", "LOUD")
        clean_env.setenv("GOOGLE_CHAT_WEBHOOK_URL", "ftp://nope")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert len(exc_info.value.errors) == 3
        assert exc_info.value.suggestions


class TestConfigModels:
    """Test model defaults and warnings."""

    def test_schedule_tzinfo(self):
        assert ScheduleConfig().tzinfo.key == "America/New_York"

    def test_app_url_trailing_slash_stripped(self):
        assert NotificationsConfig(app_url="https://x.example.com///").app_url == "https://x.example.com"

    def test_warning_for_early_schedule(self):
        warnings = check_for_warnings({"schedule": {"hour": 3}})

        assert len(warnings) == 1
        assert "outside business hours" in warnings[0]

    def test_warning_for_empty_broadcast_role(self):
        warnings = check_for_warnings({"notifications": {"broadcast_role": " "}})

        assert any("broadcast_role" in w for w in warnings)

    def test_no_warnings_for_defaults(self):
        assert check_for_warnings({}) == []

    def test_load_config_emits_warnings(self, clean_env, tmp_path):
        path = write_config(tmp_path, "schedule:\n  hour: 23\n")

        with pytest.warns(UserWarning, match="outside business hours"):
            load_config(path)
