"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from solar_optimizer.config.manager import ConfigManager
from solar_optimizer.config.schema import AppConfig


class TestAppConfig:
    def test_default_config_is_valid(self) -> None:
        config = AppConfig()
        assert config.device.port == "/dev/ttyUSB0"
        assert config.device.baud_rate == 9600
        assert config.dashboard.port == 3001
        assert config.weather.update_interval_seconds == 600
        assert config.forecast.update_interval_seconds == 1800
        assert config.history.default_limit == 50

    def test_firebase_disabled_without_url(self) -> None:
        assert AppConfig().firebase.enabled is False
        config = AppConfig(firebase={"database_url": "https://x.firebaseio.com"})
        assert config.firebase.enabled is True

    def test_rejects_non_positive_interval(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(weather={"update_interval_seconds": 0})

    def test_custom_values(self) -> None:
        config = AppConfig(
            device={"port": "COM3", "baud_rate": 115200},
            history={"max_limit": 200},
        )
        assert config.device.port == "COM3"
        assert config.device.baud_rate == 115200
        assert config.history.max_limit == 200


class TestConfigManager:
    def test_load_defaults_only(self, tmp_path: Path) -> None:
        defaults = tmp_path / "defaults.yaml"
        defaults.write_text("device:\n  port: /dev/ttyACM0\n")
        mgr = ConfigManager(defaults_path=defaults, user_path=tmp_path / "none.yaml", environ={})
        config = mgr.load()
        assert config.device.port == "/dev/ttyACM0"
        assert config.device.baud_rate == 9600

    def test_user_overrides_merge_deeply(self, tmp_path: Path) -> None:
        defaults = tmp_path / "defaults.yaml"
        defaults.write_text("weather:\n  city: 'Chennai,IN'\n  units: metric\n")
        user = tmp_path / "config.yaml"
        user.write_text("weather:\n  city: 'Pune,IN'\n")
        config = ConfigManager(defaults, user, environ={}).load()
        assert config.weather.city == "Pune,IN"
        assert config.weather.units == "metric"

    def test_environment_overrides_files(self, tmp_path: Path) -> None:
        defaults = tmp_path / "defaults.yaml"
        defaults.write_text("device:\n  port: /dev/ttyUSB0\ndashboard:\n  port: 3001\n")
        env = {
            "SERIAL_PORT": "COM5",
            "BAUD_RATE": "115200",
            "PORT": "8080",
            "OPENWEATHER_API_KEY": "secret",
            "WEATHER_CITY": "Madurai,IN",
            "FORECAST_INTERVAL_SECONDS": "900",
        }
        config = ConfigManager(defaults, tmp_path / "none.yaml", environ=env).load()
        assert config.device.port == "COM5"
        assert config.device.baud_rate == 115200
        assert config.dashboard.port == 8080
        assert config.weather.api_key == "secret"
        assert config.weather.city == "Madurai,IN"
        assert config.forecast.update_interval_seconds == 900

    def test_empty_environment_value_ignored(self, tmp_path: Path) -> None:
        mgr = ConfigManager(tmp_path / "d.yaml", tmp_path / "u.yaml", environ={"SERIAL_PORT": ""})
        assert mgr.load().device.port == "/dev/ttyUSB0"

    def test_invalid_environment_value_rejected(self, tmp_path: Path) -> None:
        mgr = ConfigManager(tmp_path / "d.yaml", tmp_path / "u.yaml", environ={"BAUD_RATE": "fast"})
        with pytest.raises(ValidationError):
            mgr.load()

    def test_config_before_load_raises(self, tmp_path: Path) -> None:
        mgr = ConfigManager(tmp_path / "d.yaml", tmp_path / "u.yaml", environ={})
        with pytest.raises(RuntimeError):
            _ = mgr.config

    def test_fixture_loads_in_memory_db(self, config_manager: ConfigManager) -> None:
        assert config_manager.config.db.path == ":memory:"
        assert '"baud_rate": 9600' in config_manager.to_json()
