"""Configuration loading from YAML files and environment overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from solar_optimizer.config.schema import AppConfig

logger = logging.getLogger(__name__)

# Environment variable -> dotted config key
ENV_OVERRIDES: dict[str, str] = {
    "SERIAL_PORT": "device.port",
    "BAUD_RATE": "device.baud_rate",
    "PORT": "dashboard.port",
    "OPENWEATHER_API_KEY": "weather.api_key",
    "WEATHER_CITY": "weather.city",
    "WEATHER_INTERVAL_SECONDS": "weather.update_interval_seconds",
    "FORECAST_INTERVAL_SECONDS": "forecast.update_interval_seconds",
    "HISTORY_BACKEND": "history.backend",
    "FIREBASE_DB_URL": "firebase.database_url",
    "FIREBASE_AUTH": "firebase.auth_token",
    "DB_PATH": "db.path",
    "LOG_LEVEL": "logging.level",
    "LOG_FORMAT": "logging.format",
}


class ConfigManager:
    """Loads config from YAML defaults, user overrides and the environment."""

    def __init__(
        self,
        defaults_path: Path | None = None,
        user_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._defaults_path = defaults_path or Path("config.defaults.yaml")
        self._user_path = user_path or Path("config.yaml")
        self._environ = os.environ if environ is None else environ
        self._config: AppConfig | None = None
        self._raw: dict[str, Any] = {}

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded. Call load() first.")
        return self._config

    def load(self) -> AppConfig:
        """Load configuration from defaults + user overrides + environment."""
        defaults = self._load_yaml(self._defaults_path)
        overrides = self._load_yaml(self._user_path) if self._user_path.exists() else {}
        merged = self._deep_merge(defaults, overrides)
        merged = self._deep_merge(merged, self._env_overrides())
        self._raw = merged
        self._config = AppConfig.model_validate(merged)
        logger.info("Configuration loaded successfully")
        return self._config

    def get_raw(self) -> dict[str, Any]:
        return dict(self._raw)

    def to_json(self) -> str:
        return self.config.model_dump_json(indent=2)

    def _env_overrides(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for env_name, dotted in ENV_OVERRIDES.items():
            value = self._environ.get(env_name)
            if value is None or value == "":
                continue
            node = result
            *parents, leaf = dotted.split(".")
            for part in parents:
                node = node.setdefault(part, {})
            node[leaf] = value
            logger.debug("Config override from %s -> %s", env_name, dotted)
        return result

    @staticmethod
    def _load_yaml(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        with open(path) as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge override into base, returning a new dict."""
        result = dict(base)
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ConfigManager._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
