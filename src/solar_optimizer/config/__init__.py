"""Configuration management for Solar Optimizer."""

from solar_optimizer.config.schema import AppConfig
from solar_optimizer.config.manager import ConfigManager

__all__ = ["AppConfig", "ConfigManager"]
