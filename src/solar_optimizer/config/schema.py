"""Pydantic configuration models for all system settings."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DeviceConfig(BaseModel):
    port: str = "/dev/ttyUSB0"  # Serial path, pyserial URL (socket://host:port) or sim://
    baud_rate: int = Field(9600, gt=0)
    reconnect_delay_seconds: float = Field(2.0, gt=0.0)
    max_reconnect_delay_seconds: float = Field(60.0, gt=0.0)
    simulator_interval_seconds: float = Field(2.0, gt=0.0)


class WeatherConfig(BaseModel):
    enabled: bool = True
    api_key: str = ""
    city: str = "Chennai,IN"
    units: str = "metric"
    base_url: str = "https://api.openweathermap.org/data/2.5/weather"
    update_interval_seconds: int = Field(600, gt=0)
    timeout_seconds: float = Field(5.0, gt=0.0)


class ForecastConfig(BaseModel):
    update_interval_seconds: int = Field(1800, gt=0)
    timezone: str = ""  # IANA name; empty = host local time


class HistoryConfig(BaseModel):
    backend: str = "sqlite"  # "sqlite" or "firebase"
    default_limit: int = Field(50, ge=1)
    max_limit: int = Field(1000, ge=1)


class FirebaseConfig(BaseModel):
    database_url: str = ""
    auth_token: str = ""  # Database secret or ID token, sent as ?auth=
    root: str = "solarData"
    mirror_state: bool = True
    timeout_seconds: float = Field(5.0, gt=0.0)

    @property
    def enabled(self) -> bool:
        return bool(self.database_url)


class DashboardConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class ResilienceConfig(BaseModel):
    max_consecutive_failures: int = Field(3, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file: str = ""


class DBConfig(BaseModel):
    path: str = "solar_optimizer.db"


class AppConfig(BaseModel):
    """Root configuration model containing all system settings."""

    device: DeviceConfig = DeviceConfig()
    weather: WeatherConfig = WeatherConfig()
    forecast: ForecastConfig = ForecastConfig()
    history: HistoryConfig = HistoryConfig()
    firebase: FirebaseConfig = FirebaseConfig()
    dashboard: DashboardConfig = DashboardConfig()
    resilience: ResilienceConfig = ResilienceConfig()
    logging: LoggingConfig = LoggingConfig()
    db: DBConfig = DBConfig()
