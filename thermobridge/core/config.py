from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Literal


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Thermo Bridge"

    # Input
    source_mode: Literal["stdin", "subprocess", "tcp"] = "stdin"
    source_command: str = "rtl_433 -F json -R 20"
    source_host: str = "127.0.0.1"
    source_port: int = 1433
    source_line_limit: int = 64 * 1024

    # Producer -> consumer channel; 1 ~= unbuffered
    channel_size: int = Field(default=1, ge=1)

    # Discovery
    discovery_seconds: float = Field(default=60.0, gt=0)
    key_granularity: Literal["device_channel", "channel"] = "device_channel"

    # Accessory identity
    accessory_name: str = "Temperature Sensor"
    manufacturer: str = "Ambient Weather"

    # Characteristic bounds
    min_temp_c: float = -40.0
    max_temp_c: float = 60.0
    temp_step: float = 0.1
    min_humidity: float = 10.0
    max_humidity: float = 99.0
    humidity_step: float = 1.0

    # MQTT
    mqtt_enabled: bool = False
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_client_id: str = "thermobridge"
    mqtt_topic_prefix: str = "thermobridge"
    mqtt_qos: int = Field(default=0, ge=0, le=2)
    mqtt_retain: bool = True

    # Webhook push (homebridge-http-webhooks style)
    webhook_enabled: bool = False
    webhook_url: str = "http://127.0.0.1:51828/"
    webhook_timeout_seconds: float = 5.0

    # Logging
    log_level: str = "INFO"
    log_file: str | None = "thermobridge.log"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8080


settings = Settings()
