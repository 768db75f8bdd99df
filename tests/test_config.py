import pytest
from pydantic import ValidationError

from run_bridge import build_parser, settings_from_args
from thermobridge.core.config import Settings


def test_defaults_match_receiver_setup() -> None:
    cfg = Settings(_env_file=None)
    assert cfg.discovery_seconds == 60.0
    assert cfg.key_granularity == "device_channel"
    assert cfg.source_command == "rtl_433 -F json -R 20"
    assert (cfg.min_temp_c, cfg.max_temp_c, cfg.temp_step) == (-40.0, 60.0, 0.1)
    assert (cfg.min_humidity, cfg.max_humidity, cfg.humidity_step) == (10.0, 99.0, 1.0)
    assert cfg.channel_size == 1


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DISCOVERY_SECONDS", "5")
    monkeypatch.setenv("KEY_GRANULARITY", "channel")
    monkeypatch.setenv("MQTT_ENABLED", "true")

    cfg = Settings(_env_file=None)

    assert cfg.discovery_seconds == 5.0
    assert cfg.key_granularity == "channel"
    assert cfg.mqtt_enabled is True


@pytest.mark.parametrize(
    "overrides",
    [
        {"key_granularity": "device"},
        {"source_mode": "serial"},
        {"discovery_seconds": 0},
        {"channel_size": 0},
    ],
)
def test_invalid_settings_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_cli_flags_override_settings() -> None:
    args = build_parser().parse_args([
        "--source", "tcp",
        "--host", "10.0.0.5",
        "--port", "2000",
        "--discovery", "30",
        "--keys", "channel",
        "--mqtt-host", "broker.local",
        "--webhook-url", "http://hb.local:51828/",
        "-v",
    ])

    cfg = settings_from_args(args, Settings(_env_file=None))

    assert cfg.source_mode == "tcp"
    assert (cfg.source_host, cfg.source_port) == ("10.0.0.5", 2000)
    assert cfg.discovery_seconds == 30.0
    assert cfg.key_granularity == "channel"
    assert cfg.mqtt_enabled and cfg.mqtt_host == "broker.local"
    assert cfg.webhook_enabled and cfg.webhook_url == "http://hb.local:51828/"
    assert cfg.log_level == "DEBUG"


def test_cli_without_flags_keeps_settings() -> None:
    base = Settings(_env_file=None)
    cfg = settings_from_args(build_parser().parse_args([]), base)
    assert cfg == base


@pytest.mark.parametrize("value", ["0", "-5"])
def test_cli_rejects_out_of_range_discovery(value: str) -> None:
    args = build_parser().parse_args(["--discovery", value])
    with pytest.raises(ValidationError):
        settings_from_args(args, Settings(_env_file=None))
