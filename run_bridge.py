#!/usr/bin/env python3
"""
Headless sensor bridge.

Reads rtl_433 JSON lines, discovers the sensors that report during the
discovery window, then forwards every later reading to the configured sinks
(MQTT and/or webhook). Settings come from the environment / .env; flags
below override them.

Usage:
    rtl_433 -F json -R 20 | python run_bridge.py
    python run_bridge.py --source subprocess --command "rtl_433 -F json -R 20"
    python run_bridge.py --source tcp --host 192.168.1.5 --port 1433 --mqtt
    python run_bridge.py --serve                   # also serve the HTTP API
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from thermobridge.core.config import Settings, settings
from thermobridge.core.log import configure_logging
from thermobridge.domain.errors import EmptyRegistryError
from thermobridge.services.bridge import build_bridge
from thermobridge.sources.transports import open_transport


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

async def run(cfg: Settings) -> int:
    log = logging.getLogger("bridge")

    log.info("Starting %s", cfg.app_name)
    log.info("  Source:     %s", cfg.source_mode)
    log.info("  Discovery:  %.0fs, keys by %s", cfg.discovery_seconds, cfg.key_granularity)
    log.info("  MQTT:       %s", f"{cfg.mqtt_host}:{cfg.mqtt_port}" if cfg.mqtt_enabled else "off")
    log.info("  Webhook:    %s", cfg.webhook_url if cfg.webhook_enabled else "off")

    transport = await open_transport(cfg)
    bridge = build_bridge(transport, cfg)
    try:
        try:
            await bridge.start()
        except EmptyRegistryError as e:
            log.critical("%s", e)
            return 1

        log.info("Running...")
        await bridge.wait()
        log.info("Exiting...")
        return 0
    finally:
        await bridge.stop()
        await transport.close()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="rtl_433 thermo-hygrometer bridge")

    p.add_argument("--source", choices=["stdin", "subprocess", "tcp"], help="Where readings come from")
    p.add_argument("--command", help="Receiver command for --source subprocess")
    p.add_argument("--host", help="Receiver host for --source tcp")
    p.add_argument("--port", type=int, help="Receiver port for --source tcp")

    p.add_argument("--discovery", type=float, help="Discovery window in seconds")
    p.add_argument("--keys", choices=["device_channel", "channel"],
                   help="Sensor identity: device+channel or channel only")

    p.add_argument("--mqtt", action="store_true", help="Publish updates to MQTT")
    p.add_argument("--mqtt-host", help="MQTT broker host")
    p.add_argument("--webhook-url", help="Push updates to this webhook URL")

    p.add_argument("--serve", action="store_true", help="Serve the HTTP API (uvicorn)")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return p


def settings_from_args(args: argparse.Namespace, base: Settings = settings) -> Settings:
    updates: dict[str, object] = {}
    if args.source:
        updates["source_mode"] = args.source
    if args.command:
        updates["source_command"] = args.command
    if args.host:
        updates["source_host"] = args.host
    if args.port is not None:
        updates["source_port"] = args.port
    if args.discovery is not None:
        updates["discovery_seconds"] = args.discovery
    if args.keys:
        updates["key_granularity"] = args.keys
    if args.mqtt or args.mqtt_host:
        updates["mqtt_enabled"] = True
    if args.mqtt_host:
        updates["mqtt_host"] = args.mqtt_host
    if args.webhook_url:
        updates["webhook_enabled"] = True
        updates["webhook_url"] = args.webhook_url
    if args.verbose:
        updates["log_level"] = "DEBUG"
    # Re-validate so flag values get the same checks as the environment
    return Settings.model_validate({**base.model_dump(), **updates})


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    try:
        cfg = settings_from_args(args)
    except ValidationError as e:
        parser.error(str(e))

    if args.serve:
        import uvicorn

        # The app reads the module-level settings object
        for key, value in cfg.model_dump().items():
            setattr(settings, key, value)
        uvicorn.run("thermobridge.main:app", host=cfg.api_host, port=cfg.api_port)
        return

    configure_logging(cfg.log_level, cfg.log_file)
    try:
        code = asyncio.run(run(cfg))
    except KeyboardInterrupt:
        logging.getLogger("bridge").info("Shutting down")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
