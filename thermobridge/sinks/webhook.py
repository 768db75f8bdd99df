from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..domain.models import Reading, SensorState

logger = logging.getLogger(__name__)


class WebhookSink:
    """Pushes values to an accessory bridge webhook.

    Follows the homebridge-http-webhooks convention:
    GET <url>?accessoryId=<key>-temperature&value=21.5
    """

    name = "webhook"

    def __init__(
        self,
        url: str = "http://127.0.0.1:51828/",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def start(self) -> None:
        logger.info("Webhook sink pushing to %s", self._url)

    async def close(self) -> None:
        return None

    async def publish(self, state: SensorState, reading: Reading) -> None:
        values: list[tuple[str, float]] = [(f"{state.key}-temperature", state.temperature_c)]
        if state.has_humidity and state.humidity is not None:
            values.append((f"{state.key}-humidity", state.humidity))

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for accessory_id, value in values:
                try:
                    resp = await client.get(
                        self._url,
                        params={"accessoryId": accessory_id, "value": value},
                    )
                    resp.raise_for_status()
                except httpx.HTTPError:
                    logger.warning("Webhook push failed for %s", accessory_id, exc_info=True)
