from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.config import settings
from .core.log import configure_logging

from .api.routes import router as api_router
import thermobridge.api.routes as routes_module

from .domain.errors import EmptyRegistryError
from .services.bridge import BridgeService, build_bridge
from .sources.transports import LineTransport, open_transport


logger = logging.getLogger(__name__)


bridge: BridgeService | None = None
transport: LineTransport | None = None


def get_bridge() -> BridgeService:
    assert bridge is not None
    return bridge


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(
        "Starting %s (source=%s, discovery=%.0fs, keys=%s)",
        settings.app_name,
        settings.source_mode,
        settings.discovery_seconds,
        settings.key_granularity,
    )

    global bridge, transport
    transport = await open_transport(settings)
    bridge = build_bridge(transport, settings)

    # Discovery runs to completion before the API serves anything
    try:
        await bridge.start()
    except EmptyRegistryError:
        logger.critical("No sensors detected; nothing to expose")
        await transport.close()
        raise
    except BaseException:
        logger.warning("Startup interrupted; stopping receiver")
        await bridge.stop()
        await transport.close()
        raise

    try:
        yield
    finally:
        await bridge.stop()
        await transport.close()
        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_bridge] = get_bridge

app.include_router(api_router, prefix="/api")
