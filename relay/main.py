# relay/main.py

from __future__ import annotations

from fastapi import FastAPI

from relay import __version__
from relay.core import state
from relay.core.config import settings
from relay.core.logging import setup_logging, get_logger
from relay.api.routes import root, health, metrics
from relay.api import websocket as websocket_module

# Configure logging first
setup_logging()
logger = get_logger(__name__)

app = FastAPI(title="Room Relay", version=__version__)

# REST routes
app.include_router(root.router)
app.include_router(health.router)
app.include_router(metrics.router)

# WebSocket routes
app.include_router(websocket_module.router)


@app.on_event("startup")
async def startup_event():
    logger.info(
        "Server started on port %s (ws path %s, evict empty rooms: %s)",
        settings.PORT,
        settings.WS_PATH,
        state.space.evict_empty,
    )


@app.on_event("shutdown")
async def on_shutdown():
    logger.info(
        "Server stopping - %d open connections, %d rooms",
        state.stats.open_connections,
        len(state.space),
    )


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
