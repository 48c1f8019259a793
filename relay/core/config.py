# relay/core/config.py
import os
from dotenv import load_dotenv


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Setup environment variables.
        - HOST / PORT the address uvicorn listens on
        - LOG_LEVEL the root logger level (read by core.logging)
        - WS_PATH the path of the relay WebSocket endpoint
        - EVICT_EMPTY_ROOMS drop a room from the space once its last member leaves
    """

    # Load environment variables from the .env file
    load_dotenv()

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    WS_PATH: str = os.getenv("WS_PATH", "/")
    EVICT_EMPTY_ROOMS: bool = _as_bool(os.getenv("EVICT_EMPTY_ROOMS", "false"))

settings = Settings()
