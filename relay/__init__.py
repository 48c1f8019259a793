"""Room relay: WebSocket clients join named rooms and receive each other's messages."""

__version__ = "1.0.0"
