"""Routing, WebSocket framing and handshakes, query decoding and a small event loop for HTTP servers."""

__version__ = "0.1.0"

__all__ = [
    "chunking",
    "context",
    "handshake",
    "loop",
    "protocol",
    "query",
    "response_data",
    "router",
    "useragent",
    "utilities",
]