"""WebSocket opening handshake: accept values and client keys."""

from __future__ import annotations

import base64
import hashlib
import secrets

WEBSOCKET_GUID = b"258EAFA5-E914-47DA-95CA-C5AB0DC85B11"
KEY_LENGTH = 24
ACCEPT_LENGTH = 28
_RAW_KEY_LENGTH = 16


def base64_encode(data: bytes) -> str:
    """Encode bytes as padded standard Base64."""
    return base64.b64encode(bytes(data)).decode("ascii")


def generate(key: str | bytes) -> str:
    """Compute the Sec-WebSocket-Accept value for a 24-character client key."""
    raw = key.encode("latin-1") if isinstance(key, str) else bytes(key)
    if len(raw) != KEY_LENGTH:
        raise ValueError(f"WebSocket key must be {KEY_LENGTH} characters, got {len(raw)}")
    return base64_encode(hashlib.sha1(raw + WEBSOCKET_GUID).digest())


def generate_key() -> str:
    """Return a fresh Sec-WebSocket-Key: 16 random bytes as 24 Base64 characters."""
    return base64_encode(secrets.token_bytes(_RAW_KEY_LENGTH))