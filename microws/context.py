"""WebSocket route behaviour, its validation and the settings derived from it."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional

COMPRESSOR_MASK = 0x00FF
DECOMPRESSOR_MASK = 0x0F00

_SHARED_COMPRESSOR_BITS = 0x0001
_SHARED_DECOMPRESSOR_BITS = 0x0100
_DEDICATED_DECOMPRESSOR_BITS = 0x0F00

MAX_IDLE_TIMEOUT = 240 * 4
MIN_IDLE_TIMEOUT = 8
MAX_LIFETIME = 240
_U16_MAX = 0xFFFF

Handler = Optional[Callable[..., Any]]


class CompressOptions(IntEnum):
    """Per-message deflate choices for a WebSocket route.

    The low byte selects the compressor, the next nibble the decompressor.
    """

    DISABLED = 0
    SHARED_DECOMPRESSOR = _SHARED_DECOMPRESSOR_BITS
    DEDICATED_DECOMPRESSOR = _DEDICATED_DECOMPRESSOR_BITS
    SHARED_COMPRESSOR = _SHARED_COMPRESSOR_BITS | _SHARED_DECOMPRESSOR_BITS
    DEDICATED_COMPRESSOR_3KB = 0x0002 | _SHARED_DECOMPRESSOR_BITS
    DEDICATED_COMPRESSOR_4KB = 0x0003 | _SHARED_DECOMPRESSOR_BITS
    DEDICATED_COMPRESSOR_8KB = 0x0004 | _SHARED_DECOMPRESSOR_BITS
    DEDICATED_COMPRESSOR_16KB = 0x0005 | _SHARED_DECOMPRESSOR_BITS
    DEDICATED_COMPRESSOR_32KB = 0x0006 | _SHARED_DECOMPRESSOR_BITS
    DEDICATED_COMPRESSOR_64KB = 0x0007 | _SHARED_DECOMPRESSOR_BITS
    DEDICATED_COMPRESSOR_128KB = 0x0008 | _SHARED_DECOMPRESSOR_BITS
    DEDICATED_COMPRESSOR_256KB = 0x0009 | _SHARED_DECOMPRESSOR_BITS
    DEDICATED_COMPRESSOR = DEDICATED_COMPRESSOR_256KB

    @property
    def uses_dedicated_compressor(self) -> bool:
        """True when a socket needs its own deflate stream."""
        return bool(self) and (self & COMPRESSOR_MASK) != _SHARED_COMPRESSOR_BITS

    @property
    def uses_dedicated_decompressor(self) -> bool:
        """True when a socket needs its own inflate stream."""
        return bool(self) and (self & DECOMPRESSOR_MASK) != _SHARED_DECOMPRESSOR_BITS


def idle_timeout_components(idle_timeout: int, send_pings_automatically: bool = True) -> tuple[int, int]:
    """Split an idle timeout into (socket timeout, ping timeout margin).

    The margin is 4, 8 or 16 seconds; it is taken off the socket timeout when
    pings are sent automatically. Values wrap as unsigned 16-bit numbers.
    """
    if idle_timeout < 0 or idle_timeout > _U16_MAX:
        raise ValueError(f"idle_timeout {idle_timeout} is out of range")
    margin = 4
    while idle_timeout - margin * 2 >= margin * 2 and margin < 16:
        margin <<= 1
    first = (idle_timeout - (margin if send_pings_automatically else 0)) & _U16_MAX
    return first, margin


@dataclass
class WebSocketBehavior:
    """Settings and handlers for one WebSocket route."""

    compression: CompressOptions = CompressOptions.DISABLED
    max_payload_length: int = 16 * 1024
    idle_timeout: int = 120
    max_backpressure: int = 64 * 1024
    close_on_backpressure_limit: bool = False
    reset_idle_timeout_on_send: bool = False
    send_pings_automatically: bool = True
    max_lifetime: int = 0
    upgrade: Handler = None
    open: Handler = None
    message: Handler = None
    dropped: Handler = None
    drain: Handler = None
    ping: Handler = None
    pong: Handler = None
    subscription: Handler = None
    close: Handler = None

    def validate(self) -> WebSocketBehavior:
        """Raise ValueError for misleading timeouts; return self otherwise."""
        if self.idle_timeout < 0 or self.max_lifetime < 0:
            raise ValueError("idleTimeout and maxLifetime must not be negative")
        if self.idle_timeout and self.idle_timeout < MIN_IDLE_TIMEOUT:
            raise ValueError("idleTimeout must be either 0 or greater than 8!")
        if self.idle_timeout > MAX_IDLE_TIMEOUT:
            raise ValueError("idleTimeout must not be greater than 960 seconds!")
        if self.max_lifetime > MAX_LIFETIME:
            raise ValueError("maxLifetime must not be greater than 240 minutes!")
        return self


@dataclass
class WebSocketSettings:
    """The handlers and limits a WebSocket route runs with."""

    topic_tree: Any = None
    open_handler: Handler = None
    message_handler: Handler = None
    dropped_handler: Handler = None
    drain_handler: Handler = None
    subscription_handler: Handler = None
    close_handler: Handler = None
    ping_handler: Handler = None
    pong_handler: Handler = None
    max_payload_length: int = 0
    compression: CompressOptions = CompressOptions.DISABLED
    max_backpressure: int = 0
    close_on_backpressure_limit: bool = False
    reset_idle_timeout_on_send: bool = False
    send_pings_automatically: bool = True
    max_lifetime: int = 0
    idle_timeout_components: tuple[int, int] = (0, 0)

    def calculate_idle_timeout_components(self, idle_timeout: int) -> tuple[int, int]:
        """Compute, store and return the idle timeout components."""
        self.idle_timeout_components = idle_timeout_components(
            idle_timeout, self.send_pings_automatically
        )
        return self.idle_timeout_components

    @classmethod
    def from_behavior(cls, behavior: WebSocketBehavior, topic_tree: Any = None) -> WebSocketSettings:
        """Validate ``behavior`` and copy its handlers and limits."""
        behavior.validate()
        settings = cls(
            topic_tree=topic_tree,
            open_handler=behavior.open,
            message_handler=behavior.message,
            dropped_handler=behavior.dropped,
            drain_handler=behavior.drain,
            subscription_handler=behavior.subscription,
            close_handler=behavior.close,
            ping_handler=behavior.ping,
            pong_handler=behavior.pong,
            max_payload_length=behavior.max_payload_length,
            compression=behavior.compression,
            max_backpressure=behavior.max_backpressure,
            close_on_backpressure_limit=behavior.close_on_backpressure_limit,
            reset_idle_timeout_on_send=behavior.reset_idle_timeout_on_send,
            send_pings_automatically=behavior.send_pings_automatically,
            max_lifetime=behavior.max_lifetime,
        )
        settings.calculate_idle_timeout_components(behavior.idle_timeout)
        return settings