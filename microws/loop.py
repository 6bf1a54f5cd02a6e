"""A per-thread event loop with deferred callbacks and pre/post handlers."""

from __future__ import annotations

import threading
import zlib
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from .protocol import OpCode

LoopHandler = Callable[["Loop"], Any]

_DEFLATE_TAIL = b"\x00\x00\xff\xff"


@dataclass
class PreparedMessage:
    """A message formatted once for sending to many sockets."""

    original_message: bytes
    compressed_message: bytes
    compressed: bool
    op_code: int


def _deflate(message: bytes) -> bytes:
    compressor = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, -15)
    data = compressor.compress(message) + compressor.flush(zlib.Z_SYNC_FLUSH)
    if data.endswith(_DEFLATE_TAIL):
        data = data[: -len(_DEFLATE_TAIL)]
    return data


class Loop:
    """Runs pre handlers, deferred callbacks and post handlers each iteration."""

    def __init__(self) -> None:
        self._defer_lock = threading.Lock()
        self._defer_queues: tuple[list[Callable[[], Any]], list[Callable[[], Any]]] = ([], [])
        self._current_queue = 0
        self._pre_handlers: dict[Hashable, LoopHandler] = {}
        self._post_handlers: dict[Hashable, LoopHandler] = {}
        self.corked_socket: Any = None
        self.silent = False

    def defer(self, callback: Callable[[], Any]) -> None:
        """Queue ``callback`` to run on the loop's next iteration; thread safe."""
        with self._defer_lock:
            self._defer_queues[self._current_queue].append(callback)

    def add_pre_handler(self, key: Hashable, handler: LoopHandler) -> None:
        """Register a handler run before each iteration; an existing key is kept."""
        self._pre_handlers.setdefault(key, handler)

    def remove_pre_handler(self, key: Hashable) -> None:
        self._pre_handlers.pop(key, None)

    def add_post_handler(self, key: Hashable, handler: LoopHandler) -> None:
        """Register a handler run after each iteration; an existing key is kept."""
        self._post_handlers.setdefault(key, handler)

    def remove_post_handler(self, key: Hashable) -> None:
        self._post_handlers.pop(key, None)

    def _drain_deferred(self) -> None:
        with self._defer_lock:
            old = self._current_queue
            self._current_queue = (self._current_queue + 1) % 2
        queue = self._defer_queues[old]
        for callback in queue:
            callback()
        queue.clear()

    def _has_deferred(self) -> bool:
        with self._defer_lock:
            return bool(self._defer_queues[self._current_queue])

    def iterate(self) -> None:
        """Run one loop iteration.

        Raises RuntimeError if a socket is still corked once it finishes.
        """
        for handler in list(self._pre_handlers.values()):
            handler(self)
        self._drain_deferred()
        for handler in list(self._post_handlers.values()):
            handler(self)
        if self.corked_socket is not None:
            raise RuntimeError("Cork buffer must not be held across event loop iterations")

    def run(self) -> None:
        """Iterate until no deferred work remains."""
        while True:
            self.iterate()
            if not self._has_deferred():
                break

    def prepare_message(
        self, message: bytes | str, op_code: int = OpCode.TEXT, compress: bool = True
    ) -> PreparedMessage:
        """Format a message once, deflating it when ``compress`` is set."""
        original = message.encode("utf-8") if isinstance(message, str) else bytes(message)
        return PreparedMessage(
            original_message=original,
            compressed_message=_deflate(original) if compress else b"",
            compressed=compress,
            op_code=int(op_code),
        )

    def set_silent(self, silent: bool) -> None:
        self.silent = bool(silent)

    def free(self) -> None:
        """Drop all handlers and queued work; the thread gets a new loop next time."""
        self._pre_handlers.clear()
        self._post_handlers.clear()
        with self._defer_lock:
            for queue in self._defer_queues:
                queue.clear()
        if getattr(_local, "loop", None) is self:
            _local.loop = None


_local = threading.local()


def get_loop() -> Loop:
    """Return this thread's loop, creating it on first use."""
    loop = getattr(_local, "loop", None)
    if loop is None:
        loop = Loop()
        _local.loop = loop
    return loop


def run() -> None:
    """Run this thread's loop."""
    get_loop().run()