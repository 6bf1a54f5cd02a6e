"""Per-response state kept alongside an HTTP connection."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntFlag
from typing import Any, Optional


class ResponseState(IntFlag):
    """Status bits of an HTTP response."""

    STATUS_CALLED = 1
    WRITE_CALLED = 2
    END_CALLED = 4
    RESPONSE_PENDING = 8
    CONNECTION_CLOSE = 16


@dataclass
class ResponseData:
    """Handlers and progress of one HTTP response."""

    on_writable: Optional[Callable[[int], bool]] = None
    on_aborted: Optional[Callable[[], Any]] = None
    on_data: Optional[Callable[[bytes, bool], Any]] = None
    offset: int = 0
    received_bytes_per_timeout: int = 0
    state: ResponseState = ResponseState(0)

    def mark_done(self) -> None:
        """Drop the abort and writable handlers and clear the pending bit."""
        self.on_aborted = None
        self.on_writable = None
        self.state &= ~ResponseState.RESPONSE_PENDING

    def call_on_writable(self, offset: int) -> bool:
        """Run the writable handler, which may itself call mark_done.

        The handler is restored afterwards unless it was cleared while running.
        """
        borrowed = self.on_writable
        if borrowed is None:
            raise RuntimeError("no writable handler is set")
        self.on_writable = lambda _offset: True
        result = borrowed(offset)
        if self.on_writable is not None:
            self.on_writable = borrowed
        return bool(result)