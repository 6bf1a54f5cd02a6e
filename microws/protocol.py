"""WebSocket frame formatting and an incremental frame parser."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from enum import IntEnum

ERR_TOO_BIG_MESSAGE = "Received too big message"
ERR_WEBSOCKET_TIMEOUT = "WebSocket timed out from inactivity"
ERR_INVALID_TEXT = "Received invalid UTF-8"
ERR_TOO_BIG_MESSAGE_INFLATION = "Received too big message, or other inflation error"
ERR_INVALID_CLOSE_PAYLOAD = "Received invalid close payload"
ERR_PROTOCOL = "Received invalid WebSocket frame"
ERR_TCP_FIN = "Received TCP FIN before WebSocket close frame"

SND_CONTINUATION = 1
SND_NO_FIN = 2
SND_COMPRESSED = 64

_U16_MAX = 0xFFFF
_U64_MAX = 0xFFFFFFFFFFFFFFFF
_NO_STATUS = 1005
_ABNORMAL = 1006

# Short, medium and long header sizes; frames sent to a server carry a mask.
_SERVER_HEADER_SIZES = (6, 8, 14)
_CLIENT_HEADER_SIZES = (2, 4, 10)


class OpCode(IntEnum):
    """WebSocket frame opcodes."""

    CONTINUATION = 0
    TEXT = 1
    BINARY = 2
    CLOSE = 8
    PING = 9
    PONG = 10


def _apply_mask(data: bytes, mask: bytes) -> bytes:
    """XOR ``data`` with the repeated 4-byte ``mask``, starting at mask[0]."""
    size = len(data)
    if not size:
        return b""
    key = (mask * (size // 4 + 1))[:size]
    return (int.from_bytes(data, "big") ^ int.from_bytes(key, "big")).to_bytes(size, "big")


def _rotate_mask(mask: bytes, consumed: int) -> bytes:
    """Return the mask to use after ``consumed`` bytes have been unmasked."""
    shift = consumed % 4
    return mask[shift:] + mask[:shift]


def is_valid_utf8(data: bytes) -> bool:
    """Return True when ``data`` is well-formed UTF-8 (no overlongs or surrogates)."""
    try:
        bytes(data).decode("utf-8", errors="strict")
    except UnicodeDecodeError:
        return False
    return True


@dataclass(frozen=True)
class CloseFrame:
    """A decoded close frame payload."""

    code: int
    message: bytes = b""


def parse_close_payload(data: bytes) -> CloseFrame:
    """Decode a close payload; invalid payloads are reported as code 1006."""
    data = bytes(data)
    if len(data) < 2:
        return CloseFrame(_NO_STATUS, b"")
    code = int.from_bytes(data[:2], "big")
    message = data[2:]
    if (
        code < 1000
        or code > 4999
        or 1011 < code < 4000
        or 1004 <= code <= 1006
        or not is_valid_utf8(message)
    ):
        return CloseFrame(_ABNORMAL, ERR_INVALID_CLOSE_PAYLOAD.encode("ascii"))
    return CloseFrame(code, message)


def format_close_payload(code: int, message: bytes | str = b"") -> bytes:
    """Encode a close payload; codes 0, 1005 and 1006 produce an empty payload."""
    if not code or code in (_NO_STATUS, _ABNORMAL):
        return b""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return int(code).to_bytes(2, "big") + bytes(message)


def message_frame_size(message_size: int) -> int:
    """Size of an unmasked frame carrying ``message_size`` payload bytes."""
    if message_size < 126:
        return 2 + message_size
    if message_size <= _U16_MAX:
        return 4 + message_size
    return 10 + message_size


def format_message(
    message: bytes | str,
    op_code: int = OpCode.TEXT,
    reported_length: int | None = None,
    compressed: bool = False,
    fin: bool = True,
    is_server: bool = True,
) -> bytes:
    """Build one frame. Frames from a client are masked with a random key."""
    payload = message.encode("utf-8") if isinstance(message, str) else bytes(message)
    if reported_length is None:
        reported_length = len(payload)
    if reported_length < 0 or reported_length > _U64_MAX:
        raise ValueError(f"invalid reported length {reported_length}")

    first = (128 if fin else 0) | (SND_COMPRESSED if compressed and op_code else 0) | int(op_code)
    if reported_length < 126:
        header = bytearray((first, reported_length))
    elif reported_length <= _U16_MAX:
        header = bytearray((first, 126)) + reported_length.to_bytes(2, "big")
    else:
        header = bytearray((first, 127)) + reported_length.to_bytes(8, "big")

    if is_server:
        return bytes(header) + payload

    header[1] |= 0x80
    mask = secrets.token_bytes(4)
    return bytes(header) + mask + _apply_mask(payload, mask)


@dataclass
class WebSocketState:
    """Parser state carried between reads."""

    wants_head: bool = True
    spill: bytes = b""
    op_stack: list[OpCode] = field(default_factory=list)
    last_fin: bool = True
    remaining_bytes: int = 0
    mask: bytes = b"\x00\x00\x00\x00"

    @property
    def op_code(self) -> OpCode:
        """Opcode of the message currently being received."""
        return self.op_stack[-1]


class FrameHandler:
    """Receives parser events.

    The default implementation collects complete messages in ``messages`` as
    ``(OpCode, bytes)`` pairs and records the reason of a forced close.
    Methods returning True tell the parser to stop.
    """

    def __init__(self, max_payload_length: int = 16 * 1024, accept_compression: bool = False) -> None:
        self.max_payload_length = max_payload_length
        self.accept_compression = accept_compression
        self.messages: list[tuple[OpCode, bytes]] = []
        self.close_reason: str | None = None
        self.compressed_frames = 0
        self._data = bytearray()
        self._control = bytearray()

    @property
    def closed(self) -> bool:
        return self.close_reason is not None

    def force_close(self, state: WebSocketState, reason: str) -> None:
        """Called when the stream is invalid and the connection must close."""
        self.close_reason = reason

    def refuse_payload_length(self, length: int, state: WebSocketState) -> bool:
        """Return True to refuse a frame of this payload length."""
        return length > self.max_payload_length

    def set_compressed(self, state: WebSocketState) -> bool:
        """Called for frames with RSV1 set; return False to reject them."""
        if self.accept_compression:
            self.compressed_frames += 1
            return True
        return False

    def handle_fragment(
        self,
        data: bytes,
        remaining_bytes: int,
        op_code: int,
        fin: bool,
        state: WebSocketState,
    ) -> bool:
        """Receive unmasked payload bytes; return True to stop parsing."""
        if op_code < OpCode.CLOSE:
            self._data += data
            if not remaining_bytes and fin:
                self.messages.append((OpCode(op_code), bytes(self._data)))
                self._data.clear()
        else:
            self._control += data
            if not remaining_bytes:
                self.messages.append((OpCode(op_code), bytes(self._control)))
                self._control.clear()
        return self.closed


class WebSocketParser:
    """Incremental parser that feeds frames from a byte stream to a handler."""

    def __init__(self, handler: FrameHandler, is_server: bool = True) -> None:
        self.handler = handler
        self.is_server = is_server
        self.state = WebSocketState()
        self._short, self._medium, self._long = (
            _SERVER_HEADER_SIZES if is_server else _CLIENT_HEADER_SIZES
        )

    def consume(self, data: bytes) -> None:
        """Parse the next chunk of the stream."""
        state = self.state
        buf = state.spill + bytes(data)
        state.spill = b""
        position = 0
        if not state.wants_head:
            resumed = self._consume_continuation(buf)
            if resumed is None:
                return
            position = resumed
        self._parse_heads(buf, position)

    def _parse_heads(self, buf: bytes, position: int) -> None:
        state = self.state
        handler = self.handler
        while len(buf) - position >= self._short:
            first, second = buf[position], buf[position + 1]
            op_code = first & 15
            fin = bool(first & 128)
            length = second & 127

            if (
                (first & 64 and not handler.set_compressed(state))
                or first & 48
                or 2 < op_code < 8
                or op_code > 10
                or (op_code > 2 and (not fin or length > 125))
            ):
                handler.force_close(state, ERR_PROTOCOL)
                return

            available = len(buf) - position
            if length < 126:
                header = self._short
            elif length == 126:
                if available < self._medium:
                    break
                header = self._medium
                length = int.from_bytes(buf[position + 2:position + 4], "big")
            else:
                if available < self._long:
                    break
                header = self._long
                length = int.from_bytes(buf[position + 2:position + 10], "big")

            next_position = self._consume_message(buf, position, header, length)
            if next_position is None:
                return
            position = next_position

        if position < len(buf):
            state.spill = buf[position:]

    def _consume_message(self, buf: bytes, position: int, header: int, length: int) -> int | None:
        state = self.state
        handler = self.handler
        first = buf[position]
        op_code = first & 15
        fin = bool(first & 128)

        if op_code:
            if len(state.op_stack) == 2 or (not state.last_fin and op_code < 2):
                handler.force_close(state, ERR_PROTOCOL)
                return None
            state.op_stack.append(OpCode(op_code))
        elif not state.op_stack:
            handler.force_close(state, ERR_PROTOCOL)
            return None
        state.last_fin = fin

        if handler.refuse_payload_length(length, state):
            handler.force_close(state, ERR_TOO_BIG_MESSAGE)
            return None

        start = position + header
        mask = buf[start - 4:start] if self.is_server else b""

        if length + header <= len(buf) - position:
            payload = buf[start:start + length]
            if self.is_server:
                payload = _apply_mask(payload, mask)
            if handler.handle_fragment(payload, 0, state.op_code, fin, state):
                return None
            if fin:
                state.op_stack.pop()
            return start + length

        payload = buf[start:]
        state.wants_head = False
        state.remaining_bytes = length - len(payload)
        if self.is_server:
            payload = _apply_mask(payload, mask)
            state.mask = _rotate_mask(mask, len(payload))
        handler.handle_fragment(payload, state.remaining_bytes, state.op_code, fin, state)
        return None

    def _consume_continuation(self, buf: bytes) -> int | None:
        state = self.state
        handler = self.handler
        remaining = state.remaining_bytes

        if remaining <= len(buf):
            payload = buf[:remaining]
            if self.is_server:
                payload = _apply_mask(payload, state.mask)
            if handler.handle_fragment(payload, 0, state.op_code, state.last_fin, state):
                return None
            if state.last_fin:
                state.op_stack.pop()
            state.wants_head = True
            return remaining

        payload = _apply_mask(buf, state.mask) if self.is_server else buf
        state.remaining_bytes -= len(buf)
        if handler.handle_fragment(payload, state.remaining_bytes, state.op_code, state.last_fin, state):
            return None
        if self.is_server:
            state.mask = _rotate_mask(state.mask, len(buf))
        return None