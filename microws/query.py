"""Lookup and decoding of values in a URL query string."""

from __future__ import annotations


def _hex_value(char: int) -> int:
    value = char - ord("0")
    if value > 9:
        value &= 223
        value -= 7
    return value


def _decode(raw: bytes) -> bytes | None:
    """Percent- and plus-decode ``raw``; None when an escape is cut short."""
    out = bytearray()
    length = len(raw)
    i = 0
    while i < length and raw[i]:
        char = raw[i]
        if char == ord("%"):
            if i + 2 >= length:
                return None
            out.append((_hex_value(raw[i + 1]) * 16 + _hex_value(raw[i + 2])) & 0xFF)
            i += 2
        elif char == ord("+"):
            out.append(ord(" "))
        else:
            out.append(char)
        i += 1
    return bytes(out)


def get_decoded_query_value(key: str, raw_query: str) -> str | None:
    """Return the decoded value of ``key`` in ``raw_query`` or None.

    ``raw_query`` includes the leading ``?``. None is returned when the key
    is empty or missing, when a statement sharing the key's first character
    has no ``=``, and when a percent escape is incomplete.
    """
    if not key:
        return None
    key_bytes = key.encode("utf-8")
    query = raw_query.encode("utf-8")

    while query:
        end = query.find(b"&", 1)
        statement = query[1:] if end == -1 else query[1:end]

        if statement and statement[0] == key_bytes[0]:
            equality = statement.find(b"=")
            if equality == -1:
                return None
            if statement[:equality] == key_bytes:
                decoded = _decode(statement[equality + 1:])
                if decoded is None:
                    return None
                return decoded.decode("utf-8", errors="surrogateescape")

        query = query[len(statement) + 1:]

    return None