"""Split a byte string into chunks, each announced by a leading size byte."""

from collections.abc import Iterator


def make_chunked(data: bytes) -> Iterator[bytes]:
    """Yield the chunks described by ``data``.

    Each chunk is preceded by one byte giving its size: 0 means everything
    that remains, 1-255 means at most that many bytes. Chunks may be empty.
    """
    view = memoryview(bytes(data))
    position = 0
    total = len(view)
    while position < total:
        size = view[position]
        position += 1
        remaining = total - position
        size = remaining if size == 0 else min(size, remaining)
        yield bytes(view[position:position + size])
        position += size