# microws

Building blocks for small HTTP and WebSocket servers, in pure Python with
no third-party dependencies.

## What is inside

- `microws.router` – `HttpRouter`, a method-and-path router with static
  segments, `:parameter` segments and `*` wildcards. Routes are added with
  `add(methods, pattern, handler, priority)` (priorities `HIGH_PRIORITY`,
  `MEDIUM_PRIORITY`, `LOW_PRIORITY`), removed with `remove(...)`, and
  matched with `route(method, url)`. A handler receives the router, can read
  the captured `parameters`, and returns a true value when it handled the
  request; a false value lets routing continue. Routes under the `*` method
  are tried last for every method.
- `microws.protocol` – WebSocket framing. `WebSocketParser` consumes bytes
  incrementally (server or client side) and reports unmasked fragments to a
  `FrameHandler`; the default handler collects complete messages in
  `messages` as `(OpCode, bytes)` pairs and records `close_reason` when the
  stream is invalid or a frame is too big. Also provided: `format_message`,
  `message_frame_size`, `parse_close_payload`, `format_close_payload`,
  `is_valid_utf8`, `OpCode`, `CloseFrame`, `WebSocketState` and the
  `ERR_*` close reasons.
- `microws.handshake` – `generate(key)` computes the `Sec-WebSocket-Accept`
  value for a 24-character client key (raising `ValueError` for any other
  length), `generate_key()` makes a fresh random client key, and
  `base64_encode` encodes bytes as padded Base64.
- `microws.query` – `get_decoded_query_value(key, raw_query)` looks up a key
  in a query string (including its leading `?`) and percent- and
  plus-decodes its value, returning `None` when it cannot be found.
- `microws.loop` – `Loop`, a small event loop. `defer(callback)` queues work
  (thread safe), pre and post handlers run around each `iterate()`, and
  `run()` iterates until no deferred work remains. `prepare_message` builds a
  `PreparedMessage`, raw-deflating it when asked. `get_loop()` returns the
  loop of the current thread and `run()` runs it.
- `microws.response_data` – `ResponseData` and the `ResponseState` flags:
  the writable, aborted and data handlers of an HTTP response, its offset
  and status bits, `mark_done()` and `call_on_writable(offset)`.
- `microws.context` – `CompressOptions`, `WebSocketBehavior` (route settings
  and handlers, with `validate()` rejecting idle timeouts from 1 to 7 or over
  960 seconds and lifetimes over 240 minutes), `WebSocketSettings` (built
  with `from_behavior`) and `idle_timeout_components`.
- `microws.useragent` – `has_broken_compression(user_agent)` detects the
  Safari 15.0–15.3 browsers whose per-message compression is broken.
- `microws.utilities` – `u32_to_hex` and `u64_to_dec` number formatting.
- `microws.chunking` – `make_chunked(data)` splits a byte string into chunks
  each announced by a leading size byte, handy for feeding parsers piece by
  piece.

## What it does not do

There is no server here: the package opens no sockets, does not parse HTTP
requests, does not do TLS and has no command to start. There is no pub/sub
topic tree (`WebSocketSettings.topic_tree` is only a slot for one), and no
negotiation of compression extensions. The pieces above are meant to be
wired into a server of your own.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

Routing:

```python
from microws.router import HttpRouter

router = HttpRouter()

def hello(r):
    print("hello", r.parameters)
    return True

router.add(["GET"], "/hello/:name", hello)
router.route("GET", "/hello/world")   # prints hello ('world',) and returns True
router.route("GET", "/nothing")       # False
```

Answering a WebSocket handshake:

```python
from microws.handshake import generate

generate("dGhlIHNhbXBsZSBub25jZQ==")  # 's3pPLMBiTxaQ9kYGzzhZRbK+xOo='
```

Parsing frames sent by a client:

```python
from microws.protocol import FrameHandler, OpCode, WebSocketParser, format_message

handler = FrameHandler()
parser = WebSocketParser(handler, is_server=True)
parser.consume(format_message(b"hi", OpCode.TEXT, is_server=False))
handler.messages  # [(OpCode.TEXT, b'hi')]
```

Reading a query value:

```python
from microws.query import get_decoded_query_value

get_decoded_query_value("q", "?q=hello+world%21")  # 'hello world!'
```

WebSocket route settings:

```python
from microws.context import WebSocketBehavior, WebSocketSettings

settings = WebSocketSettings.from_behavior(WebSocketBehavior(idle_timeout=120))
settings.idle_timeout_components  # (104, 16)
```

Deferring work on the loop:

```python
from microws.loop import get_loop

loop = get_loop()
loop.defer(lambda: print("later"))
loop.iterate()
```