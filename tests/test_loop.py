import threading
import zlib

import pytest

from microws.loop import Loop, PreparedMessage, get_loop, run
from microws.protocol import OpCode


def _inflate(data):
    return zlib.decompressobj(-15).decompress(data + b"\x00\x00\xff\xff")


def test_deferred_callbacks_run_in_order_on_iterate():
    loop = Loop()
    seen = []
    loop.defer(lambda: seen.append(1))
    loop.defer(lambda: seen.append(2))
    assert seen == []
    loop.iterate()
    assert seen == [1, 2]
    loop.iterate()
    assert seen == [1, 2]


def test_callback_deferred_during_drain_runs_next_iteration():
    loop = Loop()
    seen = []
    loop.defer(lambda: loop.defer(lambda: seen.append("inner")))
    loop.iterate()
    assert seen == []
    loop.iterate()
    assert seen == ["inner"]


def test_run_drains_chained_deferrals():
    loop = Loop()
    seen = []
    loop.defer(lambda: loop.defer(lambda: seen.append("second")))
    loop.run()
    assert seen == ["second"]


def test_defer_from_another_thread():
    loop = Loop()
    seen = []
    worker = threading.Thread(target=lambda: loop.defer(lambda: seen.append("t")))
    worker.start()
    worker.join()
    loop.iterate()
    assert seen == ["t"]


def test_pre_deferred_post_order():
    loop = Loop()
    seen = []
    loop.add_pre_handler("k", lambda l: seen.append("pre"))
    loop.add_post_handler("k", lambda l: seen.append("post"))
    loop.defer(lambda: seen.append("deferred"))
    loop.iterate()
    assert seen == ["pre", "deferred", "post"]


def test_handlers_receive_loop():
    loop = Loop()
    received = []
    loop.add_post_handler("k", received.append)
    loop.iterate()
    assert received == [loop]


def test_adding_existing_key_keeps_first_handler():
    loop = Loop()
    seen = []
    loop.add_pre_handler("k", lambda l: seen.append("first"))
    loop.add_pre_handler("k", lambda l: seen.append("second"))
    loop.iterate()
    assert seen == ["first"]


def test_removed_handlers_do_not_run():
    loop = Loop()
    seen = []
    loop.add_pre_handler("a", lambda l: seen.append("pre"))
    loop.add_post_handler("b", lambda l: seen.append("post"))
    loop.remove_pre_handler("a")
    loop.remove_post_handler("b")
    loop.remove_post_handler("missing")
    loop.iterate()
    assert seen == []


def test_handler_may_remove_itself_during_iteration():
    loop = Loop()
    seen = []
    loop.add_post_handler(
        "once",
        lambda l: (seen.append("once"), l.remove_post_handler("once")),
    )
    loop.iterate()
    loop.iterate()
    assert seen == ["once"]
    # The key is free again, so a new handler under it is accepted.
    loop.add_post_handler("once", lambda l: seen.append("again"))
    loop.iterate()
    assert seen == ["once", "again"]


def test_corked_socket_across_iterations_raises():
    loop = Loop()
    loop.corked_socket = object()
    with pytest.raises(RuntimeError):
        loop.iterate()


def test_prepare_message_uncompressed():
    prepared = Loop().prepare_message("hi", OpCode.TEXT, False)
    assert prepared == PreparedMessage(b"hi", b"", False, int(OpCode.TEXT))


def test_prepare_message_compressed_round_trip():
    payload = b"hello hello hello hello " * 20
    prepared = Loop().prepare_message(payload, OpCode.BINARY, True)
    assert prepared.compressed is True
    assert prepared.op_code == OpCode.BINARY
    assert prepared.original_message == payload
    assert not prepared.compressed_message.endswith(b"\x00\x00\xff\xff")
    assert len(prepared.compressed_message) < len(payload)
    assert _inflate(prepared.compressed_message) == payload


def test_set_silent():
    loop = Loop()
    loop.set_silent(True)
    assert loop.silent is True
    loop.set_silent(False)
    assert loop.silent is False


def test_get_loop_is_per_thread():
    main = get_loop()
    assert get_loop() is main
    others = []
    worker = threading.Thread(target=lambda: others.append(get_loop()))
    worker.start()
    worker.join()
    assert others[0] is not main


def test_free_resets_thread_loop_and_drops_work():
    loop = get_loop()
    seen = []
    loop.defer(lambda: seen.append(1))
    loop.free()
    assert get_loop() is not loop
    loop.iterate()
    assert seen == []
    get_loop().free()


def test_module_run_uses_thread_loop():
    seen = []
    get_loop().defer(lambda: seen.append("ran"))
    run()
    assert seen == ["ran"]
    get_loop().free()