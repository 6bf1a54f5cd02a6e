import base64

import pytest

from microws.handshake import ACCEPT_LENGTH, KEY_LENGTH, base64_encode, generate, generate_key


def test_generate_matches_protocol_example():
    assert generate("dGhlIHNhbXBsZSBub25jZQ==") == "s3pPLMBiTxaQ9kYGzzhZRbK+xOo="


def test_generate_accepts_bytes_like_str():
    key = "dGhlIHNhbXBsZSBub25jZQ=="
    assert generate(key.encode("ascii")) == generate(key)


def test_generate_output_shape():
    accept = generate(generate_key())
    assert len(accept) == ACCEPT_LENGTH
    assert len(base64.b64decode(accept)) == 20


@pytest.mark.parametrize("key", ["", "short", "x" * 25])
def test_generate_rejects_wrong_length(key):
    with pytest.raises(ValueError):
        generate(key)


def test_base64_single_byte_padding():
    assert base64_encode(b"f") == "Zg=="


@pytest.mark.parametrize("data", [b"", b"a", b"ab", b"abc", bytes(range(256))])
def test_base64_round_trip(data):
    encoded = base64_encode(data)
    assert base64.b64decode(encoded) == data
    assert len(encoded) % 4 == 0


def test_generate_key_shape():
    key = generate_key()
    assert len(key) == KEY_LENGTH
    assert key.endswith("==")
    assert len(base64.b64decode(key)) == 16


def test_generate_key_is_random():
    keys = {generate_key() for _ in range(20)}
    assert len(keys) == 20