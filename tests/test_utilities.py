import pytest

from microws.utilities import u32_to_hex, u64_to_dec


def test_zero_hex():
    assert u32_to_hex(0) == "0"


def test_zero_dec():
    assert u64_to_dec(0) == "0"


def test_max_u64_decimal():
    assert u64_to_dec(2**64 - 1) == "18446744073709551615"


@pytest.mark.parametrize("value", [1, 9, 10, 15, 16, 255, 4096, 0xDEADBEEF, 2**32 - 1])
def test_hex_round_trip(value):
    text = u32_to_hex(value)
    assert int(text, 16) == value
    assert text == text.lower()
    assert not text.startswith("0")


@pytest.mark.parametrize("value", [1, 9, 10, 99, 100, 123456789, 2**32, 2**63])
def test_dec_round_trip(value):
    text = u64_to_dec(value)
    assert int(text) == value
    assert text.isdigit()
    assert not text.startswith("0")


def test_hex_length_grows_by_nibble():
    assert len(u32_to_hex(15)) + 1 == len(u32_to_hex(16))


@pytest.mark.parametrize("value", [-1, 2**32])
def test_hex_out_of_range(value):
    with pytest.raises(ValueError):
        u32_to_hex(value)


@pytest.mark.parametrize("value", [-1, 2**64])
def test_dec_out_of_range(value):
    with pytest.raises(ValueError):
        u64_to_dec(value)


def test_non_int_rejected():
    with pytest.raises(TypeError):
        u64_to_dec("12")