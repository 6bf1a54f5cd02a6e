"""Small number formatting helpers used when writing HTTP output."""

_HEX_DIGITS = "0123456789abcdef"

_U32_MAX = 0xFFFFFFFF
_U64_MAX = 0xFFFFFFFFFFFFFFFF


def _check_range(value: int, maximum: int, kind: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{kind} value must be an int, not {type(value).__name__}")
    if value < 0 or value > maximum:
        raise ValueError(f"{value} is out of range for an unsigned {kind} value")


def u32_to_hex(value: int) -> str:
    """Format an unsigned 32-bit integer as lower-case hex without leading zeros."""
    _check_range(value, _U32_MAX, "32-bit")
    digits = []
    while True:
        digits.append(_HEX_DIGITS[value & 15])
        value >>= 4
        if not value:
            break
    return "".join(reversed(digits))


def u64_to_dec(value: int) -> str:
    """Format an unsigned 64-bit integer in decimal without leading zeros."""
    _check_range(value, _U64_MAX, "64-bit")
    digits = []
    while True:
        value, digit = divmod(value, 10)
        digits.append(chr(ord("0") + digit))
        if not value:
            break
    return "".join(reversed(digits))