"""
Integer coercion for ledger quantities.

Ledger amounts are uint256: they are kept as Python ints end to end and
written out as decimal strings, never as floats.
"""

from decimal import Context, Decimal
from typing import Any, Mapping, Optional

WEI = 10 ** 18

# Largest integer a float holds exactly
MAX_SAFE_FLOAT = 2 ** 53

_CONTEXT = Context(prec=80)


def parse_int(value: Any) -> int:
    """
    Parse an integer from int, decimal string, 0x hex string, big-endian
    bytes, or a BigNumber-style mapping ({"hex": "0x.."} or {"_hex": "0x.."}).

    Floats and Decimals are accepted only when integral; floats also only
    below 2**53, where they are exact.

    Raises:
        ValueError: If value cannot be interpreted as an integer
        TypeError: If value is of an unsupported type
    """
    if isinstance(value, bool):
        raise TypeError("bool is not a ledger quantity")
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    if isinstance(value, str):
        s = value.strip()
        if s.lower().startswith("0x"):
            return int(s, 16)
        return int(s)
    if isinstance(value, float):
        if not value.is_integer() or abs(value) >= MAX_SAFE_FLOAT:
            raise ValueError(f"{value!r} is not an exact integer quantity")
        return int(value)
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise ValueError(f"{value!r} is not an integer quantity")
        return int(value)
    if isinstance(value, Mapping):
        for key in ("hex", "_hex"):
            if key in value:
                return parse_int(str(value[key]))
        raise ValueError(f"mapping without hex field is not a quantity: {dict(value)}")
    raise TypeError(f"unsupported quantity type: {type(value).__name__}")


def parse_optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_int(value)


def to_decimal_str(value: Any) -> Optional[str]:
    """Decimal string of a quantity, or None when absent."""
    if value is None:
        return None
    return str(parse_int(value))


def format_ether(value: int) -> str:
    """Format wei as a human amount, dropping trailing zeros."""
    d = _CONTEXT.divide(Decimal(value), Decimal(WEI))
    s = format(d, "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s or "0"
