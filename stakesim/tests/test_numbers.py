"""
Tests for ledger quantity coercion.
"""

from decimal import Decimal, getcontext

import pytest

from stakesim.core.numbers import WEI, format_ether, parse_int, parse_optional_int, to_decimal_str


def test_parse_int_forms():
    assert parse_int(5) == 5
    assert parse_int("42") == 42
    assert parse_int(" 0x2A ") == 42
    assert parse_int(b"\x01\x00") == 256
    assert parse_int(str(2 ** 256 - 1)) == 2 ** 256 - 1


def test_parse_int_rejects_bad_input():
    with pytest.raises(ValueError):
        parse_int("1.5")
    with pytest.raises(TypeError):
        parse_int(True)
    with pytest.raises(TypeError):
        parse_int(None)


def test_optional_and_decimal_strings():
    assert parse_optional_int(None) is None
    assert parse_optional_int("") is None
    assert to_decimal_str(None) is None
    assert to_decimal_str("0xff") == "255"


def test_format_ether():
    assert format_ether(0) == "0"
    assert format_ether(WEI) == "1"
    assert format_ether(WEI + WEI // 2) == "1.5"
    assert format_ether(-3 * WEI // 4) == "-0.75"
    assert format_ether(2_000_000 * WEI) == "2000000"


def test_parse_int_rejects_lossy_floats():
    assert parse_int(3.0) == 3
    with pytest.raises(ValueError):
        parse_int(2.7)
    with pytest.raises(ValueError):
        parse_int(1.0000000000000001e21)
    with pytest.raises(ValueError):
        parse_int(float(2 ** 53))
    with pytest.raises(ValueError):
        parse_int(float("nan"))


def test_parse_int_decimal():
    assert parse_int(Decimal("12")) == 12
    with pytest.raises(ValueError):
        parse_int(Decimal("1.5"))
    with pytest.raises(ValueError):
        parse_int(Decimal("Infinity"))


def test_parse_int_big_number_mappings():
    assert parse_int({"type": "BigNumber", "hex": "0x0de0b6b3a7640000"}) == WEI
    assert parse_int({"_hex": "0x10", "_isBigNumber": True}) == 16
    with pytest.raises(ValueError):
        parse_int({"type": "BigNumber"})


def test_format_ether_leaves_global_context_alone():
    before = getcontext().prec

    result = format_ether(10 ** 60 + 1)

    assert getcontext().prec == before
    # 61 significant digits, beyond the default context precision
    assert result == "1" + "0" * 42 + ".000000000000000001"
