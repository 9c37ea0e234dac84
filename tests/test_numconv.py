import pytest

from callstack.numconv import POINTER_BITS, to_dec, to_hex, try_dec_convert


def test_to_hex_array_cases():
    assert "0x0" in to_hex(0)
    assert "10" in to_hex(0x10)
    assert "19" in to_hex(0x19)
    assert "999999" in to_hex(0x999999)


def test_to_hex_null_is_zero():
    assert to_hex(None) == to_hex(0)


def test_to_hex_shape_and_round_trip():
    for value in (0, 1, 0x10, 0xABCDEF, (1 << POINTER_BITS) - 1):
        text = to_hex(value)
        assert text.startswith("0x")
        assert len(text) == 2 + POINTER_BITS // 4
        assert int(text, 16) == value


def test_to_hex_is_upper_case():
    text = to_hex(0xabcdef)
    assert "ABCDEF" in text
    assert text[2:] == text[2:].upper()


def test_to_hex_wraps_negative():
    assert to_hex(-1) == "0x" + "F" * (POINTER_BITS // 4)


def test_to_dec_array_cases():
    assert to_dec(0) == "0"
    assert to_dec(10) == "10"
    assert to_dec(19) == "19"
    assert to_dec(999999) == "999999"


def test_to_dec_rejects_negative():
    with pytest.raises(ValueError):
        to_dec(-1)


def test_to_dec_rejects_non_integer():
    with pytest.raises(TypeError):
        to_dec("12")


@pytest.mark.parametrize(
    "text, expected",
    [("0", 0), ("+0", 0), ("10", 10), ("19", 19), ("+19", 19), ("9999", 9999)],
)
def test_try_dec_convert_accepts(text, expected):
    assert try_dec_convert(text) == expected


@pytest.mark.parametrize("text", ["q", "0z", "0u", "+0u"])
def test_try_dec_convert_rejects(text):
    assert try_dec_convert(text) is None


def test_try_dec_convert_rejects_sign_only():
    assert try_dec_convert("+") is None