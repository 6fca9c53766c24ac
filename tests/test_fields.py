from datetime import datetime, timedelta, timezone

import pytest

from dissect.eltorito.exceptions import (
    InvalidAlphabetError,
    InvalidDateError,
    RedundancyMismatchError,
)
from dissect.eltorito.fields import (
    A_CHARSET,
    D_CHARSET,
    UNSET_DATETIME,
    DecDateTime,
    FixedString,
    read_both_endian,
    write_both_endian,
)


def test_charsets() -> None:
    assert b" " in A_CHARSET
    assert b" " not in D_CHARSET
    assert b"." in A_CHARSET
    assert b"." not in D_CHARSET
    assert set(D_CHARSET) < set(A_CHARSET)


@pytest.mark.parametrize("charset", [A_CHARSET, D_CHARSET])
@pytest.mark.parametrize("code_point", [0x00, 0x01, ord("#"), ord("$"), ord("@"), ord("["), 0x7F, 0x80, 0xFF])
@pytest.mark.parametrize("position", [0, 3, 7])
def test_fixed_string_rejects_out_of_charset(charset: bytes, code_point: int, position: int) -> None:
    buf = bytearray(b"ABCDEFGH")
    buf[position] = code_point

    with pytest.raises(InvalidAlphabetError) as exc:
        FixedString.parse(bytes(buf) + b"Z  ", charset)

    assert exc.value.code_point == code_point
    assert exc.value.alphabet == charset


def test_fixed_string_space_only_valid_in_a_charset() -> None:
    assert FixedString.parse(b"MY DISC ", A_CHARSET).value == "MY DISC"

    with pytest.raises(InvalidAlphabetError) as exc:
        FixedString.parse(b"MY DISC ", D_CHARSET)
    assert exc.value.code_point == 0x20


@pytest.mark.parametrize("padding", [b"    ", b"\x00\x00\x00\x00", b" \x00 \x00", b"\x00  \x00"])
def test_fixed_string_pad_trimming(padding: bytes) -> None:
    s = FixedString.parse(b"DISC" + padding, D_CHARSET)

    assert len(s) == 4
    assert s.size == 8
    assert s.value == "DISC"
    assert s == FixedString.parse(b"DISC    ", D_CHARSET)


def test_fixed_string_dump() -> None:
    s = FixedString.parse(b"DISC\x00\x00\x00\x00", D_CHARSET)
    assert s.dumps() == b"DISC    "

    out = bytearray(b"\xff" * 12)
    s.dump(out, 2)
    assert out == b"\xff\xffDISC    \xff\xff"

    with pytest.raises(ValueError):
        s.dump(bytearray(4))


def test_fixed_string_from_str() -> None:
    s = FixedString.from_str("BOOT", 8, D_CHARSET)
    assert s.raw == b"BOOT    "
    assert str(s) == "BOOT"

    with pytest.raises(ValueError):
        FixedString.from_str("TOO_LONG_FOR_IT", 8, D_CHARSET)

    with pytest.raises(InvalidAlphabetError) as exc:
        FixedString.from_str("böot", 8, A_CHARSET)
    assert exc.value.code_point == 0xF6


def test_fixed_string_optional() -> None:
    assert FixedString.optional(b" " * 32) is None
    assert FixedString.optional(b"\x00" * 32) is None
    assert FixedString.optional(b"LINUX" + b" " * 27).value == "LINUX"


def test_fixed_string_is_immutable() -> None:
    s = FixedString.parse(b"DISC")
    with pytest.raises(AttributeError):
        s.length = 1


def test_both_endian() -> None:
    assert write_both_endian(0x800, 2) == b"\x00\x08\x08\x00"
    assert write_both_endian(1, 4) == b"\x01\x00\x00\x00\x00\x00\x00\x01"
    assert read_both_endian(b"\x00\x08\x08\x00", 2) == 0x800
    assert read_both_endian(write_both_endian(123456, 4), 4) == 123456


def test_both_endian_mismatch() -> None:
    buf = b"\x01\x00\x00\x00\x00\x00\x00\x02"

    with pytest.raises(RedundancyMismatchError) as exc:
        read_both_endian(buf, 4)
    assert exc.value.little == 1
    assert exc.value.big == 2

    # The little-endian half wins when not strict
    assert read_both_endian(buf, 4, strict=False) == 1


def test_both_endian_wrong_size() -> None:
    with pytest.raises(ValueError):
        read_both_endian(b"\x00" * 6, 4)


def test_dec_datetime_parse() -> None:
    dt = DecDateTime.parse(b"2024030912252550\x04")

    assert dt == DecDateTime(2024, 3, 9, 12, 25, 25, 50, 4)
    assert dt.to_datetime() == datetime(2024, 3, 9, 12, 25, 25, 500000, tzinfo=timezone(timedelta(hours=1)))
    assert dt.dumps() == b"2024030912252550\x04"


def test_dec_datetime_negative_timezone() -> None:
    dt = DecDateTime.parse(b"1999123123595999\xec")

    assert dt.timezone == -20
    assert dt.to_datetime().utcoffset() == timedelta(hours=-5)
    assert dt.dumps() == b"1999123123595999\xec"


@pytest.mark.parametrize("buf", [UNSET_DATETIME, b"0" * 16 + b"\x00", bytes(17), b"00\x0000\x00" * 2 + b"0000\x00"])
def test_dec_datetime_unset(buf: bytes) -> None:
    assert DecDateTime.parse(buf) is None


def test_dec_datetime_zero_digits_with_timezone_is_not_unset() -> None:
    with pytest.raises(InvalidDateError) as exc:
        DecDateTime.parse(b"0" * 16 + b"\x01")
    assert exc.value.field == "year"
    assert exc.value.actual == "0000"


@pytest.mark.parametrize(
    "buf,field,actual,valid",
    [
        (b"0000010100000000\x00", "year", "0000", range(1, 10000)),
        (b"2024130100000000\x00", "month", "13", range(1, 13)),
        (b"2024003100000000\x00", "month", "00", range(1, 13)),
        (b"2024013200000000\x00", "day", "32", range(1, 32)),
        (b"2024010124000000\x00", "hour", "24", range(0, 24)),
        (b"2024010100600000\x00", "minute", "60", range(0, 60)),
        (b"2024010100006000\x00", "second", "60", range(0, 60)),
        (b"20240101000000XY\x00", "centisecond", "XY", range(0, 100)),
    ],
)
def test_dec_datetime_validates_each_field_against_its_own_value(
    buf: bytes, field: str, actual: str, valid: range
) -> None:
    # Every field here has a valid year, so a check that only looks at the year would accept them
    with pytest.raises(InvalidDateError) as exc:
        DecDateTime.parse(buf)

    assert exc.value.field == field
    assert exc.value.actual == actual
    assert exc.value.range == valid


def test_dec_datetime_invalid_character() -> None:
    with pytest.raises(InvalidAlphabetError) as exc:
        DecDateTime.parse(b"2024-1-010000000\x00")
    assert exc.value.code_point == ord("-")
    assert exc.value.alphabet == D_CHARSET


def test_dec_datetime_default() -> None:
    dt = DecDateTime()

    assert (dt.year, dt.month, dt.day) == (1, 1, 1)
    assert (dt.hour, dt.minute, dt.second, dt.centisecond) == (0, 0, 0, 0)
    assert dt.timezone == 12
    assert dt.dumps() == b"0001010100000000\x0c"
    # The timezone byte counts 15 minute intervals from GMT
    assert dt.to_datetime().isoformat() == "0001-01-01T00:00:00+03:00"
    assert DecDateTime(timezone=0).to_datetime().utcoffset() == timedelta(0)


def test_dec_datetime_timezone_limits() -> None:
    assert DecDateTime(2024, timezone=95).to_datetime().utcoffset() == timedelta(hours=23, minutes=45)
    assert DecDateTime(2024, timezone=-95).to_datetime().utcoffset() == -timedelta(hours=23, minutes=45)

    # Stored and dumped as is, but not representable as a datetime timezone
    dt = DecDateTime.parse(b"2024010100000000\x60")
    assert dt.timezone == 96
    assert dt.dumps() == b"2024010100000000\x60"
    with pytest.raises(ValueError):
        dt.to_datetime()


def test_dec_datetime_construction_is_validated() -> None:
    with pytest.raises(InvalidDateError) as exc:
        DecDateTime(2024, 13)
    assert exc.value.field == "month"

    with pytest.raises(ValueError):
        DecDateTime(timezone=200)


def test_dec_datetime_from_datetime() -> None:
    value = datetime(2024, 7, 22, 8, 32, 25, 120000, tzinfo=timezone(timedelta(hours=2)))
    dt = DecDateTime.from_datetime(value)

    assert dt == DecDateTime(2024, 7, 22, 8, 32, 25, 12, 8)
    assert dt.to_datetime() == value
