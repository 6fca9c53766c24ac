from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from dissect.eltorito.c_iso_9660 import c_iso
from dissect.eltorito.exceptions import (
    InvalidAlphabetError,
    InvalidDateError,
    RedundancyMismatchError,
)

D_CHARSET = b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_"
A_CHARSET = D_CHARSET + b" !\"%&'()*+,-./:;<=>?"

# The standard pads with spaces, but some images are padded with NUL bytes instead
PAD_BYTES = b" \x00"

DATETIME_SIZE = 17
UNSET_DATETIME = b"0" * 16 + b"\x00"


def write_into(out: bytearray | memoryview, offset: int, data: bytes) -> None:
    """Copy ``data`` into the caller supplied buffer ``out`` at ``offset``."""
    end = offset + len(data)
    if offset < 0 or end > len(out):
        raise ValueError(f"Output buffer too small: need {end} bytes, got {len(out)}")
    out[offset:end] = data


class FixedString:
    """A fixed length string field restricted to a character set.

    The logical value is the content before any trailing padding. Only the logical
    part is validated against the character set.
    """

    __slots__ = ("raw", "charset", "length")

    def __init__(self, raw: bytes, charset: bytes = A_CHARSET):
        raw = bytes(raw)
        length = len(raw.rstrip(PAD_BYTES))

        for code_point in raw[:length]:
            if code_point not in charset:
                raise InvalidAlphabetError(code_point, charset)

        object.__setattr__(self, "raw", raw)
        object.__setattr__(self, "charset", charset)
        object.__setattr__(self, "length", length)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def parse(cls, buf: bytes, charset: bytes = A_CHARSET) -> FixedString:
        return cls(buf, charset)

    @classmethod
    def optional(cls, buf: bytes, charset: bytes = A_CHARSET) -> FixedString | None:
        """Parse ``buf``, returning None if it holds only padding."""
        s = cls(buf, charset)
        return s if s.length else None

    @classmethod
    def from_str(cls, text: str, size: int, charset: bytes = A_CHARSET) -> FixedString:
        for char in text:
            if ord(char) > 0x7F or ord(char) not in charset:
                raise InvalidAlphabetError(ord(char), charset)

        data = text.encode("ascii")
        if len(data) > size:
            raise ValueError(f"String of {len(data)} characters does not fit in {size} bytes")
        return cls(data.ljust(size, b" "), charset)

    @property
    def size(self) -> int:
        return len(self.raw)

    @property
    def value(self) -> str:
        return self.raw[: self.length].decode("ascii")

    def dumps(self, pad: bytes = b" ") -> bytes:
        return self.raw[: self.length].ljust(self.size, pad)

    def dump(self, out: bytearray | memoryview, offset: int = 0) -> None:
        write_into(out, offset, self.dumps())

    def __len__(self) -> int:
        return self.length

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"<FixedString[{self.size}] {self.value!r}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FixedString):
            return NotImplemented
        return (self.size, self.charset, self.value) == (other.size, other.charset, other.value)

    def __hash__(self) -> int:
        return hash((self.size, self.charset, self.value))


def dump_optional_string(value: FixedString | None, size: int, fill: bytes = b" ") -> bytes:
    """Dump an optional fixed string, filling the field with ``fill`` when it is absent."""
    if value is None:
        return fill * size
    if value.size != size:
        raise ValueError(f"Expected a {size} byte string, got {value.size}")
    return value.dumps(fill)


def read_both_endian(buf: bytes, size: int, strict: bool = True) -> int:
    """Read an integer of ``size`` bytes that is stored little-endian followed by big-endian.

    The little-endian value is returned. With ``strict``, both halves have to agree.
    """
    if len(buf) != size * 2:
        raise ValueError(f"Expected {size * 2} bytes for a both-endian integer, got {len(buf)}")

    little = int.from_bytes(buf[:size], "little")
    big = int.from_bytes(buf[size:], "big")
    if strict and little != big:
        raise RedundancyMismatchError(little, big)
    return little


def write_both_endian(value: int, size: int) -> bytes:
    return value.to_bytes(size, "little") + value.to_bytes(size, "big")


# (field name, dec_datetime member, valid range)
DATE_FIELDS = [
    ("year", "year", range(1, 10000)),
    ("month", "month", range(1, 13)),
    ("day", "day", range(1, 32)),
    ("hour", "hour", range(0, 24)),
    ("minute", "minute", range(0, 60)),
    ("second", "second", range(0, 60)),
    ("centisecond", "centiseconds", range(0, 100)),
]


@dataclass(frozen=True)
class DecDateTime:
    """The 17 byte decimal date/time used in volume descriptors.

    ``timezone`` is the signed offset from GMT in 15 minute intervals, so 0 is GMT. The
    default date keeps the customary timezone byte of 12, which reads as GMT+03:00.
    :meth:`to_datetime` raises :class:`ValueError` for offsets of 96 intervals (24
    hours) or more in either direction, which :class:`datetime.timezone` cannot represent.
    """

    year: int = 1
    month: int = 1
    day: int = 1
    hour: int = 0
    minute: int = 0
    second: int = 0
    centisecond: int = 0
    timezone: int = 12

    def __post_init__(self) -> None:
        for name, _, valid in DATE_FIELDS:
            value = getattr(self, name)
            if value not in valid:
                raise InvalidDateError(name, valid, str(value))

        if not -128 <= self.timezone <= 127:
            raise ValueError(f"Timezone offset out of range: {self.timezone}")

    @classmethod
    def parse(cls, buf: bytes) -> DecDateTime | None:
        """Parse a 17 byte date/time, returning None for the unset value."""
        buf = bytes(buf)
        if len(buf) != DATETIME_SIZE:
            raise ValueError(f"Expected {DATETIME_SIZE} bytes for a date/time, got {len(buf)}")

        if buf[16] == 0 and all(b in (0x30, 0x00) for b in buf[:16]):
            return None

        dt = c_iso.dec_datetime(buf)
        values = {}
        for name, member, valid in DATE_FIELDS:
            text = FixedString.parse(getattr(dt, member), D_CHARSET).value
            if not text.isdigit() or int(text) not in valid:
                raise InvalidDateError(name, valid, text)
            values[name] = int(text)

        return cls(timezone=dt.offset, **values)

    @classmethod
    def from_datetime(cls, value: datetime) -> DecDateTime:
        offset = value.utcoffset()
        quarters = int(offset / timedelta(minutes=15)) if offset is not None else 0
        return cls(
            value.year,
            value.month,
            value.day,
            value.hour,
            value.minute,
            value.second,
            value.microsecond // 10000,
            quarters,
        )

    def to_datetime(self) -> datetime:
        tz = timezone(timedelta(minutes=self.timezone * 15))
        return datetime(
            self.year,
            self.month,
            self.day,
            self.hour,
            self.minute,
            self.second,
            self.centisecond * 10000,
            tzinfo=tz,
        )

    def dumps(self) -> bytes:
        return c_iso.dec_datetime(
            year=b"%04d" % self.year,
            month=b"%02d" % self.month,
            day=b"%02d" % self.day,
            hour=b"%02d" % self.hour,
            minute=b"%02d" % self.minute,
            second=b"%02d" % self.second,
            centiseconds=b"%02d" % self.centisecond,
            offset=self.timezone,
        ).dumps()

    def dump(self, out: bytearray | memoryview, offset: int = 0) -> None:
        write_into(out, offset, self.dumps())


def dump_optional_datetime(value: DecDateTime | None) -> bytes:
    return UNSET_DATETIME if value is None else value.dumps()
