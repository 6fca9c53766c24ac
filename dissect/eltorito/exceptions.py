from __future__ import annotations


class Error(Exception):
    pass


class VolumeDescriptorError(Error):
    pass


class UnknownTypeError(VolumeDescriptorError):
    def __init__(self, value: int):
        super().__init__(f"Unknown volume descriptor type: {value}")
        self.value = value


class UnknownIdentError(VolumeDescriptorError):
    def __init__(self, ident: bytes):
        super().__init__(f"Unknown volume descriptor identifier: {ident!r}")
        self.ident = ident


class UnknownVersionError(VolumeDescriptorError):
    def __init__(self, version: int):
        super().__init__(f"Unknown volume descriptor version: {version}")
        self.version = version


class UnexpectedTypeError(VolumeDescriptorError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected volume descriptor type {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class InvalidAlphabetError(Error):
    """A fixed string contains a byte outside of its character set."""

    def __init__(self, code_point: int, alphabet: bytes):
        super().__init__(f"Invalid character {code_point:#04x} for alphabet {alphabet!r}")
        self.code_point = code_point
        self.alphabet = alphabet


class InvalidDateError(Error):
    """A decimal date/time sub-field is out of its own range."""

    def __init__(self, field: str, range: range, actual: str):
        super().__init__(f"Invalid {field} {actual!r}, expected {range.start}..{range.stop - 1}")
        self.field = field
        self.range = range
        self.actual = actual


class RedundancyMismatchError(Error):
    """The little-endian and big-endian halves of a both-endian integer disagree."""

    def __init__(self, little: int, big: int):
        super().__init__(f"Both-endian mismatch: little-endian {little} != big-endian {big}")
        self.little = little
        self.big = big


class UnknownTagError(Error):
    name = "tag"

    def __init__(self, value: int):
        super().__init__(f"Unknown {self.name}: {value:#04x}")
        self.value = value


class UnknownPlatformIdError(UnknownTagError):
    name = "platform id"


class UnknownBootMediaError(UnknownTagError):
    name = "boot media"


class UnknownBootIndicatorError(UnknownTagError):
    name = "boot indicator"


class UnknownHeaderIndicatorError(UnknownTagError):
    name = "header indicator"


class InvalidKeyBytesError(Error):
    def __init__(self, key: bytes):
        super().__init__(f"Invalid validation entry key bytes: {key.hex()}")
        self.key = key
