"""Enumerations and small value helpers shared by every format."""

from __future__ import annotations

from enum import Enum, Flag, IntEnum
from typing import FrozenSet, Iterable, List


class FileType(Flag):
    """Concrete, versioned API description formats.

    Members combine into masks so callers can restrict detection to a subset of
    formats. ``INVALID`` is the empty mask and doubles as "no recognized format".
    """

    INVALID = 0
    MACHO_DYLIB = 1 << 0
    TBD_V1 = 1 << 1
    TBD_V2 = 1 << 2
    API_V1 = 1 << 3
    CONFIGURATION_V1 = 1 << 4
    REEXPORT_LIST = 1 << 5
    ALL = MACHO_DYLIB | TBD_V1 | TBD_V2 | API_V1 | CONFIGURATION_V1 | REEXPORT_LIST


class ReadFlags(IntEnum):
    """How much of a file a reader should decode, in increasing order."""

    HEADER = 1
    SYMBOLS = 2
    ALL = 3


class Architecture(str, Enum):
    """CPU architectures that may appear in an API description.

    Declaration order is the canonical order used when emitting documents.
    """

    I386 = "i386"
    X86_64 = "x86_64"
    X86_64H = "x86_64h"
    ARMV7 = "armv7"
    ARMV7S = "armv7s"
    ARMV7K = "armv7k"
    ARM64 = "arm64"
    ARM64E = "arm64e"


ArchitectureSet = FrozenSet[Architecture]

ALL_ARCHITECTURES: ArchitectureSet = frozenset(Architecture)

_ARCHITECTURE_RANK = {arch: index for index, arch in enumerate(Architecture)}


class Platform(str, Enum):
    """Deployment platforms recorded by API descriptions."""

    UNKNOWN = "unknown"
    MACOS = "macosx"
    IOS = "ios"
    TVOS = "tvos"
    WATCHOS = "watchos"
    BRIDGEOS = "bridgeos"


class ObjCConstraint(str, Enum):
    """Objective-C runtime constraint recorded by text stubs."""

    NONE = "none"
    RETAIN_RELEASE = "retain_release"
    RETAIN_RELEASE_OR_GC = "retain_release_or_gc"
    RETAIN_RELEASE_FOR_SIMULATOR = "retain_release_for_simulator"
    GC = "gc"


def sort_architectures(archs: Iterable[Architecture]) -> List[Architecture]:
    """Return architectures in canonical declaration order."""
    return sorted(set(archs), key=_ARCHITECTURE_RANK.__getitem__)


def architecture_key(archs: Iterable[Architecture]) -> tuple[int, ...]:
    """Return a sort key that orders architecture sets canonically."""
    return tuple(_ARCHITECTURE_RANK[arch] for arch in sort_architectures(archs))


def encode_version(text: str) -> int:
    """Pack a dotted ``major[.minor[.patch]]`` version into 32 bits.

    Args:
        text: Version string such as ``"1.2.3"``.

    Returns:
        int: Packed value using the ``xxxx.yy.zz`` nibble layout.

    Raises:
        ValueError: If the string is not a valid packed version.
    """
    parts = str(text).strip().split(".")
    if not parts or len(parts) > 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"invalid version {text!r}")
    numbers = [int(part) for part in parts] + [0] * (3 - len(parts))
    major, minor, patch = numbers
    if major > 0xFFFF or minor > 0xFF or patch > 0xFF:
        raise ValueError(f"version component out of range in {text!r}")
    return (major << 16) | (minor << 8) | patch


def decode_version(value: int) -> str:
    """Render a packed 32-bit version, omitting trailing zero components."""
    major = (value >> 16) & 0xFFFF
    minor = (value >> 8) & 0xFF
    patch = value & 0xFF
    if patch:
        return f"{major}.{minor}.{patch}"
    if minor:
        return f"{major}.{minor}"
    return str(major)


def normalize_version(value: object) -> str:
    """Return the canonical text form of a version read from any source."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"invalid version {value!r}")
    return decode_version(encode_version(str(value)))


__all__ = [
    "FileType",
    "ReadFlags",
    "Architecture",
    "ArchitectureSet",
    "ALL_ARCHITECTURES",
    "Platform",
    "ObjCConstraint",
    "sort_architectures",
    "architecture_key",
    "encode_version",
    "decode_version",
    "normalize_version",
]
