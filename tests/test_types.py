"""Tests for shared enumerations and version helpers."""

from __future__ import annotations

import pytest

from apistub.core import Architecture, FileType, InterfaceFile, ReadFlags, Symbol
from apistub.core.types import (
    decode_version,
    encode_version,
    normalize_version,
    sort_architectures,
)


def test_file_type_masks() -> None:
    """Members combine into masks; INVALID is the empty mask."""
    mask = FileType.TBD_V1 | FileType.TBD_V2

    assert FileType.TBD_V2 & mask
    assert not FileType.API_V1 & mask
    assert not FileType.INVALID
    assert all(member & FileType.ALL for member in FileType if member is not FileType.INVALID)


def test_read_flags_are_ordered() -> None:
    assert ReadFlags.HEADER < ReadFlags.SYMBOLS < ReadFlags.ALL


@pytest.mark.parametrize(
    ("text", "packed", "canonical"),
    [
        ("1", 0x10000, "1"),
        ("1.0", 0x10000, "1"),
        ("1.2", 0x10200, "1.2"),
        ("10.14.6", 0xA0E06, "10.14.6"),
        ("1.0.1", 0x10001, "1.0.1"),
    ],
)
def test_version_packing(text: str, packed: int, canonical: str) -> None:
    """Versions pack into xxxx.yy.zz and render without trailing zeros."""
    assert encode_version(text) == packed
    assert decode_version(packed) == canonical
    assert normalize_version(text) == canonical


@pytest.mark.parametrize("value", ["", "1.2.3.4", "a.b", "1.256", "65536", None, True])
def test_invalid_versions_are_rejected(value: object) -> None:
    with pytest.raises(ValueError):
        normalize_version(value)


def test_architectures_sort_canonically() -> None:
    archs = {Architecture.ARM64, Architecture.I386, Architecture.X86_64}

    assert sort_architectures(archs) == [
        Architecture.I386,
        Architecture.X86_64,
        Architecture.ARM64,
    ]


def test_interface_file_orders_symbols() -> None:
    """Defined symbols precede undefined ones and names sort within a kind."""
    file = InterfaceFile(
        current_version=2,
        symbols=[
            Symbol(name="_z", undefined=True),
            Symbol(name="_b"),
            Symbol(name="_a"),
        ],
    )

    assert [symbol.name for symbol in file.symbols] == ["_a", "_b", "_z"]
    assert [symbol.name for symbol in file.exports()] == ["_a", "_b"]
    assert [symbol.name for symbol in file.undefineds()] == ["_z"]
    assert file.current_version == "2"
