"""Magic signature classification tests."""

from __future__ import annotations

import struct
from typing import Callable

import pytest

from apistub.core import MagicSignature, identify_magic


@pytest.mark.parametrize(
    ("filetype", "expected"),
    [
        (1, MagicSignature.MACHO_OBJECT),
        (2, MagicSignature.MACHO_EXECUTABLE),
        (6, MagicSignature.MACHO_DYNAMIC_LIBRARY),
        (8, MagicSignature.MACHO_BUNDLE),
        (9, MagicSignature.MACHO_DYNAMIC_LIBRARY_STUB),
        (0x7F, MagicSignature.UNKNOWN),
    ],
)
def test_thin_images_are_classified_by_filetype(
    dylib_factory: Callable[..., bytes], filetype: int, expected: MagicSignature
) -> None:
    """The header's file type picks the Mach-O signature."""
    assert identify_magic(dylib_factory(filetype=filetype)) is expected


def test_both_byte_orders_and_widths_are_recognized(dylib_factory: Callable[..., bytes]) -> None:
    """Little/big endian and 32/64-bit headers all classify as dylibs."""
    for big_endian in (False, True):
        for is_64 in (False, True):
            data = dylib_factory(big_endian=big_endian, is_64=is_64)
            assert identify_magic(data) is MagicSignature.MACHO_DYNAMIC_LIBRARY


def test_universal_binary_and_java_class_are_distinguished() -> None:
    """Fat headers with an implausible slice count are Java class files."""
    fat = struct.pack(">2I", 0xCAFEBABE, 2)
    java = struct.pack(">2I", 0xCAFEBABE, 52)

    assert identify_magic(fat) is MagicSignature.MACHO_UNIVERSAL_BINARY
    assert identify_magic(java) is MagicSignature.UNKNOWN


def test_other_signatures() -> None:
    """Archives, ELF images, short and arbitrary buffers."""
    assert identify_magic(b"!<arch>\nfoo") is MagicSignature.ARCHIVE
    assert identify_magic(b"\x7fELF\x02\x01") is MagicSignature.ELF
    assert identify_magic(b"") is MagicSignature.UNKNOWN
    assert identify_magic(b"\xcf\xfa") is MagicSignature.UNKNOWN
    assert identify_magic(b"--- !tapi-tbd-v2\n") is MagicSignature.UNKNOWN
    # Mach-O magic without room for the file type.
    assert identify_magic(b"\xcf\xfa\xed\xfe\x07\x00\x00\x01") is MagicSignature.UNKNOWN


def test_identification_is_deterministic(dylib_factory: Callable[..., bytes]) -> None:
    """Identical bytes always produce identical signatures."""
    data = dylib_factory()
    assert identify_magic(data) is identify_magic(bytes(data))
