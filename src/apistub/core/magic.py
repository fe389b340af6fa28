"""Cheap classification of a buffer's leading bytes."""

from __future__ import annotations

from enum import Enum

FAT_MAGIC = 0xCAFEBABE
FAT_MAGIC_64 = 0xCAFEBABF
MH_MAGIC = 0xFEEDFACE
MH_CIGAM = 0xCEFAEDFE
MH_MAGIC_64 = 0xFEEDFACF
MH_CIGAM_64 = 0xCFFAEDFE

# Java class files share 0xCAFEBABE; their major version (>= 43) follows it.
_MAX_FAT_ARCHS = 43


class MagicSignature(str, Enum):
    """Coarse file kinds recognizable from the first bytes of a buffer."""

    UNKNOWN = "unknown"
    ARCHIVE = "archive"
    ELF = "elf"
    MACHO_OBJECT = "macho-object"
    MACHO_EXECUTABLE = "macho-executable"
    MACHO_DYNAMIC_LIBRARY = "macho-dynamic-library"
    MACHO_BUNDLE = "macho-bundle"
    MACHO_DYNAMIC_LIBRARY_STUB = "macho-dynamic-library-stub"
    MACHO_UNIVERSAL_BINARY = "macho-universal-binary"


_MACHO_FILETYPES = {
    0x1: MagicSignature.MACHO_OBJECT,
    0x2: MagicSignature.MACHO_EXECUTABLE,
    0x6: MagicSignature.MACHO_DYNAMIC_LIBRARY,
    0x8: MagicSignature.MACHO_BUNDLE,
    0x9: MagicSignature.MACHO_DYNAMIC_LIBRARY_STUB,
}


def identify_magic(data: bytes) -> MagicSignature:
    """Classify ``data`` by its magic number.

    The result depends only on the leading bytes, so identical buffers always
    produce identical signatures.

    Args:
        data: Raw file contents.

    Returns:
        MagicSignature: Detected signature, ``UNKNOWN`` when nothing matches.
    """
    if len(data) < 4:
        return MagicSignature.UNKNOWN

    if data.startswith(b"!<arch>\n"):
        return MagicSignature.ARCHIVE
    if data.startswith(b"\x7fELF"):
        return MagicSignature.ELF

    magic = int.from_bytes(data[:4], "big")
    if magic in (FAT_MAGIC, FAT_MAGIC_64):
        if len(data) >= 8 and int.from_bytes(data[4:8], "big") < _MAX_FAT_ARCHS:
            return MagicSignature.MACHO_UNIVERSAL_BINARY
        return MagicSignature.UNKNOWN

    if magic in (MH_MAGIC, MH_MAGIC_64):
        byteorder = "big"
    elif magic in (MH_CIGAM, MH_CIGAM_64):
        byteorder = "little"
    else:
        return MagicSignature.UNKNOWN

    if len(data) < 16:
        return MagicSignature.UNKNOWN
    filetype = int.from_bytes(data[12:16], byteorder)
    return _MACHO_FILETYPES.get(filetype, MagicSignature.UNKNOWN)


__all__ = [
    "MagicSignature",
    "identify_magic",
    "FAT_MAGIC",
    "FAT_MAGIC_64",
    "MH_MAGIC",
    "MH_CIGAM",
    "MH_MAGIC_64",
    "MH_CIGAM_64",
]
