"""Shared fixtures: synthetic Mach-O images and sample text documents."""

from __future__ import annotations

import struct
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from apistub.config import ApiStubConfig
from apistub.core import Registry
from apistub.registration import build_registry

CPU_TYPES: Dict[str, Tuple[int, int]] = {
    "i386": (7, 3),
    "x86_64": (0x01000007, 3),
    "arm64": (0x0100000C, 0),
    "armv7": (12, 9),
}

N_EXT = 0x01
N_SECT = 0x0E
N_PEXT = 0x10
N_WEAK_DEF = 0x0080
N_WEAK_REF = 0x0040

MH_TWOLEVEL = 0x80
MH_APP_EXTENSION_SAFE = 0x02000000

# (name, n_type, n_desc)
SymbolEntry = Tuple[str, int, int]

DEFAULT_SYMBOLS: Sequence[SymbolEntry] = (
    ("_foo", N_SECT | N_EXT, 0),
    ("_weak_bar", N_SECT | N_EXT, N_WEAK_DEF),
    ("_OBJC_CLASS_$_Widget", N_SECT | N_EXT, 0),
    ("_OBJC_METACLASS_$_Widget", N_SECT | N_EXT, 0),
    ("_OBJC_IVAR_$_Widget.size", N_SECT | N_EXT, 0),
    ("_hidden", N_SECT | N_EXT | N_PEXT, 0),
    ("_local", N_SECT, 0),
    ("_malloc", N_EXT, 0),
)


def _padded(data: bytes, alignment: int = 8) -> bytes:
    return data + b"\0" * (-len(data) % alignment)


def build_dylib(
    *,
    arch: str = "x86_64",
    big_endian: bool = False,
    is_64: bool = True,
    filetype: int = 6,
    install_name: str = "/usr/lib/libfoo.dylib",
    current_version: int = 0x00010203,
    compatibility_version: int = 0x00010000,
    flags: int = MH_TWOLEVEL | MH_APP_EXTENSION_SAFE,
    platform: Optional[int] = 1,
    uuid: Optional[bytes] = bytes(range(16)),
    reexports: Iterable[str] = (),
    clients: Iterable[str] = (),
    symbols: Optional[Sequence[SymbolEntry]] = DEFAULT_SYMBOLS,
) -> bytes:
    """Return a minimal thin Mach-O image.

    Args:
        arch: Architecture name from ``CPU_TYPES``.
        big_endian: Emit the image in big-endian byte order.
        is_64: Emit a 64-bit header and ``nlist_64`` entries.
        filetype: Mach-O file type (6 is a dynamic library).
        install_name: Name recorded in ``LC_ID_DYLIB``; omitted when empty.
        current_version: Packed current version.
        compatibility_version: Packed compatibility version.
        flags: Header flags.
        platform: ``LC_BUILD_VERSION`` platform, or None to omit the command.
        uuid: ``LC_UUID`` bytes, or None to omit the command.
        reexports: Install names recorded as ``LC_REEXPORT_DYLIB``.
        clients: Names recorded as ``LC_SUB_CLIENT``.
        symbols: Symbol table entries, or None to omit ``LC_SYMTAB``.

    Returns:
        bytes: Encoded image.
    """
    order = ">" if big_endian else "<"
    cputype, cpusubtype = CPU_TYPES[arch]
    header_size = 32 if is_64 else 28

    def dylib_command(cmd: int, name: str, current: int, compat: int) -> bytes:
        body = _padded(name.encode() + b"\0")
        return struct.pack(order + "6I", cmd, 24 + len(body), 24, 2, current, compat) + body

    def string_command(cmd: int, name: str) -> bytes:
        body = _padded(name.encode() + b"\0")
        return struct.pack(order + "3I", cmd, 12 + len(body), 12) + body

    commands: List[bytes] = []
    if install_name:
        commands.append(
            dylib_command(0xD, install_name, current_version, compatibility_version)
        )
    if uuid is not None:
        commands.append(struct.pack(order + "2I", 0x1B, 24) + uuid)
    if platform is not None:
        commands.append(struct.pack(order + "6I", 0x32, 24, platform, 0x000A0F00, 0, 0))
    for name in reexports:
        commands.append(dylib_command(0x8000001F, name, 0x10000, 0x10000))
    for name in clients:
        commands.append(string_command(0x14, name))

    symtab_size = 24 if symbols is not None else 0
    sizeofcmds = sum(len(command) for command in commands) + symtab_size
    symbol_data = b""
    if symbols is not None:
        strings = b"\0"
        entries = b""
        entry_format = order + ("IBBHQ" if is_64 else "IBBHI")
        for name, n_type, n_desc in symbols:
            entries += struct.pack(entry_format, len(strings), n_type, 1, n_desc, 0x1000)
            strings += name.encode() + b"\0"
        symoff = header_size + sizeofcmds
        stroff = symoff + len(entries)
        commands.append(
            struct.pack(order + "6I", 0x2, 24, symoff, len(symbols), stroff, len(strings))
        )
        symbol_data = entries + strings

    magic = 0xFEEDFACF if is_64 else 0xFEEDFACE
    header = struct.pack(
        order + "7I", magic, cputype, cpusubtype, filetype, len(commands), sizeofcmds, flags
    )
    if is_64:
        header += b"\0" * 4
    return header + b"".join(commands) + symbol_data


def build_universal(slices: Sequence[Tuple[str, bytes]]) -> bytes:
    """Wrap thin images in a 32-bit fat header.

    Args:
        slices: ``(arch, image)`` pairs in slice order.

    Returns:
        bytes: Encoded universal binary.
    """
    header = struct.pack(">2I", 0xCAFEBABE, len(slices))
    offset = 8 + 20 * len(slices)
    entries = b""
    payload = b""
    for arch, image in slices:
        padding = -offset % 16
        payload += b"\0" * padding
        offset += padding
        cputype, cpusubtype = CPU_TYPES[arch]
        entries += struct.pack(">5I", cputype, cpusubtype, offset, len(image), 4)
        payload += image
        offset += len(image)
    return header + entries + payload


TBD_V1 = b"""---
archs:           [ i386, x86_64 ]
platform:        macosx
install-name:    /usr/lib/libfoo.dylib
current-version: 1.2.3
compatibility-version: 1.0
exports:
  - archs:           [ i386, x86_64 ]
    allowed-clients: [ clientA ]
    symbols:         [ _sym1, _sym2 ]
    objc-classes:    [ _Class1 ]
  - archs:           [ x86_64 ]
    re-exports:      [ /usr/lib/libbar.dylib ]
    objc-ivars:      [ _Class1._ivar1 ]
    weak-def-symbols: [ _weak1 ]
...
"""

TBD_V2 = b"""--- !tapi-tbd-v2
archs:           [ armv7, arm64 ]
uuids:           [ 'armv7: 00000000-0000-0000-0000-000000000000',
                   'arm64: 11111111-1111-1111-1111-111111111111' ]
platform:        ios
flags:           [ flat_namespace, installapi ]
install-name:    /System/Library/Frameworks/Foo.framework/Foo
current-version: 2.3.4
compatibility-version: 1.0
swift-version:   3
objc-constraint: retain_release
parent-umbrella: Umbrella
exports:
  - archs:             [ armv7, arm64 ]
    allowable-clients: [ clientB ]
    symbols:           [ _sym3 ]
    thread-local-symbols: [ _tlv1 ]
undefineds:
  - archs:           [ arm64 ]
    symbols:         [ _undef1 ]
    weak-ref-symbols: [ _weakref1 ]
...
"""

API_V1 = b"""--- !tapi-api-v1
targets:         [ x86_64-apple-macosx, arm64-apple-macosx ]
install-name:    /usr/lib/libapi.dylib
current-version: 3.1
re-exports:
  - install-name: /usr/lib/libdep.dylib
globals:
  - name: _api_global
  - name: _api_weak
    weak: true
    archs: [ x86_64 ]
objc-classes:
  - name: Gadget
...
"""

CONFIGURATION_V1 = b"""--- !tapi-configuration-v1
sdkroot:         /Applications/Xcode.app/SDKs/MacOSX.sdk
platform:        macosx
language:        objective-c++
include-paths:   [ /usr/local/include ]
macros:          [ DEBUG=1, '!NDEBUG' ]
libraries:
  - name: Foo
    install-name: /System/Library/Frameworks/Foo.framework/Foo
    public-headers: [ Foo.h ]
...
"""


@pytest.fixture()
def registry() -> Registry:
    """Return a registry populated with every built-in capability."""
    return build_registry(ApiStubConfig())


@pytest.fixture()
def dylib_factory() -> Callable[..., bytes]:
    """Return the thin Mach-O image builder."""
    return build_dylib


@pytest.fixture()
def universal_factory() -> Callable[[Sequence[Tuple[str, bytes]]], bytes]:
    """Return the universal binary builder."""
    return build_universal


@pytest.fixture()
def samples() -> Dict[str, bytes]:
    """Return well-formed text documents keyed by format name."""
    return {
        "tbd-v1": TBD_V1,
        "tbd-v2": TBD_V2,
        "api-v1": API_V1,
        "configuration-v1": CONFIGURATION_V1,
    }
