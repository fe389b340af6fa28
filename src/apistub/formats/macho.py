"""Reader for Mach-O dynamic libraries, thin or universal.

Only the parts of the image an interface description needs are decoded: the
header, a handful of load commands, and the external entries of the symbol
table.
"""

from __future__ import annotations

import logging
import struct
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from apistub.core.buffer import MemoryBuffer
from apistub.core.magic import (
    FAT_MAGIC_64,
    MH_CIGAM,
    MH_CIGAM_64,
    MH_MAGIC,
    MH_MAGIC_64,
    MagicSignature,
    identify_magic,
)
from apistub.core.models import (
    InterfaceFile,
    InterfaceReference,
    Symbol,
    SymbolKind,
    merge_references,
    merge_symbols,
)
from apistub.core.reader import Reader
from apistub.core.types import (
    ALL_ARCHITECTURES,
    Architecture,
    ArchitectureSet,
    FileType,
    Platform,
    ReadFlags,
    decode_version,
)
from apistub.errors import MalformedFileError

LOGGER = logging.getLogger(__name__)

LC_REQ_DYLD = 0x80000000
LC_SYMTAB = 0x2
LC_ID_DYLIB = 0xD
LC_SUB_FRAMEWORK = 0x12
LC_SUB_CLIENT = 0x14
LC_UUID = 0x1B
LC_REEXPORT_DYLIB = 0x1F | LC_REQ_DYLD
LC_VERSION_MIN_MACOSX = 0x24
LC_VERSION_MIN_IPHONEOS = 0x25
LC_VERSION_MIN_TVOS = 0x2F
LC_VERSION_MIN_WATCHOS = 0x30
LC_BUILD_VERSION = 0x32

MH_TWOLEVEL = 0x80
MH_APP_EXTENSION_SAFE = 0x02000000

N_STAB = 0xE0
N_PEXT = 0x10
N_TYPE = 0x0E
N_EXT = 0x01
N_UNDF = 0x0
N_WEAK_REF = 0x0040
N_WEAK_DEF = 0x0080

CPU_ARCH_ABI64 = 0x01000000
CPU_TYPE_X86 = 7
CPU_TYPE_ARM = 12
CPU_SUBTYPE_MASK = 0xFF000000

OBJC_CLASS_PREFIX = "_OBJC_CLASS_$_"
OBJC_METACLASS_PREFIX = "_OBJC_METACLASS_$_"
OBJC_IVAR_PREFIX = "_OBJC_IVAR_$_"

_CPU_ARCHITECTURES: Dict[Tuple[int, int], Architecture] = {
    (CPU_TYPE_X86, 3): Architecture.I386,
    (CPU_TYPE_X86 | CPU_ARCH_ABI64, 3): Architecture.X86_64,
    (CPU_TYPE_X86 | CPU_ARCH_ABI64, 8): Architecture.X86_64H,
    (CPU_TYPE_ARM, 9): Architecture.ARMV7,
    (CPU_TYPE_ARM, 11): Architecture.ARMV7S,
    (CPU_TYPE_ARM, 12): Architecture.ARMV7K,
    (CPU_TYPE_ARM | CPU_ARCH_ABI64, 0): Architecture.ARM64,
    (CPU_TYPE_ARM | CPU_ARCH_ABI64, 2): Architecture.ARM64E,
}

_BUILD_PLATFORMS = {
    1: Platform.MACOS,
    2: Platform.IOS,
    3: Platform.TVOS,
    4: Platform.WATCHOS,
    5: Platform.BRIDGEOS,
}

_VERSION_MIN_PLATFORMS = {
    LC_VERSION_MIN_MACOSX: Platform.MACOS,
    LC_VERSION_MIN_IPHONEOS: Platform.IOS,
    LC_VERSION_MIN_TVOS: Platform.TVOS,
    LC_VERSION_MIN_WATCHOS: Platform.WATCHOS,
}

_DYLIB_SIGNATURES = frozenset(
    {MagicSignature.MACHO_DYNAMIC_LIBRARY, MagicSignature.MACHO_DYNAMIC_LIBRARY_STUB}
)


def cpu_architecture(cputype: int, cpusubtype: int) -> Optional[Architecture]:
    """Map a Mach-O CPU type pair to an architecture, ignoring capability bits."""
    return _CPU_ARCHITECTURES.get((cputype, cpusubtype & ~CPU_SUBTYPE_MASK & 0xFFFFFFFF))


@dataclass
class _Slice:
    cputype: int
    cpusubtype: int
    data: bytes

    @property
    def architecture(self) -> Optional[Architecture]:
        return cpu_architecture(self.cputype, self.cpusubtype)


@dataclass
class _Image:
    architecture: Architecture
    flags: int
    install_name: Optional[str] = None
    current_version: int = 0x10000
    compatibility_version: int = 0x10000
    platform: Platform = Platform.UNKNOWN
    uuid: Optional[str] = None
    parent_umbrella: Optional[str] = None
    clients: List[str] = field(default_factory=list)
    reexports: List[str] = field(default_factory=list)
    symbols: List[Symbol] = field(default_factory=list)


class _ImageParser:
    """Decode one thin Mach-O image."""

    def __init__(self, data: bytes, path: Optional[Path]) -> None:
        self.data = data
        self.path = path

    def error(self, message: str) -> MalformedFileError:
        return MalformedFileError(message, path=self.path)

    def unpack(self, fmt: str, buffer: bytes, offset: int, what: str) -> tuple:
        try:
            return struct.unpack_from(fmt, buffer, offset)
        except struct.error as exc:
            raise self.error(f"truncated {what}") from exc

    def parse(self, read_flags: ReadFlags) -> _Image:
        data = self.data
        if len(data) < 4:
            raise self.error("truncated Mach-O header")
        magic = int.from_bytes(data[:4], "big")
        if magic in (MH_MAGIC, MH_MAGIC_64):
            order = ">"
        elif magic in (MH_CIGAM, MH_CIGAM_64):
            order = "<"
        else:
            raise self.error("not a Mach-O image")
        is_64 = magic in (MH_MAGIC_64, MH_CIGAM_64)
        header_size = 32 if is_64 else 28

        _, cputype, cpusubtype, _, ncmds, sizeofcmds, flags = self.unpack(
            order + "7I", data, 0, "Mach-O header"
        )
        if len(data) < header_size:
            raise self.error("truncated Mach-O header")
        architecture = cpu_architecture(cputype, cpusubtype)
        if architecture is None:
            raise self.error(f"unsupported CPU type {cputype:#x}/{cpusubtype:#x}")
        commands_end = header_size + sizeofcmds
        if commands_end > len(data):
            raise self.error("load commands extend past the end of the file")

        image = _Image(architecture=architecture, flags=flags)
        symtab: Optional[tuple] = None
        offset = header_size
        for index in range(ncmds):
            if offset + 8 > commands_end:
                raise self.error(f"load command {index} is truncated")
            cmd, cmdsize = self.unpack(order + "2I", data, offset, "load command")
            if cmdsize < 8 or offset + cmdsize > commands_end:
                raise self.error(f"load command {index} has invalid size {cmdsize}")
            command = data[offset : offset + cmdsize]
            if cmd == LC_SYMTAB:
                symtab = self.unpack(order + "4I", command, 8, "LC_SYMTAB")
            else:
                self._apply_command(image, order, cmd, command)
            offset += cmdsize

        if image.install_name is None:
            raise self.error("missing LC_ID_DYLIB load command")
        if symtab is not None and read_flags >= ReadFlags.SYMBOLS:
            image.symbols = self._read_symbols(order, is_64, symtab, architecture)
        return image

    def _apply_command(self, image: _Image, order: str, cmd: int, command: bytes) -> None:
        if cmd == LC_ID_DYLIB:
            name_offset, _, current, compatibility = self.unpack(
                order + "4I", command, 8, "LC_ID_DYLIB"
            )
            image.install_name = self._string(command, name_offset, "LC_ID_DYLIB")
            image.current_version = current
            image.compatibility_version = compatibility
        elif cmd == LC_REEXPORT_DYLIB:
            (name_offset,) = self.unpack(order + "I", command, 8, "LC_REEXPORT_DYLIB")
            image.reexports.append(self._string(command, name_offset, "LC_REEXPORT_DYLIB"))
        elif cmd == LC_SUB_FRAMEWORK:
            (name_offset,) = self.unpack(order + "I", command, 8, "LC_SUB_FRAMEWORK")
            image.parent_umbrella = self._string(command, name_offset, "LC_SUB_FRAMEWORK")
        elif cmd == LC_SUB_CLIENT:
            (name_offset,) = self.unpack(order + "I", command, 8, "LC_SUB_CLIENT")
            image.clients.append(self._string(command, name_offset, "LC_SUB_CLIENT"))
        elif cmd == LC_UUID:
            if len(command) < 24:
                raise self.error("truncated LC_UUID")
            image.uuid = str(uuid.UUID(bytes=bytes(command[8:24]))).upper()
        elif cmd == LC_BUILD_VERSION:
            (platform,) = self.unpack(order + "I", command, 8, "LC_BUILD_VERSION")
            image.platform = _BUILD_PLATFORMS.get(platform, Platform.UNKNOWN)
        elif cmd in _VERSION_MIN_PLATFORMS:
            image.platform = _VERSION_MIN_PLATFORMS[cmd]

    def _string(self, command: bytes, offset: int, what: str) -> str:
        if offset < 8 or offset >= len(command):
            raise self.error(f"{what} string offset {offset} is out of range")
        raw = command[offset:].split(b"\0", 1)[0]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self.error(f"{what} string is not valid UTF-8") from exc

    def _read_symbols(
        self, order: str, is_64: bool, symtab: tuple, architecture: Architecture
    ) -> List[Symbol]:
        data = self.data
        symoff, nsyms, stroff, strsize = symtab
        entry_format = order + ("IBBHQ" if is_64 else "IBBHI")
        entry_size = struct.calcsize(entry_format)
        if symoff + nsyms * entry_size > len(data) or stroff + strsize > len(data):
            raise self.error("symbol table extends past the end of the file")
        strings = data[stroff : stroff + strsize]

        symbols: List[Symbol] = []
        archs = frozenset({architecture})
        for index in range(nsyms):
            n_strx, n_type, _, n_desc, _ = struct.unpack_from(
                entry_format, data, symoff + index * entry_size
            )
            if n_type & N_STAB or not n_type & N_EXT:
                continue
            undefined = (n_type & N_TYPE) == N_UNDF
            if not undefined and n_type & N_PEXT:
                continue
            name = self._symbol_name(strings, n_strx)
            symbol = _classify(
                name,
                archs,
                undefined=undefined,
                weak_defined=not undefined and bool(n_desc & N_WEAK_DEF),
                weak_referenced=undefined and bool(n_desc & N_WEAK_REF),
            )
            if symbol is not None:
                symbols.append(symbol)
        return symbols

    def _symbol_name(self, strings: bytes, index: int) -> str:
        if index >= len(strings):
            raise self.error(f"symbol name offset {index} is out of range")
        end = strings.find(b"\0", index)
        raw = strings[index:] if end < 0 else strings[index:end]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self.error("symbol name is not valid UTF-8") from exc


def _classify(
    name: str,
    archs: ArchitectureSet,
    *,
    undefined: bool,
    weak_defined: bool,
    weak_referenced: bool,
) -> Optional[Symbol]:
    kind = SymbolKind.GLOBAL
    if name.startswith(OBJC_METACLASS_PREFIX):
        return None
    if name.startswith(OBJC_CLASS_PREFIX):
        kind = SymbolKind.OBJC_CLASS
        name = name[len(OBJC_CLASS_PREFIX) :]
    elif name.startswith(OBJC_IVAR_PREFIX):
        kind = SymbolKind.OBJC_IVAR
        name = name[len(OBJC_IVAR_PREFIX) :]
    return Symbol(
        name=name,
        kind=kind,
        architectures=archs,
        undefined=undefined,
        weak_defined=weak_defined,
        weak_referenced=weak_referenced,
    )


def _fat_slices(data: bytes, path: Optional[Path]) -> List[_Slice]:
    """Split a universal binary into its slices.

    Raises:
        MalformedFileError: If the fat header or a slice lies outside the file.
    """
    if len(data) < 8:
        raise MalformedFileError("truncated universal header", path=path)
    magic, count = struct.unpack_from(">2I", data, 0)
    entry_format = ">2I2Q2I" if magic == FAT_MAGIC_64 else ">5I"
    entry_size = struct.calcsize(entry_format)

    slices: List[_Slice] = []
    for index in range(count):
        start = 8 + index * entry_size
        if start + entry_size > len(data):
            raise MalformedFileError("truncated universal header", path=path)
        cputype, cpusubtype, offset, size = struct.unpack_from(entry_format, data, start)[:4]
        if offset + size > len(data):
            raise MalformedFileError(
                f"universal slice {index} extends past the end of the file", path=path
            )
        slices.append(_Slice(cputype, cpusubtype, data[offset : offset + size]))
    return slices


def _merge_images(images: List[_Image], path: Optional[Path]) -> InterfaceFile:
    first = images[0]
    symbols: List[Symbol] = []
    clients: List[InterfaceReference] = []
    reexports: List[InterfaceReference] = []
    uuids: Dict[Architecture, str] = {}
    for image in images:
        archs = frozenset({image.architecture})
        symbols.extend(image.symbols)
        clients.extend(
            InterfaceReference(install_name=name, architectures=archs) for name in image.clients
        )
        reexports.extend(
            InterfaceReference(install_name=name, architectures=archs) for name in image.reexports
        )
        if image.uuid:
            uuids[image.architecture] = image.uuid

    return InterfaceFile(
        file_type=FileType.MACHO_DYLIB,
        path=path,
        architectures=frozenset(image.architecture for image in images),
        platform=first.platform,
        install_name=first.install_name or "",
        current_version=decode_version(first.current_version),
        compatibility_version=decode_version(first.compatibility_version),
        two_level_namespace=bool(first.flags & MH_TWOLEVEL),
        application_extension_safe=bool(first.flags & MH_APP_EXTENSION_SAFE),
        uuids=uuids,
        parent_umbrella=first.parent_umbrella,
        allowable_clients=merge_references(clients),
        reexported_libraries=merge_references(reexports),
        symbols=merge_symbols(symbols),
    )


class MachODylibReader(Reader):
    """Read dynamic libraries and dylib stubs, including universal binaries."""

    def can_read(
        self,
        magic: MagicSignature,
        buffer: MemoryBuffer,
        types: FileType = FileType.ALL,
    ) -> bool:
        if not types & FileType.MACHO_DYLIB:
            return False
        if magic in _DYLIB_SIGNATURES:
            return True
        if magic is MagicSignature.MACHO_UNIVERSAL_BINARY:
            try:
                return self.get_file_type(magic, buffer) is FileType.MACHO_DYLIB
            except MalformedFileError:
                # A damaged fat header is still ours to report.
                return True
        return False

    def get_file_type(self, magic: MagicSignature, buffer: MemoryBuffer) -> FileType:
        if magic in _DYLIB_SIGNATURES:
            return FileType.MACHO_DYLIB
        if magic is MagicSignature.MACHO_UNIVERSAL_BINARY:
            for fat_slice in _fat_slices(buffer.data, buffer.path):
                if identify_magic(fat_slice.data) in _DYLIB_SIGNATURES:
                    return FileType.MACHO_DYLIB
        return FileType.INVALID

    def read_file(
        self,
        buffer: MemoryBuffer,
        read_flags: ReadFlags = ReadFlags.ALL,
        arches: ArchitectureSet = ALL_ARCHITECTURES,
    ) -> InterfaceFile:
        magic = identify_magic(buffer.data)
        images: List[_Image] = []
        if magic is MagicSignature.MACHO_UNIVERSAL_BINARY:
            for fat_slice in _fat_slices(buffer.data, buffer.path):
                architecture = fat_slice.architecture
                if architecture is None:
                    LOGGER.debug(
                        "Skipping slice with unknown CPU type %#x in %s",
                        fat_slice.cputype,
                        buffer.path,
                    )
                    continue
                if architecture not in arches:
                    continue
                if identify_magic(fat_slice.data) not in _DYLIB_SIGNATURES:
                    LOGGER.debug(
                        "Skipping non-dylib %s slice in %s", architecture.value, buffer.path
                    )
                    continue
                images.append(_ImageParser(fat_slice.data, buffer.path).parse(read_flags))
        elif magic in _DYLIB_SIGNATURES:
            image = _ImageParser(buffer.data, buffer.path).parse(read_flags)
            if image.architecture in arches:
                images.append(image)
        else:
            raise MalformedFileError("not a Mach-O dynamic library", path=buffer.path)

        if not images:
            raise MalformedFileError(
                "no dynamic library matches the requested architectures", path=buffer.path
            )
        return _merge_images(images, buffer.path)


__all__ = ["MachODylibReader", "cpu_architecture"]
