"""Writer for linker re-export symbol lists."""

from __future__ import annotations

from typing import List, TextIO

from apistub.core.models import File, InterfaceFile, Symbol, SymbolKind
from apistub.core.types import FileType, sort_architectures
from apistub.core.writer import Writer
from apistub.errors import UnsupportedFormatError


def linker_names(symbol: Symbol) -> List[str]:
    """Return the linker-level names a symbol contributes to a re-export list."""
    if symbol.kind is SymbolKind.OBJC_CLASS:
        return [f"_OBJC_CLASS_$_{symbol.name}", f"_OBJC_METACLASS_$_{symbol.name}"]
    if symbol.kind is SymbolKind.OBJC_IVAR:
        return [f"_OBJC_IVAR_$_{symbol.name}"]
    return [symbol.name]


class ReexportFileWriter(Writer):
    """Emit one re-exported symbol per line, suitable for ``-reexported_symbols_list``."""

    def can_write(self, file: File) -> bool:
        return isinstance(file, InterfaceFile) and file.file_type is FileType.REEXPORT_LIST

    def write_file(self, stream: TextIO, file: File) -> None:
        if not isinstance(file, InterfaceFile) or file.file_type is not FileType.REEXPORT_LIST:
            raise UnsupportedFormatError(f"re-export lists cannot be written from {file.file_type}")
        archs = " ".join(arch.value for arch in sort_architectures(file.architectures))
        stream.write(f"# Re-exported symbols of {file.install_name or '<unknown>'}\n")
        if archs:
            stream.write(f"# Architectures: {archs}\n")
        names = sorted({name for symbol in file.exports() for name in linker_names(symbol)})
        for name in names:
            stream.write(f"{name}\n")


__all__ = ["ReexportFileWriter", "linker_names"]
