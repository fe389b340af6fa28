"""Core data model, capability contracts, and the format registry."""

from .buffer import BufferLike, MemoryBuffer, as_buffer
from .magic import MagicSignature, identify_magic
from .models import (
    ConfigurationFile,
    File,
    InterfaceFile,
    InterfaceReference,
    LibraryConfiguration,
    Symbol,
    SymbolKind,
)
from .reader import Reader
from .registry import Registry
from .types import (
    ALL_ARCHITECTURES,
    Architecture,
    ArchitectureSet,
    FileType,
    ObjCConstraint,
    Platform,
    ReadFlags,
)
from .writer import Writer

__all__ = [
    "ALL_ARCHITECTURES",
    "Architecture",
    "ArchitectureSet",
    "BufferLike",
    "ConfigurationFile",
    "File",
    "FileType",
    "InterfaceFile",
    "InterfaceReference",
    "LibraryConfiguration",
    "MagicSignature",
    "MemoryBuffer",
    "ObjCConstraint",
    "Platform",
    "ReadFlags",
    "Reader",
    "Registry",
    "Symbol",
    "SymbolKind",
    "Writer",
    "as_buffer",
    "identify_magic",
]
