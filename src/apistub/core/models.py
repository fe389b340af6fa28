"""In-memory descriptions produced by readers and consumed by writers."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .types import (
    Architecture,
    FileType,
    ObjCConstraint,
    Platform,
    architecture_key,
    normalize_version,
)


class ApiStubModel(BaseModel):
    """Shared configuration for description models."""

    model_config = ConfigDict(extra="forbid")


class SymbolKind(str, Enum):
    """Kinds of exported or referenced symbols."""

    GLOBAL = "global"
    OBJC_CLASS = "objc-class"
    OBJC_IVAR = "objc-ivar"


class Symbol(ApiStubModel):
    """A symbol exported by, or referenced from, a library.

    Attributes:
        name: Linker-level name for globals, bare class name for ObjC classes,
            and ``Class.ivar`` for ObjC instance variables.
        kind: Symbol category.
        architectures: Architectures the symbol is present on.
        weak_defined: Whether the definition is weak.
        weak_referenced: Whether an undefined reference is weak.
        thread_local: Whether the symbol is a thread-local variable.
        undefined: Whether the library references rather than defines it.
    """

    name: str
    kind: SymbolKind = SymbolKind.GLOBAL
    architectures: FrozenSet[Architecture] = Field(default_factory=frozenset)
    weak_defined: bool = False
    weak_referenced: bool = False
    thread_local: bool = False
    undefined: bool = False


class InterfaceReference(ApiStubModel):
    """A library install name scoped to a set of architectures."""

    install_name: str
    architectures: FrozenSet[Architecture] = Field(default_factory=frozenset)


def _symbol_order(symbol: Symbol) -> tuple:
    return (
        symbol.undefined,
        symbol.kind.value,
        symbol.name,
        architecture_key(symbol.architectures),
    )


def _reference_order(reference: InterfaceReference) -> tuple:
    return (reference.install_name, architecture_key(reference.architectures))


class File(ApiStubModel):
    """Base description returned by every reader.

    Attributes:
        file_type: Format the description was read from or should be written as.
        path: Source path, also used as the destination for path-form writes.
    """

    file_type: FileType = FileType.INVALID
    path: Optional[Path] = None


class InterfaceFile(File):
    """Exported interface of a single dynamic library.

    Attributes:
        architectures: Architectures covered by the description.
        platform: Deployment platform.
        install_name: Install name recorded in the library.
        current_version: Current library version in dotted form.
        compatibility_version: Compatibility version in dotted form.
        swift_version: Swift ABI version, ``0`` when not built with Swift.
        objc_constraint: Objective-C runtime constraint.
        two_level_namespace: Whether the library uses a two-level namespace.
        application_extension_safe: Whether the library is safe for app extensions.
        installapi: Whether the description was produced by installapi.
        uuids: Per-architecture image UUIDs.
        parent_umbrella: Umbrella framework name, if any.
        allowable_clients: Clients allowed to link against the library.
        reexported_libraries: Libraries re-exported by the library.
        symbols: Defined and undefined symbols in canonical order.
    """

    architectures: FrozenSet[Architecture] = Field(default_factory=frozenset)
    platform: Platform = Platform.UNKNOWN
    install_name: str = ""
    current_version: str = "1"
    compatibility_version: str = "1"
    swift_version: int = 0
    objc_constraint: ObjCConstraint = ObjCConstraint.NONE
    two_level_namespace: bool = True
    application_extension_safe: bool = True
    installapi: bool = False
    uuids: Dict[Architecture, str] = Field(default_factory=dict)
    parent_umbrella: Optional[str] = None
    allowable_clients: List[InterfaceReference] = Field(default_factory=list)
    reexported_libraries: List[InterfaceReference] = Field(default_factory=list)
    symbols: List[Symbol] = Field(default_factory=list)

    @field_validator("current_version", "compatibility_version", mode="before")
    @classmethod
    def _normalize_version(cls, value: object) -> str:
        return normalize_version(value)

    @field_validator("symbols")
    @classmethod
    def _sort_symbols(cls, value: List[Symbol]) -> List[Symbol]:
        return sorted(value, key=_symbol_order)

    @field_validator("allowable_clients", "reexported_libraries")
    @classmethod
    def _sort_references(cls, value: List[InterfaceReference]) -> List[InterfaceReference]:
        return sorted(value, key=_reference_order)

    def exports(self) -> List[Symbol]:
        """Return symbols the library defines."""
        return [symbol for symbol in self.symbols if not symbol.undefined]

    def undefineds(self) -> List[Symbol]:
        """Return symbols the library references from elsewhere."""
        return [symbol for symbol in self.symbols if symbol.undefined]


def merge_symbols(symbols: Iterable[Symbol]) -> List[Symbol]:
    """Combine entries that differ only by architecture."""
    merged: Dict[tuple, set] = {}
    for symbol in symbols:
        key = (
            symbol.name,
            symbol.kind,
            symbol.undefined,
            symbol.weak_defined,
            symbol.weak_referenced,
            symbol.thread_local,
        )
        merged.setdefault(key, set()).update(symbol.architectures)
    return [
        Symbol(
            name=key[0],
            kind=key[1],
            undefined=key[2],
            weak_defined=key[3],
            weak_referenced=key[4],
            thread_local=key[5],
            architectures=frozenset(archs),
        )
        for key, archs in merged.items()
    ]


def merge_references(references: Iterable[InterfaceReference]) -> List[InterfaceReference]:
    """Combine references to the same install name."""
    merged: Dict[str, set] = {}
    for reference in references:
        merged.setdefault(reference.install_name, set()).update(reference.architectures)
    return [
        InterfaceReference(install_name=name, architectures=frozenset(archs))
        for name, archs in merged.items()
    ]


class LibraryConfiguration(ApiStubModel):
    """Per-library header layout inside a project configuration."""

    name: str
    install_name: Optional[str] = None
    public_headers: List[str] = Field(default_factory=list)
    private_headers: List[str] = Field(default_factory=list)
    excluded_headers: List[str] = Field(default_factory=list)


class ConfigurationFile(File):
    """Project-level settings used when generating API descriptions.

    Attributes:
        sdk_root: SDK path used for header parsing.
        platform: Target platform.
        language: Source language for header parsing.
        include_paths: Header search paths.
        framework_paths: Framework search paths.
        macros: Preprocessor definitions (``NAME``, ``NAME=VALUE``) and
            removals (``!NAME``).
        libraries: Libraries described by the configuration.
    """

    sdk_root: Optional[str] = None
    platform: Platform = Platform.UNKNOWN
    language: str = "objective-c"
    include_paths: List[str] = Field(default_factory=list)
    framework_paths: List[str] = Field(default_factory=list)
    macros: List[str] = Field(default_factory=list)
    libraries: List[LibraryConfiguration] = Field(default_factory=list)


__all__ = [
    "ApiStubModel",
    "SymbolKind",
    "Symbol",
    "InterfaceReference",
    "File",
    "InterfaceFile",
    "LibraryConfiguration",
    "ConfigurationFile",
    "merge_symbols",
    "merge_references",
]
