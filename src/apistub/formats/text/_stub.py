"""Section layout shared by the text stub handlers.

Stubs group symbols into sections keyed by the exact set of architectures
they appear on. Readers flatten sections into per-symbol entries; writers
regroup them.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, FrozenSet, List, Sequence, Tuple

from apistub.core.models import (
    InterfaceFile,
    InterfaceReference,
    Symbol,
    SymbolKind,
    merge_references,
    merge_symbols,
)
from apistub.core.types import Architecture, architecture_key

from ._fields import FieldReader, architecture_names

ArchKey = FrozenSet[Architecture]


def _strip_underscore(name: str) -> str:
    return name[1:] if name.startswith("_") else name


def read_export_sections(
    fields: FieldReader, client_key: str
) -> Tuple[List[Symbol], List[InterfaceReference], List[InterfaceReference]]:
    """Return symbols, allowable clients, and re-exports from ``exports``."""
    symbols: List[Symbol] = []
    clients: List[InterfaceReference] = []
    reexports: List[InterfaceReference] = []
    for section in fields.mappings("exports"):
        archs = section.architectures("archs")
        clients.extend(
            InterfaceReference(install_name=name, architectures=archs)
            for name in section.strings(client_key)
        )
        reexports.extend(
            InterfaceReference(install_name=name, architectures=archs)
            for name in section.strings("re-exports")
        )
        symbols.extend(
            Symbol(name=name, architectures=archs) for name in section.strings("symbols")
        )
        symbols.extend(
            Symbol(name=_strip_underscore(name), kind=SymbolKind.OBJC_CLASS, architectures=archs)
            for name in section.strings("objc-classes")
        )
        symbols.extend(
            Symbol(name=_strip_underscore(name), kind=SymbolKind.OBJC_IVAR, architectures=archs)
            for name in section.strings("objc-ivars")
        )
        symbols.extend(
            Symbol(name=name, weak_defined=True, architectures=archs)
            for name in section.strings("weak-def-symbols")
        )
        symbols.extend(
            Symbol(name=name, thread_local=True, architectures=archs)
            for name in section.strings("thread-local-symbols")
        )
    return merge_symbols(symbols), merge_references(clients), merge_references(reexports)


def read_undefined_sections(fields: FieldReader) -> List[Symbol]:
    """Return undefined symbols from ``undefineds``."""
    symbols: List[Symbol] = []
    for section in fields.mappings("undefineds"):
        archs = section.architectures("archs")
        symbols.extend(
            Symbol(name=name, undefined=True, architectures=archs)
            for name in section.strings("symbols")
        )
        symbols.extend(
            Symbol(
                name=_strip_underscore(name),
                kind=SymbolKind.OBJC_CLASS,
                undefined=True,
                architectures=archs,
            )
            for name in section.strings("objc-classes")
        )
        symbols.extend(
            Symbol(
                name=_strip_underscore(name),
                kind=SymbolKind.OBJC_IVAR,
                undefined=True,
                architectures=archs,
            )
            for name in section.strings("objc-ivars")
        )
        symbols.extend(
            Symbol(name=name, undefined=True, weak_referenced=True, architectures=archs)
            for name in section.strings("weak-ref-symbols")
        )
    return merge_symbols(symbols)


def _export_bucket(symbol: Symbol) -> str:
    if symbol.kind is SymbolKind.OBJC_CLASS:
        return "objc-classes"
    if symbol.kind is SymbolKind.OBJC_IVAR:
        return "objc-ivars"
    if symbol.weak_defined:
        return "weak-def-symbols"
    if symbol.thread_local:
        return "thread-local-symbols"
    return "symbols"


def _undefined_bucket(symbol: Symbol) -> str:
    if symbol.kind is SymbolKind.OBJC_CLASS:
        return "objc-classes"
    if symbol.kind is SymbolKind.OBJC_IVAR:
        return "objc-ivars"
    if symbol.weak_referenced:
        return "weak-ref-symbols"
    return "symbols"


def _symbol_text(symbol: Symbol) -> str:
    if symbol.kind is SymbolKind.GLOBAL:
        return symbol.name
    return f"_{symbol.name}"


def _render_sections(
    groups: Dict[ArchKey, Dict[str, List[str]]], keys: Sequence[str]
) -> List[Dict[str, object]]:
    sections: List[Dict[str, object]] = []
    for archs in sorted(groups, key=architecture_key):
        buckets = groups[archs]
        section: Dict[str, object] = {"archs": architecture_names(archs)}
        for key in keys:
            if buckets.get(key):
                section[key] = sorted(buckets[key])
        sections.append(section)
    return sections


def render_export_sections(file: InterfaceFile, client_key: str) -> List[Dict[str, object]]:
    """Group the file's exports, clients, and re-exports into sections."""
    groups: Dict[ArchKey, Dict[str, List[str]]] = defaultdict(lambda: defaultdict(list))
    for reference in file.allowable_clients:
        groups[reference.architectures][client_key].append(reference.install_name)
    for reference in file.reexported_libraries:
        groups[reference.architectures]["re-exports"].append(reference.install_name)
    for symbol in file.exports():
        groups[symbol.architectures][_export_bucket(symbol)].append(_symbol_text(symbol))
    keys = (
        client_key,
        "re-exports",
        "symbols",
        "objc-classes",
        "objc-ivars",
        "weak-def-symbols",
        "thread-local-symbols",
    )
    return _render_sections(groups, keys)


def render_undefined_sections(file: InterfaceFile) -> List[Dict[str, object]]:
    """Group the file's undefined symbols into sections."""
    groups: Dict[ArchKey, Dict[str, List[str]]] = defaultdict(lambda: defaultdict(list))
    for symbol in file.undefineds():
        groups[symbol.architectures][_undefined_bucket(symbol)].append(_symbol_text(symbol))
    keys = ("symbols", "objc-classes", "objc-ivars", "weak-ref-symbols")
    return _render_sections(groups, keys)


__all__ = [
    "read_export_sections",
    "read_undefined_sections",
    "render_export_sections",
    "render_undefined_sections",
]
