"""API listings: ``!tapi-api-v1`` documents.

Unlike text stubs, an API listing records one entry per symbol and names its
deployment targets as ``<arch>-apple-<platform>`` triples.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from apistub.core.models import (
    File,
    InterfaceFile,
    InterfaceReference,
    Symbol,
    SymbolKind,
    merge_references,
    merge_symbols,
)
from apistub.core.types import Architecture, FileType, Platform, sort_architectures

from ._fields import FieldReader, architecture_names, swift_version_value, version_value
from .document import Document, DocumentHandler

TAG = "!tapi-api-v1"

_SYMBOL_LISTS = (
    ("globals", SymbolKind.GLOBAL),
    ("objc-classes", SymbolKind.OBJC_CLASS),
    ("objc-ivars", SymbolKind.OBJC_IVAR),
)


def _read_targets(fields: FieldReader) -> tuple[frozenset[Architecture], Platform]:
    targets = fields.strings("targets")
    if not targets:
        raise fields.fail("targets", "at least one target is required")
    archs = set()
    platforms = set()
    for target in targets:
        parts = target.split("-", 2)
        if len(parts) != 3 or parts[1] != "apple":
            raise fields.fail("targets", f"malformed target '{target}'")
        archs.add(fields.architecture("targets", parts[0]))
        try:
            platforms.add(Platform(parts[2]))
        except ValueError:
            raise fields.fail("targets", f"unknown platform in target '{target}'") from None
    if len(platforms) != 1:
        raise fields.fail("targets", "targets must share one platform")
    return frozenset(archs), platforms.pop()


class ApiV1DocumentHandler(DocumentHandler):
    """Read and write ``!tapi-api-v1`` documents."""

    file_type = FileType.API_V1
    model = InterfaceFile
    tags = (TAG,)
    writable = True

    def matches(self, document: Document) -> bool:
        return document.tag == TAG

    def read(self, document: Document, path: Optional[Path] = None) -> File:
        fields = FieldReader(document.content, path)
        archs, platform = _read_targets(fields)

        symbols: List[Symbol] = []
        for key, kind in _SYMBOL_LISTS:
            for entry in fields.mappings(key):
                symbols.append(
                    Symbol(
                        name=entry.string("name"),
                        kind=kind,
                        architectures=entry.architectures("archs", required=False) or archs,
                        weak_defined=bool(entry.raw("weak", False)),
                        thread_local=bool(entry.raw("thread-local", False)),
                    )
                )
        reexports = [
            InterfaceReference(
                install_name=entry.string("install-name"),
                architectures=entry.architectures("archs", required=False) or archs,
            )
            for entry in fields.mappings("re-exports")
        ]

        return InterfaceFile(
            file_type=self.file_type,
            path=path,
            architectures=archs,
            platform=platform,
            install_name=fields.string("install-name"),
            current_version=fields.version("current-version"),
            compatibility_version=fields.version("compatibility-version"),
            swift_version=fields.swift_version("swift-version"),
            reexported_libraries=merge_references(reexports),
            symbols=merge_symbols(symbols),
        )

    def write(self, file: File) -> Document:
        file = self.checked(file, InterfaceFile)
        content: Dict[str, Any] = {
            "targets": [
                f"{arch.value}-apple-{file.platform.value}"
                for arch in sort_architectures(file.architectures)
            ],
            "install-name": file.install_name,
        }
        if file.current_version != "1":
            content["current-version"] = version_value(file.current_version)
        if file.compatibility_version != "1":
            content["compatibility-version"] = version_value(file.compatibility_version)
        if file.swift_version:
            content["swift-version"] = swift_version_value(file.swift_version)

        if file.reexported_libraries:
            content["re-exports"] = [
                self._entry("install-name", reference.install_name, reference.architectures, file)
                for reference in file.reexported_libraries
            ]
        exports = file.exports()
        for key, kind in _SYMBOL_LISTS:
            entries = []
            for symbol in exports:
                if symbol.kind is not kind:
                    continue
                entry = self._entry("name", symbol.name, symbol.architectures, file)
                if symbol.weak_defined:
                    entry["weak"] = True
                if symbol.thread_local:
                    entry["thread-local"] = True
                entries.append(entry)
            if entries:
                content[key] = entries
        return Document(tag=TAG, content=content)

    @staticmethod
    def _entry(key: str, name: str, archs: frozenset, file: InterfaceFile) -> Dict[str, Any]:
        entry: Dict[str, Any] = {key: name}
        # Entries covering every target omit their architecture list.
        if archs != file.architectures:
            entry["archs"] = architecture_names(archs)
        return entry


__all__ = ["ApiV1DocumentHandler", "TAG"]
