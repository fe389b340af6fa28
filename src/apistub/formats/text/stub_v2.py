"""Version 2 text stubs: ``!tapi-tbd-v2`` documents.

Version 2 adds per-architecture UUIDs, library flags, the parent umbrella,
and undefined symbols, and renames ``allowed-clients`` to
``allowable-clients``. Its default Objective-C constraint is
``retain_release``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from apistub.core.models import File, InterfaceFile
from apistub.core.types import Architecture, FileType, ObjCConstraint, sort_architectures

from ._fields import FieldReader, architecture_names, swift_version_value, version_value
from ._stub import (
    read_export_sections,
    read_undefined_sections,
    render_export_sections,
    render_undefined_sections,
)
from .document import Document, DocumentHandler

TAG = "!tapi-tbd-v2"
DEFAULT_OBJC_CONSTRAINT = ObjCConstraint.RETAIN_RELEASE

FLAT_NAMESPACE = "flat_namespace"
NOT_APP_EXTENSION_SAFE = "not_app_extension_safe"
INSTALLAPI = "installapi"
_KNOWN_FLAGS = (FLAT_NAMESPACE, NOT_APP_EXTENSION_SAFE, INSTALLAPI)


def _read_uuids(fields: FieldReader) -> Dict[Architecture, str]:
    raw = fields.raw("uuids", [])
    if not isinstance(raw, list):
        raise fields.fail("uuids", "expected a sequence")
    uuids: Dict[Architecture, str] = {}
    for entry in raw:
        if isinstance(entry, dict) and len(entry) == 1:
            ((name, value),) = entry.items()
        elif isinstance(entry, str) and ":" in entry:
            name, _, value = entry.partition(":")
        else:
            raise fields.fail("uuids", f"expected '<arch>: <uuid>', got {entry!r}")
        uuids[fields.architecture("uuids", str(name).strip())] = str(value).strip()
    return uuids


class StubV2DocumentHandler(DocumentHandler):
    """Read and write ``!tapi-tbd-v2`` documents."""

    file_type = FileType.TBD_V2
    model = InterfaceFile
    tags = (TAG,)
    writable = True

    def matches(self, document: Document) -> bool:
        return document.tag == TAG

    def read(self, document: Document, path: Optional[Path] = None) -> File:
        fields = FieldReader(document.content, path)
        flags = fields.strings("flags")
        unknown = [flag for flag in flags if flag not in _KNOWN_FLAGS]
        if unknown:
            raise fields.fail("flags", f"unknown flag '{unknown[0]}'")

        symbols, clients, reexports = read_export_sections(fields, "allowable-clients")
        symbols.extend(read_undefined_sections(fields))
        return InterfaceFile(
            file_type=self.file_type,
            path=path,
            architectures=fields.architectures("archs"),
            uuids=_read_uuids(fields),
            platform=fields.platform("platform"),
            two_level_namespace=FLAT_NAMESPACE not in flags,
            application_extension_safe=NOT_APP_EXTENSION_SAFE not in flags,
            installapi=INSTALLAPI in flags,
            install_name=fields.string("install-name"),
            current_version=fields.version("current-version"),
            compatibility_version=fields.version("compatibility-version"),
            swift_version=fields.swift_version("swift-version"),
            objc_constraint=fields.objc_constraint("objc-constraint", DEFAULT_OBJC_CONSTRAINT),
            parent_umbrella=fields.optional_string("parent-umbrella"),
            allowable_clients=clients,
            reexported_libraries=reexports,
            symbols=symbols,
        )

    def write(self, file: File) -> Document:
        file = self.checked(file, InterfaceFile)
        content: Dict[str, Any] = {"archs": architecture_names(file.architectures)}
        if file.uuids:
            content["uuids"] = [
                f"{arch.value}: {file.uuids[arch]}" for arch in sort_architectures(file.uuids)
            ]
        content["platform"] = file.platform.value

        flags: List[str] = []
        if not file.two_level_namespace:
            flags.append(FLAT_NAMESPACE)
        if not file.application_extension_safe:
            flags.append(NOT_APP_EXTENSION_SAFE)
        if file.installapi:
            flags.append(INSTALLAPI)
        if flags:
            content["flags"] = flags

        content["install-name"] = file.install_name
        if file.current_version != "1":
            content["current-version"] = version_value(file.current_version)
        if file.compatibility_version != "1":
            content["compatibility-version"] = version_value(file.compatibility_version)
        if file.swift_version:
            content["swift-version"] = swift_version_value(file.swift_version)
        if file.objc_constraint is not DEFAULT_OBJC_CONSTRAINT:
            content["objc-constraint"] = file.objc_constraint.value
        if file.parent_umbrella:
            content["parent-umbrella"] = file.parent_umbrella

        exports = render_export_sections(file, "allowable-clients")
        if exports:
            content["exports"] = exports
        undefineds = render_undefined_sections(file)
        if undefineds:
            content["undefineds"] = undefineds
        return Document(tag=TAG, content=content)


__all__ = ["StubV2DocumentHandler", "TAG"]
