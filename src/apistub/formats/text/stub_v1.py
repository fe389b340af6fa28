"""Version 1 text stubs: untagged or ``!tapi-tbd-v1`` documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from apistub.core.models import File, InterfaceFile
from apistub.core.types import FileType, ObjCConstraint

from ._fields import FieldReader, architecture_names, swift_version_value, version_value
from ._stub import read_export_sections, render_export_sections
from .document import Document, DocumentHandler

TAG = "!tapi-tbd-v1"


class StubV1DocumentHandler(DocumentHandler):
    """Read and write the original text stub layout."""

    file_type = FileType.TBD_V1
    model = InterfaceFile
    tags = (TAG,)
    writable = True

    def matches(self, document: Document) -> bool:
        return document.tag in (None, TAG) and "archs" in document.content

    def read(self, document: Document, path: Optional[Path] = None) -> File:
        fields = FieldReader(document.content, path)
        symbols, clients, reexports = read_export_sections(fields, "allowed-clients")
        return InterfaceFile(
            file_type=self.file_type,
            path=path,
            architectures=fields.architectures("archs"),
            platform=fields.platform("platform"),
            install_name=fields.string("install-name"),
            current_version=fields.version("current-version"),
            compatibility_version=fields.version("compatibility-version"),
            swift_version=fields.swift_version("swift-version"),
            objc_constraint=fields.objc_constraint("objc-constraint"),
            allowable_clients=clients,
            reexported_libraries=reexports,
            symbols=symbols,
        )

    def write(self, file: File) -> Document:
        file = self.checked(file, InterfaceFile)
        content: Dict[str, Any] = {
            "archs": architecture_names(file.architectures),
            "platform": file.platform.value,
            "install-name": file.install_name,
        }
        if file.current_version != "1":
            content["current-version"] = version_value(file.current_version)
        if file.compatibility_version != "1":
            content["compatibility-version"] = version_value(file.compatibility_version)
        if file.swift_version:
            content["swift-version"] = swift_version_value(file.swift_version)
        if file.objc_constraint is not ObjCConstraint.NONE:
            content["objc-constraint"] = file.objc_constraint.value
        exports = render_export_sections(file, "allowed-clients")
        if exports:
            content["exports"] = exports
        return Document(tag=None, content=content)


__all__ = ["StubV1DocumentHandler", "TAG"]
