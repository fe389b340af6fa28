"""Project configuration: ``!tapi-configuration-v1`` documents (read only)."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from apistub.core.models import ConfigurationFile, File, LibraryConfiguration
from apistub.core.types import FileType, Platform

from ._fields import FieldReader
from .document import Document, DocumentHandler

TAG = "!tapi-configuration-v1"

LANGUAGES = ("c", "c++", "objective-c", "objective-c++")


class ConfigurationV1DocumentHandler(DocumentHandler):
    """Read ``!tapi-configuration-v1`` documents."""

    file_type = FileType.CONFIGURATION_V1
    model = ConfigurationFile
    tags = (TAG,)

    def matches(self, document: Document) -> bool:
        return document.tag == TAG

    def read(self, document: Document, path: Optional[Path] = None) -> File:
        fields = FieldReader(document.content, path)
        language = fields.string("language", "objective-c")
        if language not in LANGUAGES:
            raise fields.fail("language", f"unsupported language '{language}'")

        libraries = [
            LibraryConfiguration(
                name=entry.string("name"),
                install_name=entry.optional_string("install-name"),
                public_headers=entry.strings("public-headers"),
                private_headers=entry.strings("private-headers"),
                excluded_headers=entry.strings("excluded-headers"),
            )
            for entry in fields.mappings("libraries")
        ]
        return ConfigurationFile(
            file_type=self.file_type,
            path=path,
            sdk_root=fields.optional_string("sdkroot"),
            platform=fields.platform("platform", Platform.UNKNOWN),
            language=language,
            include_paths=fields.strings("include-paths"),
            framework_paths=fields.strings("framework-paths"),
            macros=fields.strings("macros"),
            libraries=libraries,
        )


__all__ = ["ConfigurationV1DocumentHandler", "TAG"]
