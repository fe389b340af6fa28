"""Readers and writers that delegate YAML documents to schema handlers."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, TextIO, Tuple

from apistub.core.buffer import MemoryBuffer
from apistub.core.magic import MagicSignature
from apistub.core.models import File
from apistub.core.reader import Reader
from apistub.core.types import ALL_ARCHITECTURES, ArchitectureSet, FileType, ReadFlags
from apistub.core.writer import Writer
from apistub.errors import MalformedFileError, UnsupportedFormatError

from .document import (
    Document,
    DocumentHandler,
    document_tag,
    emit_document,
    has_document_marker,
    parse_document,
)

LOGGER = logging.getLogger(__name__)


class YAMLReader(Reader):
    """Parse YAML once, then route the document to the first matching handler.

    The document-start marker gates the whole text family; the schema variant
    is decided by the handlers from the parsed content. A document that fails
    to parse is claimed only when its raw root tag belongs to a handler, so
    foreign YAML such as multi-document streams or sequence roots is left
    unrecognized rather than reported as malformed.
    """

    def __init__(self, handlers: Iterable[DocumentHandler] = ()) -> None:
        self._handlers: List[DocumentHandler] = list(handlers)

    @property
    def handlers(self) -> Tuple[DocumentHandler, ...]:
        """Return the registered handlers in priority order."""
        return tuple(self._handlers)

    def add(self, handler: DocumentHandler) -> None:
        """Append ``handler`` after the handlers registered so far."""
        self._handlers.append(handler)

    def _supported_types(self) -> FileType:
        supported = FileType.INVALID
        for handler in self._handlers:
            supported |= handler.file_type
        return supported

    def _claims_tag(self, tag: Optional[str], types: FileType = FileType.ALL) -> bool:
        return tag is not None and any(
            tag in handler.tags and bool(types & handler.file_type) for handler in self._handlers
        )

    def _parse(self, buffer: MemoryBuffer, types: FileType = FileType.ALL) -> Optional[Document]:
        """Return the parsed document, or None when the text is foreign YAML.

        Raises:
            MalformedFileError: If a document tagged for one of the handlers
                does not parse.
        """
        try:
            return parse_document(buffer)
        except MalformedFileError:
            if self._claims_tag(document_tag(buffer.data), types):
                raise
            return None

    def can_read(
        self,
        magic: MagicSignature,
        buffer: MemoryBuffer,
        types: FileType = FileType.ALL,
    ) -> bool:
        if not types & self._supported_types():
            return False
        if not has_document_marker(buffer.data):
            return False
        try:
            document = self._parse(buffer, types)
        except MalformedFileError:
            return True
        if document is None:
            return False
        return any(handler.can_read(document, types) for handler in self._handlers)

    def get_file_type(self, magic: MagicSignature, buffer: MemoryBuffer) -> FileType:
        if not has_document_marker(buffer.data):
            return FileType.INVALID
        document = self._parse(buffer)
        if document is None:
            return FileType.INVALID
        for handler in self._handlers:
            file_type = handler.get_file_type(document)
            if file_type is not FileType.INVALID:
                return file_type
        return FileType.INVALID

    def read_file(
        self,
        buffer: MemoryBuffer,
        read_flags: ReadFlags = ReadFlags.ALL,
        arches: ArchitectureSet = ALL_ARCHITECTURES,
    ) -> File:
        document = self._parse(buffer)
        if document is not None:
            for handler in self._handlers:
                if not handler.can_read(document):
                    continue
                LOGGER.debug("Reading %s document with %s", document.tag, type(handler).__name__)
                return handler.read(document, buffer.path)

        message = (
            "not a YAML document any handler accepts"
            if document is None
            else f"no document handler accepts tag {document.tag!r}"
        )
        raise UnsupportedFormatError(
            message if buffer.path is None else f"{buffer.path}: {message}"
        )


class YAMLWriter(Writer):
    """Render descriptions through the first handler that claims them."""

    def __init__(
        self,
        handlers: Iterable[DocumentHandler] = (),
        *,
        flow_sequences: bool = True,
        width: int = 80,
    ) -> None:
        self._handlers: List[DocumentHandler] = list(handlers)
        self.flow_sequences = flow_sequences
        self.width = width

    @property
    def handlers(self) -> Tuple[DocumentHandler, ...]:
        """Return the registered handlers in priority order."""
        return tuple(self._handlers)

    def add(self, handler: DocumentHandler) -> None:
        """Append ``handler`` after the handlers registered so far."""
        self._handlers.append(handler)

    def _handler_for(self, file: File) -> Optional[DocumentHandler]:
        for handler in self._handlers:
            if handler.can_write(file):
                return handler
        return None

    def can_write(self, file: File) -> bool:
        return self._handler_for(file) is not None

    def write_file(self, stream: TextIO, file: File) -> None:
        handler = self._handler_for(file)
        if handler is None:
            raise UnsupportedFormatError(f"no document handler writes {file.file_type}")
        document = handler.write(file)
        stream.write(
            emit_document(document, flow_sequences=self.flow_sequences, width=self.width)
        )


__all__ = ["YAMLReader", "YAMLWriter"]
