"""Generic YAML documents and the handler contract for schema variants."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional, Tuple, Type, TypeVar

import yaml

from apistub.core.buffer import MemoryBuffer
from apistub.core.models import File
from apistub.core.types import FileType
from apistub.errors import MalformedFileError, UnsupportedFormatError

_DEFAULT_TAG_PREFIX = "tag:yaml.org,2002:"
_FLOAT_TAG = "tag:yaml.org,2002:float"
_MAP_TAG = "tag:yaml.org,2002:map"
_SEQ_TAG = "tag:yaml.org,2002:seq"
_DOCUMENT_START = re.compile(
    rb"\A(?:\xef\xbb\xbf)?(?:[ \t]*(?:#[^\n]*)?\r?\n)*---"
    rb"(?:[ \t]+(?P<tag>![^\s]*))?(?:[ \t\r\n]|\Z)"
)

_FileT = TypeVar("_FileT", bound=File)


def _without_floats(resolvers: Dict[Any, list]) -> Dict[Any, list]:
    return {
        key: [(tag, regexp) for tag, regexp in entries if tag != _FLOAT_TAG]
        for key, entries in resolvers.items()
    }


class DocumentLoader(yaml.SafeLoader):
    """Safe loader that keeps dotted numbers such as versions as strings."""

    yaml_implicit_resolvers = _without_floats(yaml.SafeLoader.yaml_implicit_resolvers)


class DocumentDumper(yaml.SafeDumper):
    """Safe dumper matching :class:`DocumentLoader` scalar resolution.

    Mappings are always written in block style. Sequences of scalars are
    written inline while ``flow_sequences`` is set.
    """

    yaml_implicit_resolvers = _without_floats(yaml.SafeDumper.yaml_implicit_resolvers)
    flow_sequences: ClassVar[bool] = True


@dataclass
class Document:
    """A parsed YAML document before any schema is applied.

    Attributes:
        tag: Explicit root tag such as ``!tapi-tbd-v2``; None when untagged.
        content: Root mapping in document order.
    """

    tag: Optional[str] = None
    content: Dict[str, Any] = field(default_factory=dict)


@dataclass
class _TaggedRoot:
    tag: Optional[str]
    content: Dict[str, Any]


def _represent_root(dumper: yaml.SafeDumper, data: _TaggedRoot) -> yaml.Node:
    return dumper.represent_mapping(data.tag or _MAP_TAG, data.content)


def _represent_sequence(dumper: DocumentDumper, data: list) -> yaml.Node:
    inline = dumper.flow_sequences and not any(isinstance(item, (list, dict)) for item in data)
    return dumper.represent_sequence(_SEQ_TAG, data, flow_style=inline)


def _represent_mapping(dumper: DocumentDumper, data: dict) -> yaml.Node:
    return dumper.represent_mapping(_MAP_TAG, data, flow_style=False)


DocumentDumper.add_representer(_TaggedRoot, _represent_root)
DocumentDumper.add_representer(list, _represent_sequence)
DocumentDumper.add_representer(dict, _represent_mapping)


class BlockDocumentDumper(DocumentDumper):
    """Dumper that writes every collection in block style."""

    flow_sequences = False


def has_document_marker(data: bytes) -> bool:
    """Return whether ``data`` opens with a YAML document-start marker."""
    return _DOCUMENT_START.match(data) is not None


def document_tag(data: bytes) -> Optional[str]:
    """Return the explicit tag written after the document-start marker.

    The tag is read from the raw text, so it is available even when the
    rest of the document does not parse.
    """
    match = _DOCUMENT_START.match(data)
    if match is None or match.group("tag") is None:
        return None
    return match.group("tag").decode("utf-8", errors="replace")


def parse_document(buffer: MemoryBuffer) -> Document:
    """Parse ``buffer`` as a single YAML mapping document.

    Args:
        buffer: Input holding the YAML text.

    Returns:
        Document: Root tag and content.

    Raises:
        MalformedFileError: If the text is not valid UTF-8, not valid YAML,
            holds more than one document, or its root is not a mapping.
    """
    try:
        text = buffer.text()
    except UnicodeDecodeError as exc:
        raise MalformedFileError(f"text is not valid UTF-8: {exc}", path=buffer.path) from exc

    loader = DocumentLoader(text)
    try:
        node = loader.get_single_node()
        if node is None:
            raise MalformedFileError("document is empty", path=buffer.path)
        if not isinstance(node, yaml.MappingNode):
            raise MalformedFileError("document root must be a mapping", path=buffer.path)
        tag = None if node.tag.startswith(_DEFAULT_TAG_PREFIX) else node.tag
        node.tag = _MAP_TAG
        content = loader.construct_document(node)
    except yaml.YAMLError as exc:
        raise MalformedFileError(f"invalid YAML: {exc}", path=buffer.path) from exc
    finally:
        loader.dispose()

    if any(not isinstance(key, str) for key in content):
        raise MalformedFileError("document keys must be strings", path=buffer.path)
    return Document(tag=tag, content=content)


def emit_document(document: Document, *, flow_sequences: bool = True, width: int = 80) -> str:
    """Render ``document`` as YAML text with explicit start and end markers.

    Args:
        document: Tag and content to serialize.
        flow_sequences: Render scalar-only sequences inline.
        width: Preferred line width.

    Returns:
        str: Serialized document.
    """
    return yaml.dump(
        _TaggedRoot(document.tag, document.content),
        Dumper=DocumentDumper if flow_sequences else BlockDocumentDumper,
        explicit_start=True,
        explicit_end=True,
        sort_keys=False,
        default_flow_style=False,
        width=width,
        allow_unicode=True,
    )


class DocumentHandler(ABC):
    """One schema variant of the shared YAML syntax.

    Subclasses set ``file_type``, ``model`` and the root ``tags`` they own,
    and decide from the parsed document's tag and keys whether a document
    belongs to them. Handlers that render descriptions set ``writable`` and
    override :meth:`write`.
    """

    file_type: ClassVar[FileType]
    model: ClassVar[Type[File]]
    tags: ClassVar[Tuple[str, ...]] = ()
    writable: ClassVar[bool] = False

    @abstractmethod
    def matches(self, document: Document) -> bool:
        """Return whether the document's content identifies this variant."""

    @abstractmethod
    def read(self, document: Document, path: Optional[Path] = None) -> File:
        """Build a description from a document this handler claimed.

        Raises:
            MalformedFileError: If the document content is invalid.
        """

    def write(self, file: File) -> Document:
        """Render ``file`` as a generic document.

        Raises:
            UnsupportedFormatError: If the handler is read only.
        """
        raise UnsupportedFormatError(f"{type(self).__name__} does not write {file.file_type}")

    def checked(self, file: File, model: Type[_FileT]) -> _FileT:
        """Return ``file`` when it is a ``model`` instance of this handler's type."""
        if not isinstance(file, model) or file.file_type is not self.file_type:
            raise UnsupportedFormatError(
                f"{type(self).__name__} cannot write {type(file).__name__} ({file.file_type})"
            )
        return file

    def can_read(self, document: Document, types: FileType = FileType.ALL) -> bool:
        """Return whether this handler claims ``document`` for one of ``types``."""
        return bool(types & self.file_type) and self.matches(document)

    def get_file_type(self, document: Document) -> FileType:
        """Return this handler's type when it recognizes ``document``."""
        return self.file_type if self.matches(document) else FileType.INVALID

    def can_write(self, file: File) -> bool:
        """Return whether this handler renders ``file``."""
        return self.writable and isinstance(file, self.model) and file.file_type is self.file_type


__all__ = [
    "BlockDocumentDumper",
    "Document",
    "DocumentHandler",
    "DocumentLoader",
    "DocumentDumper",
    "document_tag",
    "has_document_marker",
    "parse_document",
    "emit_document",
]
