"""Text formats sharing one YAML syntax, dispatched by schema handler."""

from .api_v1 import ApiV1DocumentHandler
from .composite import YAMLReader, YAMLWriter
from .configuration_v1 import ConfigurationV1DocumentHandler
from .document import Document, DocumentHandler, document_tag, emit_document, parse_document
from .stub_v1 import StubV1DocumentHandler
from .stub_v2 import StubV2DocumentHandler

__all__ = [
    "ApiV1DocumentHandler",
    "ConfigurationV1DocumentHandler",
    "Document",
    "DocumentHandler",
    "StubV1DocumentHandler",
    "StubV2DocumentHandler",
    "YAMLReader",
    "YAMLWriter",
    "document_tag",
    "emit_document",
    "parse_document",
]
