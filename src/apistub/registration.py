"""Populate a registry with the built-in readers and writers.

Registration order is the only source of dispatch priority, so each group
below appends its capabilities in a fixed order.
"""

from __future__ import annotations

import logging
from typing import Optional

from apistub.config.models import ApiStubConfig, TextSettings
from apistub.core.registry import Registry
from apistub.formats.macho import MachODylibReader
from apistub.formats.reexport import ReexportFileWriter
from apistub.formats.text import (
    ApiV1DocumentHandler,
    ConfigurationV1DocumentHandler,
    StubV1DocumentHandler,
    StubV2DocumentHandler,
    YAMLReader,
    YAMLWriter,
)

LOGGER = logging.getLogger(__name__)


def add_binary_readers(registry: Registry) -> None:
    """Register the Mach-O dynamic library reader."""
    registry.add_reader(MachODylibReader())
    LOGGER.debug("Registered binary readers")


def add_text_readers(registry: Registry) -> None:
    """Register a YAML reader carrying every readable schema variant."""
    reader = YAMLReader()
    reader.add(StubV1DocumentHandler())
    reader.add(StubV2DocumentHandler())
    reader.add(ApiV1DocumentHandler())
    reader.add(ConfigurationV1DocumentHandler())
    registry.add_reader(reader)
    LOGGER.debug("Registered text readers: %d handlers", len(reader.handlers))


def add_text_writers(registry: Registry, settings: Optional[TextSettings] = None) -> None:
    """Register a YAML writer carrying every writable schema variant.

    Args:
        registry: Registry to populate.
        settings: Emission settings; defaults apply when omitted.
    """
    settings = settings or TextSettings()
    writer = YAMLWriter(flow_sequences=settings.flow_sequences, width=settings.width)
    writer.add(StubV1DocumentHandler())
    writer.add(StubV2DocumentHandler())
    writer.add(ApiV1DocumentHandler())
    registry.add_writer(writer)
    LOGGER.debug("Registered text writers: %d handlers", len(writer.handlers))


def add_reexport_writers(registry: Registry) -> None:
    """Register the linker re-export list writer."""
    registry.add_writer(ReexportFileWriter())
    LOGGER.debug("Registered re-export writers")


def build_registry(config: Optional[ApiStubConfig] = None) -> Registry:
    """Return a registry populated with the groups enabled in ``config``.

    Args:
        config: Settings selecting capability groups; defaults enable all.

    Returns:
        Registry: Freshly populated registry owned by the caller.
    """
    config = config or ApiStubConfig()
    registry = Registry()
    if config.registry.binary_readers:
        add_binary_readers(registry)
    if config.registry.text_readers:
        add_text_readers(registry)
    if config.registry.text_writers:
        add_text_writers(registry, config.text)
    if config.registry.reexport_writers:
        add_reexport_writers(registry)
    return registry


__all__ = [
    "add_binary_readers",
    "add_text_readers",
    "add_text_writers",
    "add_reexport_writers",
    "build_registry",
]
