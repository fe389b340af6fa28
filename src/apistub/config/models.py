"""Configuration models describing apistub settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiStubBaseModel(BaseModel):
    """Shared configuration for settings models."""

    model_config = ConfigDict(extra="forbid")


class RegistrySettings(ApiStubBaseModel):
    """Capability groups installed by ``build_registry``.

    Attributes:
        binary_readers: Register the Mach-O dynamic library reader.
        text_readers: Register the YAML reader with all schema handlers.
        text_writers: Register the YAML writer with all writable handlers.
        reexport_writers: Register the linker re-export list writer.
    """

    binary_readers: bool = True
    text_readers: bool = True
    text_writers: bool = True
    reexport_writers: bool = True


class TextSettings(ApiStubBaseModel):
    """Options for emitting YAML documents.

    Attributes:
        flow_sequences: Render scalar-only sequences inline.
        width: Preferred maximum line width.
    """

    flow_sequences: bool = True
    width: int = Field(default=80, ge=20)


class LoggingSettings(ApiStubBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file; rotated when it grows past ``max_size_mb``.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: int = 100
    backup_count: int = 5


class ApiStubConfig(ApiStubBaseModel):
    """Top-level configuration struct for apistub.

    Attributes:
        registry: Capability groups to register.
        text: YAML emission settings.
        logging: Logging configuration.
    """

    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    text: TextSettings = Field(default_factory=TextSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "ApiStubBaseModel",
    "RegistrySettings",
    "TextSettings",
    "LoggingSettings",
    "ApiStubConfig",
]
