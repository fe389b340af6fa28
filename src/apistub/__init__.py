"""Top-level package for apistub."""

from importlib import metadata as _metadata

from apistub.core import (
    ALL_ARCHITECTURES,
    Architecture,
    File,
    FileType,
    InterfaceFile,
    MagicSignature,
    MemoryBuffer,
    ReadFlags,
    Registry,
    identify_magic,
)
from apistub.errors import (
    ApiStubError,
    FileAccessError,
    MalformedFileError,
    UnsupportedFormatError,
)
from apistub.registration import build_registry

__all__ = [
    "__version__",
    "ALL_ARCHITECTURES",
    "ApiStubError",
    "Architecture",
    "File",
    "FileAccessError",
    "FileType",
    "InterfaceFile",
    "MagicSignature",
    "MalformedFileError",
    "MemoryBuffer",
    "ReadFlags",
    "Registry",
    "UnsupportedFormatError",
    "build_registry",
    "identify_magic",
]


def __getattr__(name: str):
    if name == "__version__":
        return _metadata.version("apistub")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(list(globals().keys()) + ["__version__"])
