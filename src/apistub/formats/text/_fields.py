"""Typed accessors for document content shared by the schema handlers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, FrozenSet, List, Mapping, Optional, Union

from apistub.core.types import (
    Architecture,
    ObjCConstraint,
    Platform,
    normalize_version,
    sort_architectures,
)
from apistub.errors import MalformedFileError

_MISSING = object()

# Dotted Swift release names and the ABI version each one stands for.
_SWIFT_RELEASES = {"1.0": 1, "1.1": 2, "2.0": 3, "3.0": 4}
_SWIFT_NAMES = {number: name for name, number in _SWIFT_RELEASES.items()}


class FieldReader:
    """Read keys from one mapping, reporting errors against the source path."""

    def __init__(self, content: Mapping[str, Any], path: Optional[Path], context: str = "") -> None:
        self.content = content
        self.path = path
        self.context = context

    def fail(self, key: str, message: str) -> MalformedFileError:
        """Return an error describing a problem with ``key``."""
        where = f"{self.context}.{key}" if self.context else key
        return MalformedFileError(f"'{where}': {message}", path=self.path)

    def nested(self, content: Any, context: str) -> "FieldReader":
        """Return a reader for a nested mapping."""
        if not isinstance(content, Mapping):
            raise MalformedFileError(f"'{context}': expected a mapping", path=self.path)
        return FieldReader(content, self.path, context)

    def raw(self, key: str, default: Any = _MISSING) -> Any:
        value = self.content.get(key, _MISSING)
        if value is _MISSING or value is None:
            if default is _MISSING:
                raise self.fail(key, "required key is missing")
            return default
        return value

    def string(self, key: str, default: Any = _MISSING) -> str:
        value = self.raw(key, default)
        if isinstance(value, (bool, list, dict)):
            raise self.fail(key, "expected a string")
        return str(value)

    def optional_string(self, key: str) -> Optional[str]:
        if self.content.get(key) is None:
            return None
        return self.string(key)

    def swift_version(self, key: str) -> int:
        """Read a Swift ABI version, accepting the dotted release spellings."""
        value = self.raw(key, 0)
        if isinstance(value, str) and value in _SWIFT_RELEASES:
            return _SWIFT_RELEASES[value]
        if isinstance(value, str) and value.isdigit():
            return int(value)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise self.fail(key, f"invalid Swift version '{value}'")
        return value

    def strings(self, key: str) -> List[str]:
        value = self.raw(key, [])
        if not isinstance(value, list):
            raise self.fail(key, "expected a sequence")
        if any(isinstance(item, (bool, list, dict)) or item is None for item in value):
            raise self.fail(key, "expected a sequence of strings")
        return [str(item) for item in value]

    def mappings(self, key: str) -> List["FieldReader"]:
        value = self.raw(key, [])
        if not isinstance(value, list):
            raise self.fail(key, "expected a sequence")
        return [self.nested(item, f"{key}[{index}]") for index, item in enumerate(value)]

    def architectures(self, key: str, *, required: bool = True) -> FrozenSet[Architecture]:
        if required:
            self.raw(key)
        return frozenset(self.architecture(key, name) for name in self.strings(key))

    def architecture(self, key: str, name: str) -> Architecture:
        try:
            return Architecture(name)
        except ValueError:
            raise self.fail(key, f"unknown architecture '{name}'") from None

    def platform(self, key: str, default: Optional[Platform] = None) -> Platform:
        name = self.string(key) if default is None else self.string(key, default.value)
        try:
            return Platform(name)
        except ValueError:
            raise self.fail(key, f"unknown platform '{name}'") from None

    def version(self, key: str, default: str = "1") -> str:
        value = self.raw(key, default)
        try:
            return normalize_version(value)
        except ValueError:
            raise self.fail(key, f"invalid version '{value}'") from None

    def objc_constraint(
        self, key: str, default: ObjCConstraint = ObjCConstraint.NONE
    ) -> ObjCConstraint:
        name = self.string(key, default.value)
        try:
            return ObjCConstraint(name)
        except ValueError:
            raise self.fail(key, f"unknown Objective-C constraint '{name}'") from None


def architecture_names(archs: FrozenSet[Architecture]) -> List[str]:
    """Return architecture names in canonical order for emission."""
    return [arch.value for arch in sort_architectures(archs)]


def version_value(version: str) -> Union[int, str]:
    """Return a canonical version in the form the readers parse back.

    Whole-number versions are emitted as plain integers so the dumper does
    not quote them.
    """
    return int(version) if version.isdigit() else version


def swift_version_value(version: int) -> Union[int, str]:
    """Return the dotted release name for ``version`` when it has one."""
    return _SWIFT_NAMES.get(version, version)


__all__ = ["FieldReader", "architecture_names", "swift_version_value", "version_value"]
