"""In-memory input buffers handed to readers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from apistub.errors import FileAccessError


@dataclass(frozen=True)
class MemoryBuffer:
    """Immutable file contents plus the path they were loaded from.

    Attributes:
        data: Raw bytes of the file.
        path: Source path recorded on parsed descriptions, if any.
    """

    data: bytes
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "MemoryBuffer":
        """Load a file from disk.

        Args:
            path: File to read.

        Returns:
            MemoryBuffer: Buffer holding the file contents.

        Raises:
            FileAccessError: If the file cannot be read.
        """
        source = Path(path).expanduser()
        try:
            data = source.read_bytes()
        except OSError as exc:
            raise FileAccessError(f"Unable to read {source}: {exc}") from exc
        return cls(data=data, path=source)

    def text(self) -> str:
        """Decode the buffer as UTF-8, tolerating a leading byte-order mark."""
        return self.data.decode("utf-8-sig")


BufferLike = Union[MemoryBuffer, bytes, bytearray, memoryview]


def as_buffer(value: BufferLike) -> MemoryBuffer:
    """Wrap raw bytes in a :class:`MemoryBuffer`; pass buffers through."""
    if isinstance(value, MemoryBuffer):
        return value
    return MemoryBuffer(data=bytes(value))


__all__ = ["MemoryBuffer", "BufferLike", "as_buffer"]
