"""Reader capability contract."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .buffer import MemoryBuffer
from .magic import MagicSignature
from .models import File
from .types import ALL_ARCHITECTURES, ArchitectureSet, FileType, ReadFlags


class Reader(ABC):
    """Identify and parse one family of API description formats.

    Implementations hold no state that changes during dispatch, so a single
    instance may serve any number of calls.
    """

    @abstractmethod
    def can_read(
        self,
        magic: MagicSignature,
        buffer: MemoryBuffer,
        types: FileType = FileType.ALL,
    ) -> bool:
        """Return whether this reader claims ``buffer`` for one of ``types``.

        Args:
            magic: Signature computed once for the buffer by the caller.
            buffer: Candidate input.
            types: Mask of formats the caller is willing to accept.

        Returns:
            bool: True when the reader takes ownership of the outcome.
        """

    @abstractmethod
    def get_file_type(self, magic: MagicSignature, buffer: MemoryBuffer) -> FileType:
        """Return the concrete type this reader would assign to ``buffer``.

        Returns:
            FileType: Detected type, or ``FileType.INVALID`` when not recognized.

        Raises:
            MalformedFileError: If the buffer carries this reader's header but
                the header itself cannot be decoded.
        """

    @abstractmethod
    def read_file(
        self,
        buffer: MemoryBuffer,
        read_flags: ReadFlags = ReadFlags.ALL,
        arches: ArchitectureSet = ALL_ARCHITECTURES,
    ) -> File:
        """Parse ``buffer`` into an in-memory description.

        Raises:
            MalformedFileError: If the claimed buffer cannot be parsed.
        """


__all__ = ["Reader"]
