"""Writer capability contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TextIO

from .models import File


class Writer(ABC):
    """Serialize in-memory descriptions into one output format."""

    @abstractmethod
    def can_write(self, file: File) -> bool:
        """Return whether this writer claims ``file``."""

    @abstractmethod
    def write_file(self, stream: TextIO, file: File) -> None:
        """Emit ``file`` to ``stream``.

        Raises:
            MalformedFileError: If the description cannot be rendered.
        """


__all__ = ["Writer"]
