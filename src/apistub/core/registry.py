"""Format registry and dispatch engine."""

from __future__ import annotations

from typing import Iterable, List, Optional, TextIO, Tuple

from apistub.errors import FileAccessError, UnsupportedFormatError

from .buffer import BufferLike, as_buffer
from .magic import identify_magic
from .models import File
from .reader import Reader
from .types import ALL_ARCHITECTURES, ArchitectureSet, FileType, ReadFlags
from .writer import Writer


class Registry:
    """Ordered reader and writer lists with first-match-wins dispatch.

    Registration order is priority order. Lists are populated once, before
    dispatch starts; after that the registry is safe to share between threads.
    """

    def __init__(
        self,
        readers: Iterable[Reader] = (),
        writers: Iterable[Writer] = (),
    ) -> None:
        self._readers: List[Reader] = list(readers)
        self._writers: List[Writer] = list(writers)

    @property
    def readers(self) -> Tuple[Reader, ...]:
        """Return the registered readers in priority order."""
        return tuple(self._readers)

    @property
    def writers(self) -> Tuple[Writer, ...]:
        """Return the registered writers in priority order."""
        return tuple(self._writers)

    def add_reader(self, reader: Reader) -> None:
        """Append ``reader`` after every reader registered so far."""
        self._readers.append(reader)

    def add_writer(self, writer: Writer) -> None:
        """Append ``writer`` after every writer registered so far."""
        self._writers.append(writer)

    # Identification ---------------------------------------------------

    def can_read(self, buffer: BufferLike, types: FileType = FileType.ALL) -> bool:
        """Return whether any registered reader claims ``buffer``.

        Args:
            buffer: Raw contents to inspect.
            types: Mask of acceptable formats.

        Returns:
            bool: True if a reader claims the buffer for one of ``types``.
        """
        memory = as_buffer(buffer)
        magic = identify_magic(memory.data)
        return any(reader.can_read(magic, memory, types) for reader in self._readers)

    def get_file_type(self, buffer: BufferLike) -> FileType:
        """Return the type the first recognizing reader assigns to ``buffer``.

        Args:
            buffer: Raw contents to inspect.

        Returns:
            FileType: Detected type, ``FileType.INVALID`` when no reader
            recognizes the buffer.

        Raises:
            MalformedFileError: If a reader recognizes its header but cannot
                decode it. Later readers are not consulted.
        """
        memory = as_buffer(buffer)
        magic = identify_magic(memory.data)
        for reader in self._readers:
            file_type = reader.get_file_type(magic, memory)
            if file_type is not FileType.INVALID:
                return file_type
        return FileType.INVALID

    def can_write(self, file: File) -> bool:
        """Return whether any registered writer claims ``file``."""
        return any(writer.can_write(file) for writer in self._writers)

    # Reading ----------------------------------------------------------

    def read_file(
        self,
        buffer: BufferLike,
        read_flags: ReadFlags = ReadFlags.ALL,
        arches: ArchitectureSet = ALL_ARCHITECTURES,
    ) -> File:
        """Parse ``buffer`` with the first reader that claims it.

        Args:
            buffer: Raw contents to parse.
            read_flags: Passed through to the selected reader.
            arches: Architectures the selected reader should keep.

        Returns:
            File: Description produced by the claiming reader.

        Raises:
            UnsupportedFormatError: If no reader claims the buffer.
            MalformedFileError: If the claiming reader fails to parse it.
        """
        memory = as_buffer(buffer)
        magic = identify_magic(memory.data)
        for reader in self._readers:
            if not reader.can_read(magic, memory):
                continue
            return reader.read_file(memory, read_flags, arches)

        raise UnsupportedFormatError(_describe("unsupported file type", memory.path))

    # Writing ----------------------------------------------------------

    def write_file(self, file: File, stream: Optional[TextIO] = None) -> None:
        """Serialize ``file`` with the first writer that claims it.

        Without ``stream`` the description is written to ``file.path``; the
        destination is opened before any writer is consulted and closed on
        every exit path.

        Args:
            file: Description to serialize.
            stream: Text stream to write to instead of ``file.path``.

        Raises:
            FileAccessError: If the destination cannot be resolved or opened.
            UnsupportedFormatError: If no writer claims the description.
            MalformedFileError: If the claiming writer fails to render it.
        """
        if stream is not None:
            self._write_stream(stream, file)
            return

        if file.path is None:
            raise FileAccessError("Description has no recorded output path.")
        try:
            handle = open(file.path, "w", encoding="utf-8", newline="\n")
        except OSError as exc:
            raise FileAccessError(f"Unable to open {file.path} for writing: {exc}") from exc

        with handle:
            self._write_stream(handle, file)

    def _write_stream(self, stream: TextIO, file: File) -> None:
        for writer in self._writers:
            if not writer.can_write(file):
                continue
            writer.write_file(stream, file)
            return

        raise UnsupportedFormatError(_describe("unsupported file type", file.path))


def _describe(message: str, path: object) -> str:
    return message if path is None else f"{path}: {message}"


__all__ = ["Registry"]
