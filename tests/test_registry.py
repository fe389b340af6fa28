"""Registry dispatch tests using stand-in readers and writers."""

from __future__ import annotations

import io
from pathlib import Path
from typing import List, TextIO

import pytest

from apistub.core import (
    ALL_ARCHITECTURES,
    ArchitectureSet,
    File,
    FileType,
    InterfaceFile,
    MagicSignature,
    MemoryBuffer,
    ReadFlags,
    Reader,
    Registry,
    Writer,
)
from apistub.errors import FileAccessError, MalformedFileError, UnsupportedFormatError


class PrefixReader(Reader):
    """Claim buffers starting with ``prefix`` and report ``file_type``."""

    def __init__(self, prefix: bytes, file_type: FileType, *, broken: bool = False) -> None:
        self.prefix = prefix
        self.file_type = file_type
        self.broken = broken
        self.reads: List[MemoryBuffer] = []

    def can_read(
        self,
        magic: MagicSignature,
        buffer: MemoryBuffer,
        types: FileType = FileType.ALL,
    ) -> bool:
        return bool(types & self.file_type) and buffer.data.startswith(self.prefix)

    def get_file_type(self, magic: MagicSignature, buffer: MemoryBuffer) -> FileType:
        if not buffer.data.startswith(self.prefix):
            return FileType.INVALID
        if self.broken:
            raise MalformedFileError("bad header", path=buffer.path)
        return self.file_type

    def read_file(
        self,
        buffer: MemoryBuffer,
        read_flags: ReadFlags = ReadFlags.ALL,
        arches: ArchitectureSet = ALL_ARCHITECTURES,
    ) -> File:
        self.reads.append(buffer)
        if self.broken:
            raise MalformedFileError("truncated body", path=buffer.path)
        return File(file_type=self.file_type, path=buffer.path)


class TypeWriter(Writer):
    """Claim descriptions of ``file_type`` and write ``label``."""

    def __init__(self, file_type: FileType, label: str, *, broken: bool = False) -> None:
        self.file_type = file_type
        self.label = label
        self.broken = broken
        self.calls = 0

    def can_write(self, file: File) -> bool:
        return file.file_type is self.file_type

    def write_file(self, stream: TextIO, file: File) -> None:
        self.calls += 1
        stream.write(self.label)
        if self.broken:
            raise MalformedFileError("cannot render")


def test_empty_registry_reports_nothing() -> None:
    """With no readers, buffers are neither readable nor typed."""
    registry = Registry()

    assert registry.can_read(b"anything") is False
    assert registry.get_file_type(b"anything") is FileType.INVALID
    with pytest.raises(UnsupportedFormatError):
        registry.read_file(b"anything")


def test_empty_buffer_is_invalid_for_all_built_in_readers(registry: Registry) -> None:
    """An empty buffer is unrecognized, not an error."""
    assert registry.can_read(b"") is False
    assert registry.get_file_type(b"") is FileType.INVALID
    empty = MemoryBuffer(b"")
    assert not any(reader.can_read(MagicSignature.UNKNOWN, empty) for reader in registry.readers)


def test_unclaimed_buffer_is_unsupported(registry: Registry) -> None:
    """Arbitrary text and ELF images fall through every reader."""
    for data in (b"hello world\n", b"\x7fELF\x02\x01\x01\x00" + b"\0" * 56):
        assert registry.can_read(data) is False
        assert registry.get_file_type(data) is FileType.INVALID
        with pytest.raises(UnsupportedFormatError):
            registry.read_file(data)


def test_first_registered_reader_wins() -> None:
    """Reversing registration order reverses which reader handles a buffer."""
    first = PrefixReader(b"AB", FileType.TBD_V1)
    second = PrefixReader(b"A", FileType.TBD_V2)

    forward = Registry(readers=[first, second])
    reverse = Registry(readers=[second, first])

    assert forward.get_file_type(b"ABC") is FileType.TBD_V1
    assert forward.read_file(b"ABC").file_type is FileType.TBD_V1
    assert reverse.get_file_type(b"ABC") is FileType.TBD_V2
    assert reverse.read_file(b"ABC").file_type is FileType.TBD_V2
    assert len(first.reads) == 1 and len(second.reads) == 1


def test_can_read_respects_type_mask() -> None:
    reader = PrefixReader(b"A", FileType.API_V1)
    registry = Registry(readers=[reader])

    assert registry.can_read(b"A", FileType.API_V1 | FileType.TBD_V1)
    assert not registry.can_read(b"A", FileType.TBD_V1)


def test_detection_failure_propagates_without_fallback() -> None:
    """A reader that recognizes but cannot decode its header stops detection."""
    broken = PrefixReader(b"A", FileType.TBD_V1, broken=True)
    fallback = PrefixReader(b"A", FileType.TBD_V2)
    registry = Registry(readers=[broken, fallback])

    with pytest.raises(MalformedFileError):
        registry.get_file_type(b"A")


def test_claiming_reader_failure_is_not_retried() -> None:
    """Claiming is a commitment: later readers are never consulted."""
    broken = PrefixReader(b"A", FileType.TBD_V1, broken=True)
    fallback = PrefixReader(b"A", FileType.TBD_V2)
    registry = Registry(readers=[broken, fallback])

    assert registry.can_read(b"A")
    with pytest.raises(MalformedFileError):
        registry.read_file(MemoryBuffer(b"A", Path("/tmp/input")))
    assert fallback.reads == []


def test_read_file_passes_buffer_path_through() -> None:
    registry = Registry(readers=[PrefixReader(b"A", FileType.TBD_V1)])

    file = registry.read_file(MemoryBuffer(b"A", Path("/tmp/libfoo.tbd")))

    assert file.path == Path("/tmp/libfoo.tbd")


def test_identification_is_idempotent() -> None:
    reader = PrefixReader(b"A", FileType.TBD_V1)
    writer = TypeWriter(FileType.TBD_V1, "v1")
    registry = Registry(readers=[reader], writers=[writer])
    file = File(file_type=FileType.TBD_V1)

    results = {(registry.can_read(b"A"), registry.get_file_type(b"A")) for _ in range(3)}

    assert results == {(True, FileType.TBD_V1)}
    assert [registry.can_write(file) for _ in range(3)] == [True, True, True]
    assert reader.reads == [] and writer.calls == 0


def test_write_stream_uses_first_claiming_writer() -> None:
    first = TypeWriter(FileType.TBD_V1, "first")
    second = TypeWriter(FileType.TBD_V1, "second")
    registry = Registry(writers=[first, second])
    stream = io.StringIO()

    registry.write_file(File(file_type=FileType.TBD_V1), stream)

    assert stream.getvalue() == "first"
    assert second.calls == 0


def test_write_without_claiming_writer_is_unsupported() -> None:
    registry = Registry(writers=[TypeWriter(FileType.TBD_V1, "v1")])
    file = File(file_type=FileType.API_V1)

    assert registry.can_write(file) is False
    with pytest.raises(UnsupportedFormatError):
        registry.write_file(file, io.StringIO())


def test_writer_failure_propagates() -> None:
    broken = TypeWriter(FileType.TBD_V1, "partial", broken=True)
    fallback = TypeWriter(FileType.TBD_V1, "fallback")
    registry = Registry(writers=[broken, fallback])

    with pytest.raises(MalformedFileError):
        registry.write_file(File(file_type=FileType.TBD_V1), io.StringIO())
    assert fallback.calls == 0


def test_write_to_recorded_path(tmp_path: Path) -> None:
    """The path form writes to ``file.path``."""
    registry = Registry(writers=[TypeWriter(FileType.TBD_V1, "contents\n")])
    destination = tmp_path / "libfoo.tbd"

    registry.write_file(File(file_type=FileType.TBD_V1, path=destination))

    assert destination.read_text(encoding="utf-8") == "contents\n"


def test_write_to_path_closes_stream_on_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """The destination is released even when the writer fails."""
    opened: List[io.StringIO] = []

    class _Handle(io.StringIO):
        def __init__(self, *args: object, **kwargs: object) -> None:
            super().__init__()
            opened.append(self)

    monkeypatch.setattr("apistub.core.registry.open", _Handle, raising=False)
    registry = Registry(writers=[TypeWriter(FileType.TBD_V1, "partial", broken=True)])

    with pytest.raises(MalformedFileError):
        registry.write_file(File(file_type=FileType.TBD_V1, path=tmp_path / "out.tbd"))

    assert len(opened) == 1
    assert opened[0].closed


def test_write_to_unopenable_path_is_an_access_error(tmp_path: Path) -> None:
    """Open failures are reported before any writer runs."""
    writer = TypeWriter(FileType.TBD_V1, "v1")
    registry = Registry(writers=[writer])
    destination = tmp_path / "missing" / "dir" / "out.tbd"

    with pytest.raises(FileAccessError):
        registry.write_file(File(file_type=FileType.TBD_V1, path=destination))
    assert writer.calls == 0


def test_write_without_path_is_an_access_error() -> None:
    registry = Registry(writers=[TypeWriter(FileType.TBD_V1, "v1")])

    with pytest.raises(FileAccessError):
        registry.write_file(InterfaceFile(file_type=FileType.TBD_V1))


def test_registration_appends_in_order() -> None:
    registry = Registry()
    first = PrefixReader(b"A", FileType.TBD_V1)
    second = PrefixReader(b"B", FileType.TBD_V2)
    registry.add_reader(first)
    registry.add_reader(second)
    writer = TypeWriter(FileType.TBD_V1, "v1")
    registry.add_writer(writer)

    assert registry.readers == (first, second)
    assert registry.writers == (writer,)
