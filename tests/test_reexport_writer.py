"""Re-export list writer tests."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Dict

import pytest

from apistub.core import (
    Architecture,
    ConfigurationFile,
    FileType,
    InterfaceFile,
    Registry,
    Symbol,
    SymbolKind,
)
from apistub.errors import UnsupportedFormatError
from apistub.formats.reexport import ReexportFileWriter, linker_names


def test_linker_names_expand_objc_symbols() -> None:
    assert linker_names(Symbol(name="_f")) == ["_f"]
    assert linker_names(Symbol(name="W", kind=SymbolKind.OBJC_CLASS)) == [
        "_OBJC_CLASS_$_W",
        "_OBJC_METACLASS_$_W",
    ]
    assert linker_names(Symbol(name="W.x", kind=SymbolKind.OBJC_IVAR)) == ["_OBJC_IVAR_$_W.x"]


def test_write_reexport_list(tmp_path: Path, registry: Registry, samples: Dict[str, bytes]) -> None:
    """Exported symbols are written one per line; undefined ones are skipped."""
    stub = registry.read_file(samples["tbd-v2"])
    assert isinstance(stub, InterfaceFile)
    destination = tmp_path / "reexports.txt"
    file = stub.model_copy(update={"file_type": FileType.REEXPORT_LIST, "path": destination})

    registry.write_file(file)

    lines = destination.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "# Re-exported symbols of /System/Library/Frameworks/Foo.framework/Foo"
    assert lines[1] == "# Architectures: armv7 arm64"
    assert lines[2:] == ["_sym3", "_tlv1"]


def test_reexport_list_is_write_only(registry: Registry) -> None:
    file = InterfaceFile(
        file_type=FileType.REEXPORT_LIST,
        architectures=frozenset({Architecture.X86_64}),
        install_name="/usr/lib/libx.dylib",
        symbols=[Symbol(name="_a", architectures=frozenset({Architecture.X86_64}))],
    )

    assert registry.can_write(file)
    assert registry.can_read(b"# Re-exported symbols of /usr/lib/libx.dylib\n_a\n") is False


def test_reexport_writer_rejects_other_descriptions() -> None:
    writer = ReexportFileWriter()
    configuration = ConfigurationFile(file_type=FileType.REEXPORT_LIST)

    assert writer.can_write(configuration) is False
    with pytest.raises(UnsupportedFormatError):
        writer.write_file(io.StringIO(), configuration)
    with pytest.raises(UnsupportedFormatError):
        writer.write_file(io.StringIO(), InterfaceFile(file_type=FileType.TBD_V2))
