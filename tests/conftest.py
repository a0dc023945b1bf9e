"""Pytest configuration and fixtures for clientgen tests"""

import importlib
import shutil
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from clientgen import (
    Bool, Enum, EnumValue, Field, Int, Layout, MappingEntry, PythonGenerator,
    Schema, Struct, protocol, tigerbeetle,
)

SUPPORT_DIR = Path(__file__).parent / "support"


def domain_schema(*entries, operations=()) -> Schema:
    """Schema with the standard protocol table and the given domain entries"""
    operations = list(operations)
    return Schema(
        protocol=protocol.mappings(operations),
        domain=list(entries),
        operations=operations,
    )


def import_generated(root: Path, package: str, source: str):
    """Write source as `<package>.bindings` beside the runtime stub and import it"""
    package_dir = root / package
    package_dir.mkdir()
    (package_dir / "__init__.py").write_text("")
    shutil.copy(SUPPORT_DIR / "lib.py", package_dir / "lib.py")
    (package_dir / "bindings.py").write_text(source)

    sys.path.insert(0, str(root))
    importlib.invalidate_caches()
    try:
        return importlib.import_module(f"{package}.bindings")
    finally:
        sys.path.remove(str(root))


def unload(package: str):
    for name in [n for n in sys.modules if n == package or n.startswith(f"{package}.")]:
        del sys.modules[name]


@pytest.fixture
def status_enum():
    """Plain enum with two variants"""
    return Enum("status_t", Int(32), [EnumValue("ok", 0), EnumValue("failure", 1)])


@pytest.fixture
def flags_struct():
    """Packed flag set padded to 16 bits"""
    return Struct("flags_t", Layout.PACKED, [
        Field("linked", Bool()),
        Field("pending", Bool()),
        Field("reserved", Int(14), is_reserved=True),
    ])


@pytest.fixture
def record_struct(flags_struct):
    """Extern struct with a reserved field and a flags field"""
    return Struct("record_t", Layout.EXTERN, [
        Field("id", Int(128)),
        Field("amount", Int(64)),
        Field("reserved", Int(32), is_reserved=True),
        Field("code", Int(16)),
        Field("flags", flags_struct),
    ])


@pytest.fixture
def small_schema(status_enum, flags_struct, record_struct):
    """Three domain types on top of the standard protocol table, no operations"""
    return domain_schema(
        MappingEntry(status_enum, "Outcome"),
        MappingEntry(flags_struct, "Flags", skip_fields=("reserved",)),
        MappingEntry(record_struct, "Record"),
    )


@pytest.fixture
def load_bindings(tmp_path):
    """Import generated source as a throwaway package"""
    loaded = []

    def load(source: str):
        package = f"custom_bindings_{len(loaded)}"
        loaded.append(package)
        return import_generated(tmp_path, package, source)

    yield load
    for package in loaded:
        unload(package)


@pytest.fixture(scope="session")
def generated_source():
    """Bindings generated from the built-in TigerBeetle schema"""
    return PythonGenerator(tigerbeetle.schema()).generate()


@pytest.fixture(scope="session")
def bindings(generated_source, tmp_path_factory):
    """Generated bindings imported as a real module next to the runtime stub"""
    root = tmp_path_factory.mktemp("generated")
    yield import_generated(root, "tb_bindings", generated_source)
    unload("tb_bindings")


def class_block(source: str, header: str) -> list[str]:
    """Lines of a generated top-level class, header included, up to the first blank line"""
    lines = source.splitlines()
    start = lines.index(header)
    block = []
    for line in lines[start:]:
        if not line:
            break
        block.append(line)
    return block
