"""
Python Client Binding Generator

Lowers a native protocol schema into a single Python module containing:
  1. IntEnum / IntFlag classes for enums and packed flag sets
  2. Dataclass value records for domain structs
  3. ctypes Structure bindings with bounds-checked conversion
  4. Blocking and async client mixins dispatching each operation
"""

from .types import (
    GenerationError, NativeType, Int, Bool, Float, Void, Opaque, Array,
    Pointer, Nullable, Enum, EnumValue, Layout, Field, Struct, Arity,
    Operation, MappingEntry, Schema,
)
from .registry import MappingRegistry
from .type_mapper import TypeMapper
from .parser import SchemaParser, SchemaParseError
from .python_generator import GeneratorConfig, PythonGenerator

__all__ = [
    'GenerationError', 'NativeType', 'Int', 'Bool', 'Float', 'Void', 'Opaque',
    'Array', 'Pointer', 'Nullable', 'Enum', 'EnumValue', 'Layout', 'Field',
    'Struct', 'Arity', 'Operation', 'MappingEntry', 'Schema',
    'MappingRegistry', 'TypeMapper',
    'SchemaParser', 'SchemaParseError',
    'GeneratorConfig', 'PythonGenerator',
]
