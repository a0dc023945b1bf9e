"""JSON schema loader"""

import json
import re

from . import protocol
from .types import (
    Arity, Array, Bool, Enum, EnumValue, Field, Float, Int, Layout,
    MappingEntry, NativeType, Nullable, Opaque, Operation, Pointer, Schema,
    Struct, Void,
)


class SchemaParseError(Exception):
    """Raised for malformed schema documents"""


class SchemaParser:
    """Parses a JSON schema description into a Schema.

    The document lists named types, the domain mapping table and the state
    machine operations:

        {
          "types": [
            {"name": "Flags", "kind": "packed", "fields": [...]},
            {"name": "Result", "kind": "enum", "tag": "u32", "values": [...]},
            {"name": "Record", "kind": "extern", "fields": [...]}
          ],
          "domain": [{"type": "Record", "name": "Record", "skip": []}],
          "operations": [
            {"name": "create_records", "event_name": "records",
             "arity": "batch", "event": "Record", "result": "Result"}
          ]
        }

    Field and operation types use a compact notation: `u8`..`u128`, `i32`,
    `bool`, `f64`, `void`, `anyopaque`, `*T`, `?T`, `[N]T` or a declared
    type name. The protocol table is not part of the document: it is derived
    from the operations, and a `protocol` key is rejected.
    """

    SIMPLE_TYPES = {
        'bool': Bool(),
        'void': Void(),
        'anyopaque': Opaque(),
    }

    def __init__(self, content: str):
        self.content = content
        self.types: dict[str, NativeType] = {}

    def parse(self) -> Schema:
        try:
            data = json.loads(self.content)
        except json.JSONDecodeError as exc:
            raise SchemaParseError(f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise SchemaParseError("schema document must be a JSON object")
        if "protocol" in data:
            raise SchemaParseError("the protocol table is fixed and cannot be set by a schema document")

        try:
            self._parse_types(data.get('types', []))
            domain = [self._parse_mapping(m) for m in data.get('domain', [])]
            operations = [self._parse_operation(op) for op in data.get('operations', [])]
        except KeyError as exc:
            raise SchemaParseError(f"missing key {exc}") from exc
        except (TypeError, ValueError, AttributeError) as exc:
            raise SchemaParseError(f"malformed schema: {exc}") from exc

        return Schema(
            protocol=protocol.mappings(operations),
            domain=domain,
            operations=operations,
        )

    def _parse_types(self, decls: list[dict]):
        # Declare every struct before resolving fields so that structs can
        # point to themselves or to structs declared later.
        for decl in decls:
            name = decl['name']
            if name in self.types:
                raise SchemaParseError(f"duplicate type {name}")
            kind = decl['kind']
            if kind == 'enum':
                self.types[name] = self._parse_enum(decl)
            elif kind in ('packed', 'extern', 'auto'):
                self.types[name] = Struct(name, Layout(kind))
            else:
                raise SchemaParseError(f"unknown kind {kind!r} for type {name}")

        for decl in decls:
            native_type = self.types[decl['name']]
            if isinstance(native_type, Struct):
                native_type.fields = [
                    Field(
                        name=f['name'],
                        type=self.parse_type(f['type']),
                        is_reserved=f.get('reserved', False),
                    )
                    for f in decl.get('fields', [])
                ]

    def _parse_enum(self, decl: dict) -> Enum:
        tag = self.parse_type(decl.get('tag', 'u32'))
        if not isinstance(tag, Int):
            raise SchemaParseError(f"enum {decl['name']} tag must be an integer, got {tag}")
        values = [EnumValue(name=v['name'], value=int(v['value'])) for v in decl.get('values', [])]
        return Enum(decl['name'], tag, values)

    def _parse_mapping(self, mapping: dict) -> MappingEntry:
        return MappingEntry(
            type=self.parse_type(mapping['type']),
            name=mapping.get('name', mapping['type']),
            skip_fields=tuple(mapping.get('skip', ())),
        )

    def _parse_operation(self, op: dict) -> Operation:
        try:
            arity = Arity(op.get('arity', 'batch'))
        except ValueError as exc:
            raise SchemaParseError(f"operation {op['name']}: {exc}") from exc
        return Operation(
            name=op['name'],
            event_name=op.get('event_name', 'events'),
            arity=arity,
            event_type=self.parse_type(op.get('event', 'void')),
            result_type=self.parse_type(op.get('result', 'void')),
        )

    def parse_type(self, expr: str) -> NativeType:
        """Resolve a type expression such as `?*Packet` or `[16]u8`"""
        if not isinstance(expr, str):
            raise SchemaParseError(f"type expression must be a string, got {expr!r}")
        expr = expr.strip()

        if expr.startswith('?'):
            return Nullable(self.parse_type(expr[1:]))

        if expr.startswith('*'):
            return Pointer(self.parse_type(expr[1:]))

        if m := re.match(r'\[(\d+)\](.+)$', expr):
            return Array(self.parse_type(m.group(2)), int(m.group(1)))

        if expr in self.SIMPLE_TYPES:
            return self.SIMPLE_TYPES[expr]

        if m := re.match(r'([uif])(\d+)$', expr):
            kind, bits = m.group(1), int(m.group(2))
            if kind == 'f':
                return Float(bits)
            return Int(bits, signed=kind == 'i')

        if expr in self.types:
            return self.types[expr]

        raise SchemaParseError(f"unknown type {expr!r}")
