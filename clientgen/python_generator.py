"""Python Generator - generates ctypes bindings and client mixins from a native schema"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from . import protocol
from .registry import MappingRegistry
from .type_mapper import TypeMapper
from .types import (
    Array, Enum, Field, GenerationError, Int, MappingEntry, Operation, Schema,
    Struct,
)

logger = logging.getLogger(__name__)


@dataclass
class GeneratorConfig:
    """Options for Python binding generation"""
    runtime_module: str = ".lib"
    library_handle: str = "tbclient"
    struct_prefix: str = "C"
    heartbeat_operation: str = "pulse"
    packed_skip_fields: tuple[str, ...] = ("padding",)
    source_name: str = "clientgen"


def to_uppercase(name: str) -> str:
    """Upper-case ASCII letters only, leaving every other character as is"""
    return "".join(chr(ord(c) - 32) if "a" <= c <= "z" else c for c in name)


class PythonGenerator:
    """Generates Python bindings using ctypes"""

    def __init__(self, schema: Schema, config: Optional[GeneratorConfig] = None):
        self.schema = schema
        self.config = config or GeneratorConfig()
        self.registry = MappingRegistry(schema.protocol, schema.domain)
        self.mapper = TypeMapper(self.registry, self.config.struct_prefix)

    def generate(self) -> str:
        """Generate complete Python module.

        Nothing is returned unless every type and operation could be
        lowered; any GenerationError propagates to the caller.
        """
        lines = self._preamble()

        # Enums, flags and scalar aliases
        lines.extend(self._generate_enums())

        # Value records for domain types
        lines.extend(self._generate_dataclasses())

        # ctypes structures for every extern struct
        lines.extend(self._generate_structs())

        lines.extend(self._generate_function_decls())

        operation_name = self._operation_enum_name()
        for is_async in (True, False):
            lines.extend(self._generate_mixin(is_async, operation_name))

        return "\n".join(lines).rstrip("\n") + "\n"

    def _preamble(self) -> list[str]:
        title = f"This file was auto-generated by {self.config.source_name}"
        note = "Do not manually modify."
        width = max(len(title), len(note))
        border = "#" * (width + 6)
        runtime_names = sorted(
            ["c_uint128", "dataclass", "validate_uint", self.config.library_handle]
        )
        return [
            border,
            f"## {title.center(width)} ##",
            f"## {note.center(width)} ##",
            border,
            "from __future__ import annotations",
            "",
            "import ctypes",
            "import enum",
            "from collections.abc import Callable  # noqa: TCH003",
            "from typing import Any",
            "",
            f"from {self.config.runtime_module} import {', '.join(runtime_names)}",
            "",
            "",
        ]

    def _generate_enums(self) -> list[str]:
        lines = []
        for entry in self.registry.all:
            native_type = entry.type
            if isinstance(native_type, Struct):
                if native_type.is_packed:
                    skip = self.config.packed_skip_fields + entry.skip_fields
                    lines.extend(self._generate_enum(entry, skip))
                elif not native_type.is_extern:
                    raise GenerationError(f"invalid C struct type: {native_type}")
            elif isinstance(native_type, Enum):
                lines.extend(self._generate_enum(entry, entry.skip_fields))
            else:
                lines.append(f"{entry.name} = {self.mapper.to_ctypes(native_type)}")
                lines.extend(["", ""])
        return lines

    def _generate_enum(self, entry: MappingEntry, skip_fields: tuple[str, ...]) -> list[str]:
        """Generate IntEnum for an enum, or IntFlag for a packed struct"""
        native_type = entry.type
        logger.debug("emitting enum %s for %s", entry.name, native_type)

        if isinstance(native_type, Enum):
            lines = [f"class {entry.name}(enum.IntEnum):"]
            for value in native_type.values:
                if value.name not in skip_fields:
                    lines.append(f"    {to_uppercase(value.name)} = {value.value}")
        else:
            assert isinstance(native_type, Struct) and native_type.is_packed
            lines = [f"class {entry.name}(enum.IntFlag):", "    NONE = 0"]
            # Bit positions follow declaration order, skipped fields included
            for i, field in enumerate(native_type.fields):
                if field.name not in skip_fields:
                    lines.append(f"    {to_uppercase(field.name)} = 1 << {i}")

        if len(lines) == 1:
            lines.append("    pass")
        lines.extend(["", ""])
        return lines

    def _generate_dataclasses(self) -> list[str]:
        lines = []
        for entry in self.registry.domain:
            native_type = entry.type
            if isinstance(native_type, Struct) and native_type.is_extern:
                lines.extend(self._generate_dataclass(entry))
        return lines

    def _generate_dataclass(self, entry: MappingEntry) -> list[str]:
        """Generate value record with zero-valued defaults"""
        struct = entry.type
        logger.debug("emitting dataclass %s", entry.name)

        lines = ["@dataclass", f"class {entry.name}:"]
        for field in _public_fields(struct):
            with _field_context(struct, field):
                python_type = self.mapper.to_python(field.type)
                default = self.mapper.default_value(field.type)
            lines.append(f"    {field.name}: {python_type} = {default}")

        if len(lines) == 2:
            lines.append("    pass")
        lines.extend(["", ""])
        return lines

    def _generate_structs(self) -> list[str]:
        lines = []
        for entry in self.registry.all:
            native_type = entry.type
            if isinstance(native_type, Struct) and native_type.is_extern:
                # Protocol structs have no dataclass to convert into
                generate_to_python = self.registry.is_domain(native_type)
                lines.extend(self._generate_struct_ctypes(entry, generate_to_python))
        return lines

    def _generate_struct_ctypes(self, entry: MappingEntry, generate_to_python: bool) -> list[str]:
        """Generate ctypes Structure with from_param, to_python and _fields_"""
        struct = entry.type
        assert isinstance(struct, Struct) and struct.is_extern, f"not an extern struct: {struct}"
        logger.debug("emitting ctypes structure for %s", entry.name)

        c_name = self.config.struct_prefix + entry.name
        fields = _public_fields(struct)

        # Lower the full layout first so that errors surface before anything else
        layout = []
        for field in struct.fields:
            with _field_context(struct, field):
                layout.append((field.name, self.mapper.to_ctypes(field.type)))

        lines = [
            f"class {c_name}(ctypes.Structure):",
            "    @classmethod",
            "    def from_param(cls, obj):",
        ]

        # Plain ctypes integers silently wrap on overflow; c_uint128 checks itself
        for field in fields:
            if self._is_checked_uint(field.type):
                lines.append(
                    f'        validate_uint(bits={field.type.bits}, name="{field.name}", '
                    f"number=obj.{field.name})"
                )
            elif isinstance(field.type, Array) and self._is_checked_uint(field.type.child):
                lines.extend([
                    f"        for i, value in enumerate(obj.{field.name}):",
                    f'            validate_uint(bits={field.type.child.bits}, name=f"{field.name}[{{i}}]", '
                    "number=value)",
                ])

        lines.append("        return cls(")
        for field in fields:
            if self.mapper.is_uint128(field.type):
                lines.append(f"            {field.name}=c_uint128.from_param(obj.{field.name}),")
            else:
                lines.append(f"            {field.name}=obj.{field.name},")
        lines.append("        )")

        if generate_to_python:
            lines.extend(["", "    def to_python(self):", f"        return {entry.name}("])
            for field in fields:
                lines.append(f"            {field.name}={self._convert_ctypes_to_python(field)},")
            lines.append("        )")

        lines.extend(["", "", f"{c_name}._fields_ = [  # noqa: SLF001"])
        for name, ctype in layout:
            lines.append(f'    ("{name}", {ctype}),')
        lines.extend(["]", "", ""])
        return lines

    def _is_checked_uint(self, native_type) -> bool:
        return isinstance(native_type, Int) and not self.mapper.is_uint128(native_type)

    def _convert_ctypes_to_python(self, field: Field) -> str:
        value = f"self.{field.name}"
        domain_name = self.registry.lookup_domain(field.type)
        if domain_name is not None:
            return f"{domain_name}({value})"
        if self.mapper.is_uint128(field.type):
            return f"{value}.to_python()"
        if isinstance(field.type, Array):
            return f"tuple({value})"
        return value

    def _generate_function_decls(self) -> list[str]:
        """Generate ctypes declarations for the exported client functions"""
        lib = self.config.library_handle
        try:
            client = self.registry.name_of(protocol.CLIENT)
            status = self.registry.name_of(protocol.STATUS)
            packet_ptr = f"ctypes.POINTER({self.mapper.struct_name(protocol.PACKET)})"
        except GenerationError as exc:
            raise GenerationError(f"native declarations: {exc}") from exc
        init_argtypes = (
            f"ctypes.POINTER({client}), c_uint128, ctypes.c_char_p,",
            "ctypes.c_uint32, ctypes.c_void_p, OnCompletion]",
        )
        return [
            "# Don't be tempted to use c_char_p for bytes_ptr - it's for null terminated strings only.",
            f"OnCompletion = ctypes.CFUNCTYPE(None, ctypes.c_void_p, {client}, {packet_ptr},",
            "                                ctypes.c_uint64, ctypes.c_void_p, ctypes.c_uint32)",
            "",
            "# Initialize a new client which connects to the addresses provided and",
            "# completes submitted packets by invoking the callback with the given context.",
            f"tb_client_init = {lib}.tb_client_init",
            f"tb_client_init.restype = {status}",
            *_assign_list("tb_client_init.argtypes", init_argtypes),
            "",
            "# Initialize a new client which echos back any data submitted.",
            f"tb_client_init_echo = {lib}.tb_client_init_echo",
            f"tb_client_init_echo.restype = {status}",
            *_assign_list("tb_client_init_echo.argtypes", init_argtypes),
            "",
            "# Closes the client, causing any previously submitted packets to be completed with",
            "# `TB_PACKET_CLIENT_SHUTDOWN` before freeing any allocated client resources from init.",
            "# It is undefined behavior to use any functions on the client once deinit is called.",
            f"tb_client_deinit = {lib}.tb_client_deinit",
            "tb_client_deinit.restype = None",
            f"tb_client_deinit.argtypes = [{client}]",
            "",
            "# Submit a packet with its operation, data, and data_size fields set.",
            "# Once completed, `on_completion` will be invoked with `on_completion_ctx` and the given",
            "# packet on the client thread (separate from caller's thread).",
            f"tb_client_submit = {lib}.tb_client_submit",
            "tb_client_submit.restype = None",
            f"tb_client_submit.argtypes = [{client}, {packet_ptr}]",
            "",
            "",
        ]

    def _operation_enum_name(self) -> str:
        # Matched by native name: each operation list builds its own enum
        for entry in self.registry.protocol:
            if isinstance(entry.type, Enum) and entry.type.name == protocol.OPERATION_ENUM:
                return entry.name
        raise GenerationError(f"no mapping for native type {protocol.OPERATION_ENUM}")

    def _generate_mixin(self, is_async: bool, operation_name: str) -> list[str]:
        prefix = "Async" if is_async else ""
        logger.debug("emitting %sStateMachineMixin", prefix)

        lines = [
            f"class {prefix}StateMachineMixin:",
            f"    _submit: Callable[[{operation_name}, Any, Any, Any], Any]",
            "",
        ]
        for operation in self.schema.operations:
            # The heartbeat operation keeps sessions alive and is never called directly
            if operation.name != self.config.heartbeat_operation:
                lines.extend(self._generate_method(operation, is_async, operation_name))

        lines.append("")
        return lines

    def _generate_method(self, operation: Operation, is_async: bool, operation_name: str) -> list[str]:
        """Generate a wrapper method dispatching through self._submit"""
        try:
            event_type = self.mapper.to_python(operation.event_type)
            result_type = f"list[{self.mapper.to_python(operation.result_type)}]"
            event_type_c = self.mapper.struct_name(operation.event_type)
            result_type_c = self.mapper.struct_name(operation.result_type)
        except GenerationError as exc:
            raise GenerationError(f"operation {operation.name}: {exc}") from exc

        # _submit always takes a list; single-event operations wrap theirs here
        if operation.is_batch:
            event_type = f"list[{event_type}]"
            event_arg = operation.event_name
        else:
            event_arg = f"[{operation.event_name}]"

        prefix_fn = "async " if is_async else ""
        prefix_call = "await " if is_async else ""
        return [
            f"    {prefix_fn}def {operation.name}(self, {operation.event_name}: {event_type}) "
            f"-> {result_type}:",
            f"        return {prefix_call}self._submit(",
            f"            {operation_name}.{to_uppercase(operation.name)},",
            f"            {event_arg},",
            f"            {event_type_c},",
            f"            {result_type_c},",
            "        )",
            "",
        ]


def _public_fields(struct: Struct) -> list[Field]:
    return [f for f in struct.fields if not f.is_reserved]


def _assign_list(target: str, items: tuple[str, ...]) -> list[str]:
    """Render `target = [...]` with continuation lines aligned under the bracket"""
    head = f"{target} = ["
    return [head + items[0]] + [" " * len(head) + item for item in items[1:]]


@contextmanager
def _field_context(struct: Struct, field: Field):
    """Re-raise GenerationError with the struct and field it came from"""
    try:
        yield
    except GenerationError as exc:
        raise GenerationError(f"{struct.name}.{field.name}: {exc}") from exc
