"""Data types describing a native protocol schema"""

import enum
from dataclasses import dataclass, field


class GenerationError(Exception):
    """Raised when a schema cannot be lowered into Python bindings"""


class NativeType:
    """Base class for every native type kind"""

    @property
    def bit_size(self) -> int:
        raise GenerationError(f"type has no fixed bit size: {self}")


@dataclass(frozen=True)
class Int(NativeType):
    """Fixed-width integer"""
    bits: int
    signed: bool = False

    def __str__(self):
        return f"{'i' if self.signed else 'u'}{self.bits}"

    @property
    def bit_size(self) -> int:
        return self.bits


@dataclass(frozen=True)
class Bool(NativeType):
    def __str__(self):
        return "bool"

    @property
    def bit_size(self) -> int:
        return 1


@dataclass(frozen=True)
class Float(NativeType):
    bits: int

    def __str__(self):
        return f"f{self.bits}"


@dataclass(frozen=True)
class Void(NativeType):
    def __str__(self):
        return "void"


@dataclass(frozen=True)
class Opaque(NativeType):
    """Untyped pointee (`anyopaque`)"""

    def __str__(self):
        return "anyopaque"


@dataclass(frozen=True)
class Array(NativeType):
    child: NativeType
    length: int

    def __str__(self):
        return f"[{self.length}]{self.child}"


@dataclass(frozen=True)
class Pointer(NativeType):
    """Single-item, non-null pointer"""
    child: NativeType

    def __str__(self):
        return f"*{self.child}"


@dataclass(frozen=True)
class Nullable(NativeType):
    """Optional wrapper; only meaningful around pointers"""
    child: NativeType

    def __str__(self):
        return f"?{self.child}"


@dataclass(frozen=True)
class EnumValue:
    """Enum variant"""
    name: str
    value: int


@dataclass(eq=False)
class Enum(NativeType):
    """Native enum backed by an unsigned tag integer"""
    name: str
    tag: Int
    values: list[EnumValue] = field(default_factory=list)

    def __str__(self):
        return self.name

    @property
    def bit_size(self) -> int:
        return self.tag.bits


class Layout(enum.Enum):
    AUTO = "auto"
    PACKED = "packed"
    EXTERN = "extern"


@dataclass(frozen=True)
class Field:
    """Struct field. Reserved fields only occupy layout space."""
    name: str
    type: NativeType
    is_reserved: bool = False


@dataclass(eq=False)
class Struct(NativeType):
    """Native struct; `fields` may be filled after creation for self-referencing types"""
    name: str
    layout: Layout = Layout.EXTERN
    fields: list[Field] = field(default_factory=list)

    def __str__(self):
        return self.name

    @property
    def is_packed(self) -> bool:
        return self.layout is Layout.PACKED

    @property
    def is_extern(self) -> bool:
        return self.layout is Layout.EXTERN

    @property
    def bit_size(self) -> int:
        if not self.is_packed:
            raise GenerationError(f"only packed structs have a bit size: {self}")
        return sum(f.type.bit_size for f in self.fields)


class Arity(enum.Enum):
    SINGLE = "single"
    BATCH = "batch"


@dataclass
class Operation:
    """Protocol operation exposed as a client method"""
    name: str
    event_name: str
    arity: Arity
    event_type: NativeType
    result_type: NativeType

    @property
    def is_batch(self) -> bool:
        return self.arity is Arity.BATCH


@dataclass(frozen=True)
class MappingEntry:
    """Associates a native type with its generated Python name"""
    type: NativeType
    name: str
    skip_fields: tuple[str, ...] = ()


@dataclass
class Schema:
    """Complete generator input"""
    protocol: list[MappingEntry] = field(default_factory=list)
    domain: list[MappingEntry] = field(default_factory=list)
    operations: list[Operation] = field(default_factory=list)
