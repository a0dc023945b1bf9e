"""Type mapping from native schema types to ctypes and Python types"""

from .registry import MappingRegistry
from .types import (
    Array, Bool, Enum, GenerationError, Int, NativeType, Nullable, Opaque,
    Pointer, Struct, Void,
)


class TypeMapper:
    """Lowers native types into ctypes expressions and Python annotations"""

    # Unsigned integer widths supported across the FFI boundary
    CTYPES_UINT = {
        8: 'ctypes.c_uint8',
        16: 'ctypes.c_uint16',
        32: 'ctypes.c_uint32',
        64: 'ctypes.c_uint64',
        128: 'c_uint128',
    }

    UINT128 = Int(128)

    def __init__(self, registry: MappingRegistry, struct_prefix: str = 'C'):
        self.registry = registry
        self.struct_prefix = struct_prefix

    def to_ctypes(self, native_type: NativeType) -> str:
        """Convert a native type to a ctypes type expression.

        Resolves both protocol and domain mappings, as both are needed when
        interfacing via FFI.
        """
        if isinstance(native_type, Array):
            return f'{self.to_ctypes(native_type.child)} * {native_type.length}'

        if isinstance(native_type, Enum):
            return self.to_ctypes(native_type.tag)

        if isinstance(native_type, Struct) and native_type.is_packed:
            # Packed structs cross the FFI boundary as a raw integer
            return self.to_ctypes(Int(native_type.bit_size))

        if isinstance(native_type, Bool):
            return 'ctypes.c_bool'

        if isinstance(native_type, Int):
            return self.CTYPES_UINT[self._check_uint(native_type)]

        if isinstance(native_type, Nullable):
            if not isinstance(native_type.child, Pointer):
                raise GenerationError(f'unsupported optional type: {native_type}')
            return self.to_ctypes(native_type.child)

        if isinstance(native_type, Pointer):
            if isinstance(native_type.child, Opaque):
                return 'ctypes.c_void_p'
            return f'ctypes.POINTER({self.struct_name(native_type.child)})'

        if isinstance(native_type, Void):
            return 'None'

        raise GenerationError(f'unhandled type: {native_type}')

    def to_python(self, native_type: NativeType) -> str:
        """Convert a native type to a Python type annotation.

        Only domain mappings are consulted: protocol types are internal to
        the client and never exposed to calling code.
        """
        if isinstance(native_type, (Enum, Struct)):
            return self.registry.domain_name_of(native_type)

        if isinstance(native_type, Array):
            inner = self.to_python(native_type.child)
            return f"tuple[{', '.join([inner] * native_type.length)}]"

        if isinstance(native_type, Bool):
            return 'bool'

        if isinstance(native_type, Int):
            self._check_uint(native_type)
            return 'int'

        if isinstance(native_type, Void):
            return 'None'

        raise GenerationError(f'unhandled type: {native_type}')

    def struct_name(self, native_type: NativeType) -> str:
        """Name of the ctypes class standing for a native type"""
        if native_type == self.UINT128:
            return 'c_uint128'
        return self.struct_prefix + self.registry.name_of(native_type)

    def default_value(self, native_type: NativeType) -> str:
        """Zero value expression for a dataclass field"""
        if isinstance(native_type, Struct):
            if native_type.is_packed:
                return f'{self.to_python(native_type)}.NONE'
            raise GenerationError(f'nested struct has no default value: {native_type}')

        if isinstance(native_type, Array):
            return f'({self.default_value(native_type.child)},) * {native_type.length}'

        if isinstance(native_type, Bool):
            return 'False'

        if isinstance(native_type, (Int, Enum)):
            return '0'

        raise GenerationError(f'unhandled type: {native_type}')

    @classmethod
    def is_uint128(cls, native_type: NativeType) -> bool:
        return native_type == cls.UINT128

    @classmethod
    def _check_uint(cls, native_type: Int) -> int:
        if native_type.signed:
            raise GenerationError(f'signed integers are not supported: {native_type}')
        if native_type.bits not in cls.CTYPES_UINT:
            raise GenerationError(f'invalid int type: {native_type}')
        return native_type.bits
