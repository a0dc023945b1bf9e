"""Lookup tables from native types to generated Python names"""

from typing import Optional

from .types import GenerationError, MappingEntry, NativeType


class MappingRegistry:
    """Protocol and domain mapping tables, searched in that order.

    Protocol mappings are internal to the client and only exposed through
    ctypes. Domain mappings additionally get value-level dataclasses and
    appear in method signatures.
    """

    def __init__(self, protocol: list[MappingEntry], domain: list[MappingEntry]):
        self.protocol = list(protocol)
        self.domain = list(domain)
        self._validate()

    @property
    def all(self) -> list[MappingEntry]:
        return self.protocol + self.domain

    def _validate(self):
        for table_name, table in (("protocol", self.protocol), ("domain", self.domain)):
            seen = set()
            for entry in table:
                if entry.type in seen:
                    raise GenerationError(
                        f"duplicate {table_name} mapping for native type {entry.type}"
                    )
                seen.add(entry.type)

        for entry in self.domain:
            if _find(self.protocol, entry.type) is not None:
                raise GenerationError(
                    f"native type {entry.type} is mapped in both protocol and domain tables"
                )

        names = {}
        for entry in self.all:
            if entry.name in names:
                raise GenerationError(
                    f"mapping name {entry.name!r} used for both {names[entry.name]} and {entry.type}"
                )
            names[entry.name] = entry.type

    def lookup(self, native_type: NativeType) -> Optional[str]:
        """Name of a type in either table, or None"""
        entry = _find(self.protocol, native_type) or _find(self.domain, native_type)
        return entry.name if entry else None

    def lookup_domain(self, native_type: NativeType) -> Optional[str]:
        entry = _find(self.domain, native_type)
        return entry.name if entry else None

    def name_of(self, native_type: NativeType) -> str:
        name = self.lookup(native_type)
        if name is None:
            raise GenerationError(f"no mapping for native type {native_type}")
        return name

    def domain_name_of(self, native_type: NativeType) -> str:
        name = self.lookup_domain(native_type)
        if name is None:
            raise GenerationError(f"no domain mapping for native type {native_type}")
        return name

    def is_domain(self, native_type: NativeType) -> bool:
        return _find(self.domain, native_type) is not None


def _find(table: list[MappingEntry], native_type: NativeType) -> Optional[MappingEntry]:
    for entry in table:
        if entry.type == native_type:
            return entry
    return None
