"""Client protocol types shared by every state machine.

These mirror the `tb_client` C header: they are the same for every domain
and are never exposed as value-level types.
"""

from .types import (
    Array, Bool, Enum, EnumValue, Field, Int, Layout, MappingEntry, Nullable,
    Opaque, Operation, Pointer, Struct,
)

# Operation codes below this belong to the replication protocol
OPERATIONS_RESERVED = 128

# Replication-level operations, hidden from the generated Operation enum
RESERVED_OPERATIONS = ("reserved", "root", "register")

OPERATION_ENUM = "tb_operation_t"

OPERATION_NAME = "Operation"
PACKET_STATUS_NAME = "PacketStatus"
PACKET_NAME = "Packet"
CLIENT_NAME = "Client"
STATUS_NAME = "Status"

u8 = Int(8)
u32 = Int(32)

PACKET_STATUS = Enum("tb_packet_status_t", u8, [
    EnumValue("ok", 0),
    EnumValue("too_much_data", 1),
    EnumValue("client_evicted", 2),
    EnumValue("client_release_too_low", 3),
    EnumValue("client_release_too_high", 4),
    EnumValue("client_shutdown", 5),
    EnumValue("invalid_operation", 6),
    EnumValue("invalid_data_size", 7),
])

STATUS = Enum("tb_status_t", u32, [
    EnumValue("success", 0),
    EnumValue("unexpected", 1),
    EnumValue("out_of_memory", 2),
    EnumValue("address_invalid", 3),
    EnumValue("address_limit_exceeded", 4),
    EnumValue("system_resources", 5),
    EnumValue("network_subsystem", 6),
])

CLIENT = Nullable(Pointer(Opaque()))

PACKET = Struct("tb_packet_t", Layout.EXTERN)
PACKET.fields = [
    Field("next", Nullable(Pointer(PACKET))),
    Field("user_data", Nullable(Pointer(Opaque()))),
    Field("operation", u8),
    Field("status", PACKET_STATUS),
    Field("data_size", u32),
    Field("data", Nullable(Pointer(Opaque()))),
    Field("batch_next", Nullable(Pointer(PACKET))),
    Field("batch_tail", Nullable(Pointer(PACKET))),
    Field("batch_size", u32),
    Field("batch_allowed", Bool()),
    Field("reserved", Array(u8, 7), is_reserved=True),
]


def operation_enum(operations: list[Operation]) -> Enum:
    """Build the wire operation enum for a state machine's operations"""
    values = [EnumValue(name, code) for code, name in enumerate(RESERVED_OPERATIONS)]
    values.extend(
        EnumValue(op.name, OPERATIONS_RESERVED + i) for i, op in enumerate(operations)
    )
    return Enum(OPERATION_ENUM, u8, values)


def mappings(operations: list[Operation]) -> list[MappingEntry]:
    """Protocol mapping table for a state machine's operations"""
    return [
        MappingEntry(operation_enum(operations), OPERATION_NAME, skip_fields=RESERVED_OPERATIONS),
        MappingEntry(PACKET_STATUS, PACKET_STATUS_NAME),
        MappingEntry(PACKET, PACKET_NAME),
        MappingEntry(CLIENT, CLIENT_NAME),
        MappingEntry(STATUS, STATUS_NAME),
    ]
