"""TigerBeetle state machine schema: accounts, transfers and their queries"""

from . import protocol
from .types import (
    Arity, Array, Bool, Enum, EnumValue, Field, Int, Layout, MappingEntry,
    Operation, Schema, Struct, Void,
)

u8 = Int(8)
u16 = Int(16)
u32 = Int(32)
u64 = Int(64)
u128 = Int(128)


def _flags(name: str, flags: list[str], padding: int) -> Struct:
    fields = [Field(flag, Bool()) for flag in flags]
    fields.append(Field("padding", Int(padding), is_reserved=True))
    return Struct(name, Layout.PACKED, fields)


def _result(name: str, values: list[tuple[str, int]]) -> Enum:
    return Enum(name, u32, [EnumValue(n, v) for n, v in values])


ACCOUNT_FLAGS = _flags("AccountFlags", [
    "linked",
    "debits_must_not_exceed_credits",
    "credits_must_not_exceed_debits",
    "history",
    "imported",
    "closed",
], padding=10)

TRANSFER_FLAGS = _flags("TransferFlags", [
    "linked",
    "pending",
    "post_pending_transfer",
    "void_pending_transfer",
    "balancing_debit",
    "balancing_credit",
    "closing_debit",
    "closing_credit",
    "imported",
], padding=7)

ACCOUNT_FILTER_FLAGS = _flags("AccountFilterFlags", ["debits", "credits", "reversed"], padding=29)

QUERY_FILTER_FLAGS = _flags("QueryFilterFlags", ["reversed"], padding=31)

ACCOUNT = Struct("Account", Layout.EXTERN, [
    Field("id", u128),
    Field("debits_pending", u128),
    Field("debits_posted", u128),
    Field("credits_pending", u128),
    Field("credits_posted", u128),
    Field("user_data_128", u128),
    Field("user_data_64", u64),
    Field("user_data_32", u32),
    Field("reserved", u32, is_reserved=True),
    Field("ledger", u32),
    Field("code", u16),
    Field("flags", ACCOUNT_FLAGS),
    Field("timestamp", u64),
])

TRANSFER = Struct("Transfer", Layout.EXTERN, [
    Field("id", u128),
    Field("debit_account_id", u128),
    Field("credit_account_id", u128),
    Field("amount", u128),
    Field("pending_id", u128),
    Field("user_data_128", u128),
    Field("user_data_64", u64),
    Field("user_data_32", u32),
    Field("timeout", u32),
    Field("ledger", u32),
    Field("code", u16),
    Field("flags", TRANSFER_FLAGS),
    Field("timestamp", u64),
])

CREATE_ACCOUNT_RESULT = _result("CreateAccountResult", [
    ("ok", 0),
    ("linked_event_failed", 1),
    ("linked_event_chain_open", 2),
    ("imported_event_expected", 22),
    ("imported_event_not_expected", 23),
    ("timestamp_must_be_zero", 3),
    ("imported_event_timestamp_out_of_range", 24),
    ("imported_event_timestamp_must_not_advance", 25),
    ("reserved_field", 4),
    ("reserved_flag", 5),
    ("id_must_not_be_zero", 6),
    ("id_must_not_be_int_max", 7),
    ("exists_with_different_flags", 15),
    ("exists_with_different_user_data_128", 16),
    ("exists_with_different_user_data_64", 17),
    ("exists_with_different_user_data_32", 18),
    ("exists_with_different_ledger", 19),
    ("exists_with_different_code", 20),
    ("exists", 21),
    ("flags_are_mutually_exclusive", 8),
    ("debits_pending_must_be_zero", 9),
    ("debits_posted_must_be_zero", 10),
    ("credits_pending_must_be_zero", 11),
    ("credits_posted_must_be_zero", 12),
    ("ledger_must_not_be_zero", 13),
    ("code_must_not_be_zero", 14),
    ("imported_event_timestamp_must_not_regress", 26),
])

CREATE_TRANSFER_RESULT = _result("CreateTransferResult", [
    ("ok", 0),
    ("linked_event_failed", 1),
    ("linked_event_chain_open", 2),
    ("timestamp_must_be_zero", 3),
    ("reserved_flag", 4),
    ("id_must_not_be_zero", 5),
    ("id_must_not_be_int_max", 6),
    ("exists_with_different_flags", 36),
    ("exists_with_different_pending_id", 40),
    ("exists_with_different_timeout", 44),
    ("exists_with_different_debit_account_id", 37),
    ("exists_with_different_credit_account_id", 38),
    ("exists_with_different_amount", 39),
    ("exists_with_different_user_data_128", 41),
    ("exists_with_different_user_data_64", 42),
    ("exists_with_different_user_data_32", 43),
    ("exists_with_different_ledger", 67),
    ("exists_with_different_code", 45),
    ("exists", 46),
    ("flags_are_mutually_exclusive", 7),
    ("debit_account_id_must_not_be_zero", 8),
    ("debit_account_id_must_not_be_int_max", 9),
    ("credit_account_id_must_not_be_zero", 10),
    ("credit_account_id_must_not_be_int_max", 11),
    ("accounts_must_be_different", 12),
    ("pending_id_must_be_zero", 13),
    ("pending_id_must_not_be_zero", 14),
    ("pending_id_must_not_be_int_max", 15),
    ("pending_id_must_be_different", 16),
    ("timeout_reserved_for_pending_transfer", 17),
    ("ledger_must_not_be_zero", 19),
    ("code_must_not_be_zero", 20),
    ("debit_account_not_found", 21),
    ("credit_account_not_found", 22),
    ("accounts_must_have_the_same_ledger", 23),
    ("transfer_must_have_the_same_ledger_as_accounts", 24),
    ("pending_transfer_not_found", 25),
    ("pending_transfer_not_pending", 26),
    ("pending_transfer_has_different_debit_account_id", 27),
    ("pending_transfer_has_different_credit_account_id", 28),
    ("pending_transfer_has_different_ledger", 29),
    ("pending_transfer_has_different_code", 30),
    ("exceeds_pending_transfer_amount", 31),
    ("pending_transfer_has_different_amount", 32),
    ("pending_transfer_already_posted", 33),
    ("pending_transfer_already_voided", 34),
    ("pending_transfer_expired", 35),
    ("overflows_debits_pending", 47),
    ("overflows_credits_pending", 48),
    ("overflows_debits_posted", 49),
    ("overflows_credits_posted", 50),
    ("overflows_debits", 51),
    ("overflows_credits", 52),
    ("overflows_timeout", 53),
    ("exceeds_credits", 54),
    ("exceeds_debits", 55),
])

CREATE_ACCOUNTS_RESULT = Struct("CreateAccountsResult", Layout.EXTERN, [
    Field("index", u32),
    Field("result", CREATE_ACCOUNT_RESULT),
])

CREATE_TRANSFERS_RESULT = Struct("CreateTransfersResult", Layout.EXTERN, [
    Field("index", u32),
    Field("result", CREATE_TRANSFER_RESULT),
])

ACCOUNT_FILTER = Struct("AccountFilter", Layout.EXTERN, [
    Field("account_id", u128),
    Field("user_data_128", u128),
    Field("user_data_64", u64),
    Field("user_data_32", u32),
    Field("code", u16),
    Field("reserved", Array(u8, 58), is_reserved=True),
    Field("timestamp_min", u64),
    Field("timestamp_max", u64),
    Field("limit", u32),
    Field("flags", ACCOUNT_FILTER_FLAGS),
])

ACCOUNT_BALANCE = Struct("AccountBalance", Layout.EXTERN, [
    Field("debits_pending", u128),
    Field("debits_posted", u128),
    Field("credits_pending", u128),
    Field("credits_posted", u128),
    Field("timestamp", u64),
    Field("reserved", Array(u8, 56), is_reserved=True),
])

QUERY_FILTER = Struct("QueryFilter", Layout.EXTERN, [
    Field("user_data_128", u128),
    Field("user_data_64", u64),
    Field("user_data_32", u32),
    Field("ledger", u32),
    Field("code", u16),
    Field("reserved", Array(u8, 6), is_reserved=True),
    Field("timestamp_min", u64),
    Field("timestamp_max", u64),
    Field("limit", u32),
    Field("flags", QUERY_FILTER_FLAGS),
])

# Domain mappings: in future, these should be derived from the state machine.
DOMAIN_MAPPINGS = [
    MappingEntry(ACCOUNT_FLAGS, "AccountFlags"),
    MappingEntry(TRANSFER_FLAGS, "TransferFlags"),
    MappingEntry(ACCOUNT_FILTER_FLAGS, "AccountFilterFlags"),
    MappingEntry(QUERY_FILTER_FLAGS, "QueryFilterFlags"),
    MappingEntry(ACCOUNT, "Account"),
    MappingEntry(TRANSFER, "Transfer"),
    MappingEntry(CREATE_ACCOUNT_RESULT, "CreateAccountResult"),
    MappingEntry(CREATE_TRANSFER_RESULT, "CreateTransferResult"),
    MappingEntry(CREATE_ACCOUNTS_RESULT, "CreateAccountsResult"),
    MappingEntry(CREATE_TRANSFERS_RESULT, "CreateTransfersResult"),
    MappingEntry(ACCOUNT_FILTER, "AccountFilter"),
    MappingEntry(ACCOUNT_BALANCE, "AccountBalance"),
    MappingEntry(QUERY_FILTER, "QueryFilter"),
]

OPERATIONS = [
    Operation("pulse", "pulse", Arity.BATCH, Void(), Void()),
    Operation("create_accounts", "accounts", Arity.BATCH, ACCOUNT, CREATE_ACCOUNTS_RESULT),
    Operation("create_transfers", "transfers", Arity.BATCH, TRANSFER, CREATE_TRANSFERS_RESULT),
    Operation("lookup_accounts", "accounts", Arity.BATCH, u128, ACCOUNT),
    Operation("lookup_transfers", "transfers", Arity.BATCH, u128, TRANSFER),
    Operation("get_account_transfers", "filter", Arity.SINGLE, ACCOUNT_FILTER, TRANSFER),
    Operation("get_account_balances", "filter", Arity.SINGLE, ACCOUNT_FILTER, ACCOUNT_BALANCE),
    Operation("query_accounts", "query_filter", Arity.SINGLE, QUERY_FILTER, ACCOUNT),
    Operation("query_transfers", "query_filter", Arity.SINGLE, QUERY_FILTER, TRANSFER),
]


def schema() -> Schema:
    """Schema for the TigerBeetle client bindings"""
    return Schema(
        protocol=protocol.mappings(OPERATIONS),
        domain=list(DOMAIN_MAPPINGS),
        operations=list(OPERATIONS),
    )
