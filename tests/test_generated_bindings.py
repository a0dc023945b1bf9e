"""Tests that import the generated TigerBeetle bindings and exercise them"""

import asyncio
import ctypes
import dataclasses
import inspect

import pytest

from conftest import domain_schema

from clientgen import Array, Field, Int, Layout, MappingEntry, PythonGenerator, Struct, tigerbeetle

DOMAIN_STRUCTS = [
    (entry.name, entry.type)
    for entry in tigerbeetle.DOMAIN_MAPPINGS
    if isinstance(entry.type, Struct) and entry.type.is_extern
]

# (struct name, field name, bits) for every non-reserved integer field
INT_FIELDS = [
    (name, field.name, field.type.bits)
    for name, struct in DOMAIN_STRUCTS
    for field in struct.fields
    if isinstance(field.type, Int) and not field.is_reserved
]


class TestLayout:

    @pytest.mark.parametrize("name, struct", DOMAIN_STRUCTS)
    def test_fields_match_declaration_order(self, bindings, name, struct):
        c_struct = getattr(bindings, f"C{name}")
        assert [f[0] for f in c_struct._fields_] == [f.name for f in struct.fields]

    @pytest.mark.parametrize("name, size", [
        ("Account", 128),
        ("Transfer", 128),
        ("AccountFilter", 128),
        ("AccountBalance", 128),
        ("QueryFilter", 64),
        ("CreateAccountsResult", 8),
        ("CreateTransfersResult", 8),
    ])
    def test_struct_sizes(self, bindings, name, size):
        assert ctypes.sizeof(getattr(bindings, f"C{name}")) == size

    def test_reserved_fields_not_in_dataclass(self, bindings):
        names = [f.name for f in dataclasses.fields(bindings.Account)]
        assert "reserved" not in names
        assert names[:2] == ["id", "debits_pending"]


class TestEnums:

    def test_enum_values_match_discriminants(self, bindings):
        for value in tigerbeetle.CREATE_ACCOUNT_RESULT.values:
            assert bindings.CreateAccountResult[value.name.upper()] == value.value

    def test_flag_bits_follow_declaration_index(self, bindings):
        assert bindings.TransferFlags.NONE == 0
        assert bindings.TransferFlags.LINKED == 1
        assert bindings.TransferFlags.PENDING == 2
        assert bindings.TransferFlags.IMPORTED == 1 << 8
        assert not hasattr(bindings.TransferFlags, "PADDING")

    def test_operation_codes(self, bindings):
        assert bindings.Operation.CREATE_ACCOUNTS == 129
        assert not hasattr(bindings.Operation, "REGISTER")


class TestBoundsValidation:

    @pytest.mark.parametrize("name, field, bits", INT_FIELDS)
    def test_max_value_accepted(self, bindings, name, field, bits):
        record = dataclasses.replace(getattr(bindings, name)(), **{field: 2 ** bits - 1})
        c_struct = getattr(bindings, f"C{name}").from_param(record)
        assert c_struct.to_python() == record

    @pytest.mark.parametrize("name, field, bits", INT_FIELDS)
    def test_overflow_rejected(self, bindings, name, field, bits):
        record = dataclasses.replace(getattr(bindings, name)(), **{field: 2 ** bits})
        with pytest.raises(ValueError, match=field if bits < 128 else "uint128"):
            getattr(bindings, f"C{name}").from_param(record)

    def test_negative_rejected(self, bindings):
        with pytest.raises(ValueError, match="ledger"):
            bindings.CAccount.from_param(bindings.Account(ledger=-1))


class TestRoundTrip:

    def test_account(self, bindings):
        account = bindings.Account(
            id=2 ** 127 + 5,
            debits_pending=1,
            debits_posted=2,
            credits_pending=3,
            credits_posted=4,
            user_data_128=2 ** 100,
            user_data_64=2 ** 63,
            user_data_32=7,
            ledger=700,
            code=10,
            flags=bindings.AccountFlags.LINKED | bindings.AccountFlags.HISTORY,
            timestamp=123456789,
        )
        assert bindings.CAccount.from_param(account).to_python() == account

    def test_transfer(self, bindings):
        transfer = bindings.Transfer(
            id=1,
            debit_account_id=2,
            credit_account_id=3,
            amount=2 ** 128 - 1,
            pending_id=0,
            timeout=60,
            ledger=1,
            code=1,
            flags=bindings.TransferFlags.PENDING,
        )
        assert bindings.CTransfer.from_param(transfer).to_python() == transfer

    def test_result_enum_is_restored(self, bindings):
        result = bindings.CreateAccountsResult(index=3, result=bindings.CreateAccountResult.EXISTS)
        converted = bindings.CCreateAccountsResult.from_param(result).to_python()
        assert converted == result
        assert converted.result is bindings.CreateAccountResult.EXISTS

    def test_defaults(self, bindings):
        account_filter = bindings.AccountFilter()
        assert account_filter.flags is bindings.AccountFilterFlags.NONE
        assert account_filter.limit == 0


class FakeClient:
    def __init__(self):
        self.calls = []

    def _submit(self, operation, events, event_type, result_type):
        self.calls.append((operation, events, event_type, result_type))
        return []


class TestMethods:

    def test_batch_operation_passes_list(self, bindings):
        client = type("Client", (bindings.StateMachineMixin, FakeClient), {})()
        accounts = [bindings.Account(id=1), bindings.Account(id=2)]
        assert client.create_accounts(accounts) == []
        assert client.calls == [
            (bindings.Operation.CREATE_ACCOUNTS, accounts, bindings.CAccount, bindings.CCreateAccountsResult),
        ]

    def test_single_operation_wraps_event(self, bindings):
        client = type("Client", (bindings.StateMachineMixin, FakeClient), {})()
        query = bindings.QueryFilter(limit=10)
        client.query_accounts(query)
        operation, events, event_type, result_type = client.calls[0]
        assert operation == bindings.Operation.QUERY_ACCOUNTS
        assert events == [query]
        assert event_type is bindings.CQueryFilter
        assert result_type is bindings.CAccount

    def test_async_variant(self, bindings):
        calls = []

        class AsyncClient(bindings.AsyncStateMachineMixin):
            async def _submit(self, operation, events, event_type, result_type):
                calls.append((operation, events, event_type, result_type))
                return ["done"]

        client = AsyncClient()
        assert inspect.iscoroutinefunction(AsyncClient.lookup_transfers)
        assert asyncio.run(client.lookup_transfers([1, 2])) == ["done"]
        assert calls == [(bindings.Operation.LOOKUP_TRANSFERS, [1, 2], bindings.c_uint128, bindings.CTransfer)]

    def test_variants_share_signatures(self, bindings):
        for operation in tigerbeetle.OPERATIONS:
            if operation.name == "pulse":
                assert not hasattr(bindings.StateMachineMixin, "pulse")
                continue
            sync = getattr(bindings.StateMachineMixin, operation.name)
            async_ = getattr(bindings.AsyncStateMachineMixin, operation.name)
            assert sync.__annotations__ == async_.__annotations__


class TestNativeDeclarations:

    def test_library_functions_configured(self, bindings):
        assert bindings.tb_client_init.restype is bindings.Status
        assert bindings.tb_client_init_echo.argtypes[-1] is bindings.OnCompletion
        assert bindings.tb_client_deinit.argtypes == [bindings.Client]


class TestCustomSchema:

    @pytest.fixture
    def digest_bindings(self, load_bindings):
        digest = Struct("digest_t", Layout.EXTERN, [
            Field("bytes", Array(Int(8), 3)),
            Field("reserved", Array(Int(8), 5), is_reserved=True),
        ])
        return load_bindings(PythonGenerator(domain_schema(MappingEntry(digest, "Digest"))).generate())

    def test_domain_schema_imports(self, small_schema, load_bindings):
        module = load_bindings(PythonGenerator(small_schema).generate())
        record = module.Record(id=7, amount=1, code=2, flags=module.Flags.PENDING)
        assert module.CRecord.from_param(record).to_python() == record
        assert module.tb_client_deinit.argtypes == [module.Client]

    def test_array_elements_round_trip(self, digest_bindings):
        digest = digest_bindings.Digest(bytes=(1, 2, 255))
        assert digest_bindings.CDigest.from_param(digest).to_python() == digest

    @pytest.mark.parametrize("value", [256, -1])
    def test_array_element_out_of_range(self, digest_bindings, value):
        with pytest.raises(ValueError, match=r"bytes\[2\]"):
            digest_bindings.CDigest.from_param(digest_bindings.Digest(bytes=(1, 2, value)))
