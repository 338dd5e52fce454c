"""
Tests for contract registration and ABI decoding.

Validates:
- Selector and topic indexing from ABI signatures
- Calldata, return data and log decoding
- Decode failures raise ABIDecodeError
- Address lookups across address spellings, and duplicate addresses
- Loading contract mapping files with inline ABIs, ABI files and Forge artifacts
"""

import json

import pytest
from eth_abi import encode

from evmtrace.core.contracts import (
    ContractABI,
    ContractEntry,
    ContractIndex,
    abi_signature,
    format_abi_type,
    format_value,
    load_abi_file,
    load_contracts_file,
    normalize_address,
)
from evmtrace.utils.exceptions import ABIDecodeError, ContractRegistryError

from conftest import (
    BALANCE_OF_SELECTOR,
    HOLDER_ADDRESS,
    SENDER_ADDRESS,
    TOKEN_ABI,
    TOKEN_ADDRESS,
    TOTAL_SUPPLY_SELECTOR,
    TRANSFER_SELECTOR,
    TRANSFER_TOPIC,
    address_topic,
    transfer_calldata,
)


@pytest.fixture
def token():
    return ContractABI("Token", TOKEN_ABI, TOKEN_ADDRESS, ["erc20"])


class TestSignatures:
    """Canonical types and signatures."""

    def test_simple_signature(self):
        assert abi_signature(TOKEN_ABI[0]) == "transfer(address,uint256)"
        assert abi_signature(TOKEN_ABI[1]) == "totalSupply()"

    def test_tuple_type(self):
        param = {
            "type": "tuple[]",
            "components": [
                {"name": "to", "type": "address"},
                {"name": "amounts", "type": "uint256[]"},
            ],
        }
        assert format_abi_type(param) == "(address,uint256[])[]"

    def test_nested_tuple_type(self):
        param = {
            "type": "tuple",
            "components": [
                {"type": "bool"},
                {"type": "tuple", "components": [{"type": "bytes32"}, {"type": "string"}]},
            ],
        }
        assert format_abi_type(param) == "(bool,(bytes32,string))"


class TestContractABI:
    """Selector/topic tables."""

    def test_function_selectors(self, token):
        assert set(token.functions) == {TRANSFER_SELECTOR, TOTAL_SUPPLY_SELECTOR}
        assert token.functions_for(TRANSFER_SELECTOR)[0]["name"] == "transfer"
        assert token.functions_for(BALANCE_OF_SELECTOR) == []
        assert token.functions_for(None) == []

    def test_event_topics(self, token):
        assert TRANSFER_TOPIC in token.events
        assert token.events_for(TRANSFER_TOPIC)[0]["name"] == "Transfer"
        assert token.events_for(None) == []

    def test_anonymous_events_not_indexed(self):
        abi = [{
            "type": "event",
            "name": "Transfer",
            "anonymous": True,
            "inputs": [
                {"name": "from", "type": "address", "indexed": True},
                {"name": "to", "type": "address", "indexed": True},
                {"name": "value", "type": "uint256", "indexed": False},
            ],
        }]
        assert ContractABI("Anon", abi, TOKEN_ADDRESS).events == {}

    def test_malformed_entries_skipped(self):
        abi = [{"type": "function", "inputs": []}, TOKEN_ABI[1]]
        contract = ContractABI("Broken", abi, TOKEN_ADDRESS)
        assert list(contract.functions) == [TOTAL_SUPPLY_SELECTOR]

    def test_overloaded_selectors_kept(self):
        abi = [TOKEN_ABI[1], dict(TOKEN_ABI[1], stateMutability="nonpayable")]
        contract = ContractABI("Twice", abi, TOKEN_ADDRESS)
        assert len(contract.functions_for(TOTAL_SUPPLY_SELECTOR)) == 2


class TestDecoding:
    """Calldata, return data and logs."""

    def test_decode_input(self, token):
        function = token.functions_for(TRANSFER_SELECTOR)[0]
        args = token.decode_input(function, transfer_calldata(HOLDER_ADDRESS, 100))
        assert args == f"to: {HOLDER_ADDRESS}, amount: 100"

    def test_decode_input_no_args(self, token):
        function = token.functions_for(TOTAL_SUPPLY_SELECTOR)[0]
        assert token.decode_input(function, TOTAL_SUPPLY_SELECTOR) == ""

    def test_decode_output(self, token):
        function = token.functions_for(TRANSFER_SELECTOR)[0]
        assert token.decode_output(function, encode(["bool"], [True])) == "True"

    def test_truncated_calldata(self, token):
        function = token.functions_for(TRANSFER_SELECTOR)[0]
        with pytest.raises(ABIDecodeError) as exc_info:
            token.decode_input(function, TRANSFER_SELECTOR + b"\x00" * 10)
        assert exc_info.value.details["contract_name"] == "Token"
        assert exc_info.value.details["abi_item"] == "transfer(address,uint256)"

    def test_decode_log(self, token):
        event = token.events_for(TRANSFER_TOPIC)[0]
        topics = [TRANSFER_TOPIC, address_topic(SENDER_ADDRESS), address_topic(HOLDER_ADDRESS)]
        fields = token.decode_log(event, topics, encode(["uint256"], [100]))
        assert fields == f"from: {SENDER_ADDRESS}, to: {HOLDER_ADDRESS}, value: 100"

    def test_decode_log_indexed_dynamic_shown_as_hash(self, token):
        memo = [item for item in TOKEN_ABI if item.get("name") == "Memo"][0]
        topic_hash = b"\xab" * 32
        fields = token.decode_log(memo, [b"\x00" * 32, topic_hash], encode(["bytes"], [b"\x01\x02"]))
        assert fields == f"note: 0x{'ab' * 32}, data: 0x0102"

    def test_decode_log_missing_topics(self, token):
        event = token.events_for(TRANSFER_TOPIC)[0]
        with pytest.raises(ABIDecodeError):
            token.decode_log(event, [TRANSFER_TOPIC], encode(["uint256"], [1]))

    def test_decode_log_bad_data(self, token):
        event = token.events_for(TRANSFER_TOPIC)[0]
        topics = [TRANSFER_TOPIC, address_topic(SENDER_ADDRESS), address_topic(HOLDER_ADDRESS)]
        with pytest.raises(ABIDecodeError):
            token.decode_log(event, topics, b"\x01")


class TestFormatValue:
    """Display formatting of decoded values."""

    def test_address_checksummed(self):
        value = "0x000000000000000000000000000000000000dead"
        assert format_value(value, {"type": "address"}) == "0x000000000000000000000000000000000000dEaD"

    def test_bytes(self):
        assert format_value(b"\x12\x34", {"type": "bytes"}) == "0x1234"
        assert format_value(b"\x00" * 4, {"type": "bytes4"}) == "0x00000000"

    def test_string(self):
        assert format_value("hi", {"type": "string"}) == "'hi'"

    def test_array(self):
        assert format_value((1, 2, 3), {"type": "uint256[]"}) == "[1, 2, 3]"

    def test_tuple(self):
        param = {
            "type": "tuple",
            "components": [{"name": "ok", "type": "bool"}, {"name": "count", "type": "uint8"}],
        }
        assert format_value((True, 7), param) == "(ok: True, count: 7)"


class TestContractIndex:
    """Address lookups."""

    def test_lookup_any_spelling(self, contracts):
        index = ContractIndex.from_registry(contracts)
        assert len(index) == 1
        assert index.lookup(TOKEN_ADDRESS).name == "Token"
        assert index.lookup(TOKEN_ADDRESS[2:]).name == "Token"
        assert index.lookup(bytes.fromhex(TOKEN_ADDRESS[2:])).name == "Token"
        assert TOKEN_ADDRESS in index
        assert HOLDER_ADDRESS not in index

    def test_labels_kept(self, contracts):
        index = ContractIndex.from_registry(contracts)
        assert index.lookup(TOKEN_ADDRESS).labels == ["erc20"]

    def test_default_labels_not_shared(self):
        first = ContractIndex.from_registry({"Token": ContractEntry(TOKEN_ABI, TOKEN_ADDRESS)})
        first.lookup(TOKEN_ADDRESS).labels.append("mutated")

        assert ContractEntry(TOKEN_ABI, TOKEN_ADDRESS).labels == ()
        second = ContractIndex.from_registry({"Token": ContractEntry(TOKEN_ABI, TOKEN_ADDRESS)})
        assert second.lookup(TOKEN_ADDRESS).labels == []

    def test_plain_tuples(self):
        index = ContractIndex.from_registry({"Token": (TOKEN_ABI, TOKEN_ADDRESS)})
        assert index.lookup(TOKEN_ADDRESS).labels == []

    def test_duplicate_address_first_name_wins(self):
        index = ContractIndex.from_registry({
            "Proxy": ContractEntry(TOKEN_ABI[:1], TOKEN_ADDRESS),
            "Impl": ContractEntry(TOKEN_ABI, TOKEN_ADDRESS),
        })
        assert len(index) == 1
        assert index.lookup(TOKEN_ADDRESS).name == "Impl"

    def test_prebuilt_contracts(self, token):
        index = ContractIndex.from_registry({"ignored": token})
        assert list(index) == [token]

    def test_normalize_address(self):
        assert normalize_address("0xABCdef") == "abcdef"
        assert normalize_address(b"\xab") == "ab"


class TestLoadContractsFile:
    """Contract mapping files."""

    def write(self, path, data):
        path.write_text(json.dumps(data))
        return path

    def test_abi_path(self, tmp_path):
        self.write(tmp_path / "Token.abi", TOKEN_ABI)
        mapping = self.write(tmp_path / "contracts.json", {
            "Token": {"address": TOKEN_ADDRESS, "abi_path": "Token.abi", "labels": ["erc20"]},
        })
        contracts = load_contracts_file(mapping)
        assert contracts["Token"].address == TOKEN_ADDRESS
        assert contracts["Token"].abi == TOKEN_ABI
        assert contracts["Token"].labels == ["erc20"]

    def test_inline_abi_and_checksum(self, tmp_path):
        mapping = self.write(tmp_path / "contracts.json", {
            "Dead": {"address": "0x000000000000000000000000000000000000dead", "abi": []},
        })
        contracts = load_contracts_file(str(mapping))
        assert contracts["Dead"].address == "0x000000000000000000000000000000000000dEaD"
        assert contracts["Dead"].labels == []

    def test_forge_artifact(self, tmp_path):
        artifact = self.write(tmp_path / "Token.json", {"abi": TOKEN_ABI, "bytecode": {"object": "0x"}})
        assert load_abi_file(artifact) == TOKEN_ABI

    def test_unknown_abi_format(self, tmp_path):
        artifact = self.write(tmp_path / "Token.json", {"bytecode": "0x"})
        with pytest.raises(ContractRegistryError):
            load_abi_file(artifact)

    def test_missing_abi_file(self, tmp_path):
        mapping = self.write(tmp_path / "contracts.json", {
            "Token": {"address": TOKEN_ADDRESS, "abi_path": "missing.abi"},
        })
        with pytest.raises(ContractRegistryError):
            load_contracts_file(mapping)

    @pytest.mark.parametrize("data", [
        [],
        {"Token": {"abi": []}},
        {"Token": {"address": "0x1234", "abi": []}},
        {"Token": {"address": TOKEN_ADDRESS}},
    ])
    def test_invalid_mapping(self, tmp_path, data):
        mapping = self.write(tmp_path / "contracts.json", data)
        with pytest.raises(ContractRegistryError):
            load_contracts_file(mapping)

    def test_missing_mapping_file(self, tmp_path):
        with pytest.raises(ContractRegistryError) as exc_info:
            load_contracts_file(tmp_path / "nope.json")
        assert exc_info.value.details["path"].endswith("nope.json")
