"""
Contract registry and ABI decoding

Turns the contracts known for a transaction (name -> ABI, address,
labels) into lookup tables keyed by address, function selector and event
topic, and decodes calldata, return data and logs against them.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from eth_abi import decode
from eth_utils import keccak, to_checksum_address, to_hex
from eth_utils.address import is_address

from ..utils.exceptions import ABIDecodeError, ContractRegistryError
from ..utils.logging import get_logger

logger = get_logger('contracts')


class ContractEntry(NamedTuple):
    """A registered contract: its ABI, deployed address and free-form labels."""
    abi: List[Dict[str, Any]]
    address: str
    labels: Tuple[str, ...] = ()


def normalize_address(address: Union[str, bytes]) -> str:
    """Lowercase hex without 0x prefix, for address comparisons."""
    if isinstance(address, (bytes, bytearray)):
        address = to_hex(address)
    addr = str(address).lower()
    if addr.startswith("0x"):
        addr = addr[2:]
    return addr


def format_abi_type(abi_input: Dict[str, Any]) -> str:
    """Format an ABI parameter type, expanding tuples into their component types."""
    abi_type = abi_input['type']
    if abi_type.startswith('tuple'):
        components = abi_input.get('components', [])
        component_types = [format_abi_type(comp) for comp in components]
        # Keep any array suffix, e.g. tuple[] or tuple[2][]
        return f"({','.join(component_types)}){abi_type[len('tuple'):]}"
    return abi_type


def abi_signature(item: Dict[str, Any]) -> str:
    """Canonical signature such as ``transfer(address,uint256)``."""
    input_types = ','.join(format_abi_type(inp) for inp in item.get('inputs', []))
    return f"{item['name']}({input_types})"


def _is_dynamic(abi_type: str) -> bool:
    return abi_type in ('string', 'bytes') or abi_type.endswith(']') or abi_type.startswith('(')


def format_value(value: Any, abi_input: Dict[str, Any]) -> str:
    """Format a decoded value for display according to its ABI parameter."""
    abi_type = abi_input['type']

    if abi_type.endswith(']'):
        base_input = dict(abi_input, type=abi_type[:abi_type.rindex('[')])
        return f"[{', '.join(format_value(item, base_input) for item in value)}]"
    if abi_type == 'tuple':
        components = abi_input.get('components', [])
        if not components:
            return str(value)
        return f"({format_args(list(zip(components, value)))})"
    if abi_type == 'address':
        try:
            return to_checksum_address(value)
        except (TypeError, ValueError):
            return str(value)
    if abi_type.startswith('bytes') and isinstance(value, (bytes, bytearray)):
        return to_hex(value)
    if abi_type == 'string':
        return repr(value)
    return str(value)


def format_args(pairs: Sequence[Tuple[Dict[str, Any], Any]]) -> str:
    """Format (abi_input, value) pairs as ``name: value`` items separated by commas."""
    parts = []
    for abi_input, value in pairs:
        formatted = format_value(value, abi_input)
        name = abi_input.get('name')
        parts.append(f"{name}: {formatted}" if name else formatted)
    return ', '.join(parts)


class ContractABI:
    """
    ABI of one deployed contract, indexed for constant-time lookup.

    Functions are keyed by their 4-byte selector and events by their
    signature topic. Anonymous events have no signature topic and are
    never matched.
    """

    def __init__(self, name: str, abi: Iterable[Dict[str, Any]], address: str,
                 labels: Optional[Iterable[str]] = None):
        self.name = name
        self.address = address
        self.labels = list(labels or [])
        self.functions: Dict[bytes, List[Dict[str, Any]]] = {}
        self.events: Dict[bytes, List[Dict[str, Any]]] = {}

        for item in abi:
            item_type = item.get('type', 'function')
            if item_type not in ('function', 'event'):
                continue
            try:
                signature = abi_signature(item)
            except KeyError as e:
                logger.warning(f"Skipping malformed ABI entry in {name}: missing {e}")
                continue

            digest = keccak(text=signature)
            if item_type == 'function':
                self.functions.setdefault(digest[:4], []).append(item)
            elif not item.get('anonymous', False):
                self.events.setdefault(digest, []).append(item)

        logger.debug(f"Indexed {name}: {len(self.functions)} selectors, {len(self.events)} events")

    def functions_for(self, selector: Optional[bytes]) -> List[Dict[str, Any]]:
        if selector is None:
            return []
        return self.functions.get(bytes(selector), [])

    def events_for(self, topic: Optional[bytes]) -> List[Dict[str, Any]]:
        if topic is None:
            return []
        return self.events.get(bytes(topic), [])

    def _decode(self, params: List[Dict[str, Any]], data: bytes, item: Dict[str, Any]) -> tuple:
        types = [format_abi_type(param) for param in params]
        try:
            return decode(types, bytes(data))
        except Exception as e:
            raise ABIDecodeError(
                f"Could not decode {self.name}::{abi_signature(item)}: {e}",
                contract_name=self.name,
                abi_item=abi_signature(item),
            ) from e

    def decode_input(self, function: Dict[str, Any], calldata: bytes) -> str:
        """Decode the arguments after the selector and format them for display."""
        inputs = function.get('inputs', [])
        values = self._decode(inputs, calldata[4:], function)
        return format_args(list(zip(inputs, values)))

    def decode_output(self, function: Dict[str, Any], output: bytes) -> str:
        """Decode return data and format it for display."""
        outputs = function.get('outputs', [])
        values = self._decode(outputs, output, function)
        return format_args(list(zip(outputs, values)))

    def decode_log(self, event: Dict[str, Any], topics: Sequence[bytes], data: bytes) -> str:
        """
        Decode a log against an event definition and format its fields.

        Indexed fields come from topics[1:], the rest from the data. Indexed
        dynamic values are stored as their hash and are shown as raw hex.
        """
        inputs = event.get('inputs', [])
        indexed = [inp for inp in inputs if inp.get('indexed', False)]
        non_indexed = [inp for inp in inputs if not inp.get('indexed', False)]

        if len(topics) - 1 < len(indexed):
            raise ABIDecodeError(
                f"Could not decode {self.name}::{abi_signature(event)}: expected "
                f"{len(indexed)} indexed topics, got {len(topics) - 1}",
                contract_name=self.name,
                abi_item=abi_signature(event),
            )

        indexed_topics = iter(topics[1:])
        data_values = iter(self._decode(non_indexed, data, event))

        parts = []
        for inp in inputs:
            if not inp.get('indexed', False):
                formatted = format_value(next(data_values), inp)
            else:
                topic = next(indexed_topics)
                if _is_dynamic(format_abi_type(inp)):
                    formatted = to_hex(topic)
                else:
                    value, = self._decode([inp], topic, event)
                    formatted = format_value(value, inp)
            name = inp.get('name')
            parts.append(f"{name}: {formatted}" if name else formatted)
        return ', '.join(parts)


RegistryValue = Union[ContractEntry, ContractABI, Tuple[Any, ...]]


class ContractIndex:
    """
    Address to ContractABI lookup, built once per render pass.

    When several names share an address the first name in sorted order
    wins.
    """

    def __init__(self, contracts: Iterable[ContractABI] = ()):
        self._contracts: Dict[str, ContractABI] = {}
        for contract in contracts:
            key = normalize_address(contract.address)
            if key in self._contracts:
                logger.debug(
                    f"{contract.name} shares address {contract.address} with "
                    f"{self._contracts[key].name}, keeping {self._contracts[key].name}"
                )
                continue
            self._contracts[key] = contract

    @classmethod
    def from_registry(cls, registry: Mapping[str, RegistryValue]) -> "ContractIndex":
        contracts = []
        for name in sorted(registry):
            entry = registry[name]
            if isinstance(entry, ContractABI):
                contracts.append(entry)
                continue
            abi, address, *rest = entry
            labels = rest[0] if rest else []
            contracts.append(ContractABI(name, abi, address, labels))
        return cls(contracts)

    def lookup(self, address: Union[str, bytes]) -> Optional[ContractABI]:
        return self._contracts.get(normalize_address(address))

    def __contains__(self, address) -> bool:
        return self.lookup(address) is not None

    def __len__(self) -> int:
        return len(self._contracts)

    def __iter__(self):
        return iter(self._contracts.values())


def load_abi_file(abi_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Load an ABI from a bare ABI array or a Forge artifact with an ``abi`` key."""
    try:
        with open(abi_path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ContractRegistryError(f"Could not load ABI: {e}", path=str(abi_path)) from e

    if isinstance(data, list):
        return data
    if isinstance(data, dict) and 'abi' in data:
        return data['abi']
    raise ContractRegistryError(f"Unknown ABI format in {abi_path}", path=str(abi_path))


def load_contracts_file(contracts_path: Union[str, Path]) -> Dict[str, ContractEntry]:
    """
    Load a contracts mapping file.

    The file is a JSON object keyed by contract name::

        {"Token": {"address": "0x...", "abi_path": "Token.abi", "labels": ["erc20"]}}

    Each entry carries either an inline ``abi`` or an ``abi_path``
    relative to the mapping file.
    """
    contracts_path = Path(contracts_path)
    try:
        with open(contracts_path, 'r') as f:
            mapping = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ContractRegistryError(f"Could not load contracts mapping file: {e}",
                                    path=str(contracts_path)) from e

    if not isinstance(mapping, dict):
        raise ContractRegistryError("Contracts mapping must be a JSON object keyed by name",
                                    path=str(contracts_path))

    contracts = {}
    for name, entry in mapping.items():
        if not isinstance(entry, dict) or 'address' not in entry:
            raise ContractRegistryError(f"Contract {name} has no address", path=str(contracts_path))

        address = entry['address']
        if not is_address(address):
            raise ContractRegistryError(f"Invalid address for {name}: {address}",
                                        path=str(contracts_path))

        if 'abi' in entry:
            abi = entry['abi']
        elif 'abi_path' in entry:
            abi = load_abi_file(contracts_path.parent / entry['abi_path'])
        else:
            raise ContractRegistryError(f"Contract {name} has neither abi nor abi_path",
                                        path=str(contracts_path))

        contracts[name] = ContractEntry(abi, to_checksum_address(address), list(entry.get('labels', [])))
        logger.debug(f"Loaded contract {name} at {address}")

    return contracts
