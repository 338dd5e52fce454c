"""
Shared fixtures for the evmtrace test suite.
"""

import logging

import pytest
from eth_abi import encode

from evmtrace.core.contracts import ContractEntry
from evmtrace.utils.colors import Colors

TOKEN_ADDRESS = "0x1111111111111111111111111111111111111111"
HOLDER_ADDRESS = "0x2222222222222222222222222222222222222222"
OTHER_ADDRESS = "0x3333333333333333333333333333333333333333"
SENDER_ADDRESS = "0x4444444444444444444444444444444444444444"

TRANSFER_SELECTOR = bytes.fromhex("a9059cbb")
TOTAL_SUPPLY_SELECTOR = bytes.fromhex("18160ddd")
BALANCE_OF_SELECTOR = bytes.fromhex("70a08231")
TRANSFER_TOPIC = bytes.fromhex("ddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef")

TOKEN_ABI = [
    {
        "type": "function",
        "name": "transfer",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "totalSupply",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Memo",
        "anonymous": False,
        "inputs": [
            {"name": "note", "type": "string", "indexed": True},
            {"name": "data", "type": "bytes", "indexed": False},
        ],
    },
    {"type": "constructor", "inputs": [{"name": "supply", "type": "uint256"}]},
]


def address_topic(address: str) -> bytes:
    return encode(["address"], [address])


def transfer_calldata(to: str = HOLDER_ADDRESS, amount: int = 100) -> bytes:
    return TRANSFER_SELECTOR + encode(["address", "uint256"], [to, amount])


def transfer_log_dict(sender: str = SENDER_ADDRESS, to: str = HOLDER_ADDRESS, value: int = 100) -> dict:
    return {
        "topics": [
            "0x" + TRANSFER_TOPIC.hex(),
            "0x" + address_topic(sender).hex(),
            "0x" + address_topic(to).hex(),
        ],
        "data": "0x" + encode(["uint256"], [value]).hex(),
    }


@pytest.fixture(autouse=True)
def reset_output_state():
    """Undo global color and logger changes made by CLI runs."""
    colors_on = Colors.RESET != ''
    yield
    if colors_on:
        Colors.enable()
    else:
        Colors.disable()
    root = logging.getLogger('evmtrace')
    root.handlers.clear()
    root.propagate = True
    root.setLevel(logging.NOTSET)


@pytest.fixture
def colors_enabled():
    Colors.enable()
    if Colors.RESET == '':
        pytest.skip("ANSI codes unavailable")
    yield


@pytest.fixture
def token_abi():
    return TOKEN_ABI


@pytest.fixture
def contracts():
    return {"Token": ContractEntry(TOKEN_ABI, TOKEN_ADDRESS, ["erc20"])}
