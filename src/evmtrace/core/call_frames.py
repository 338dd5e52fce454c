"""
callTracer adapter

Replays the nested call frames returned by a node's
``debug_traceTransaction`` with the built-in ``callTracer`` as the flat
enter/exit event stream CallTraceRecorder consumes.
"""

from typing import Any, Dict, Iterator, List

from web3 import Web3

from ..utils.exceptions import DebugTraceUnavailableError, RPCConnectionError
from ..utils.logging import get_logger

logger = get_logger('call_frames')

CREATION_TYPES = ("CREATE", "CREATE2")

CALL_TRACER_CONFIG = {"tracer": "callTracer", "tracerConfig": {"withLog": True}}


def _exit_event(frame: Dict[str, Any], depth: int) -> Dict[str, Any]:
    return {
        "event": "exit",
        "depth": depth,
        "success": "error" not in frame,
        "output": frame.get("output") or "0x",
        "gas_cost": frame.get("gasUsed", 0),
        "logs": [
            {"topics": log.get("topics", []), "data": log.get("data") or "0x"}
            for log in frame.get("logs", [])
        ],
    }


def events_from_call_frame(frame: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """
    Yield enter/exit events for a callTracer frame and all of its subcalls.

    Frames are visited depth-first; a frame's exit follows the exits of
    all of its subcalls, as it did during execution.
    """
    # (frame, depth, entered) entries; a frame is pushed back once entered
    # so its exit is emitted after its subcalls
    stack = [(frame, 0, False)]
    while stack:
        current, depth, entered = stack.pop()
        if entered:
            yield _exit_event(current, depth)
            continue

        yield {
            "event": "enter",
            "depth": depth,
            "address": current.get("to"),
            "input": current.get("input") or "0x",
            "is_creation": current.get("type", "CALL").upper() in CREATION_TYPES,
        }
        stack.append((current, depth, True))
        for call in reversed(current.get("calls", [])):
            stack.append((call, depth + 1, False))


def count_frames(frame: Dict[str, Any]) -> int:
    """Number of frames in a callTracer result, including the top-level one."""
    total = 0
    stack: List[Dict[str, Any]] = [frame]
    while stack:
        current = stack.pop()
        total += 1
        stack.extend(current.get("calls", []))
    return total


def fetch_call_frame(rpc_url: str, tx_hash: str, timeout: int = 30) -> Dict[str, Any]:
    """
    Fetch the callTracer result of a transaction from a node.

    Raises:
        RPCConnectionError: If the node cannot be reached
        DebugTraceUnavailableError: If the node does not support callTracer traces
    """
    if isinstance(tx_hash, str) and not tx_hash.startswith('0x'):
        tx_hash = '0x' + tx_hash

    logger.debug(f"Connecting to RPC: {rpc_url}")
    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
    try:
        # A direct RPC call is a more reliable connection check than is_connected()
        w3.eth.block_number
    except Exception as e:
        raise RPCConnectionError(f"Failed to connect to {rpc_url}: {e}", rpc_url=rpc_url) from e

    try:
        frame = w3.manager.request_blocking("debug_traceTransaction", [tx_hash, CALL_TRACER_CONFIG])
    except Exception as e:
        raise DebugTraceUnavailableError(tx_hash, reason=str(e)) from e

    if not frame:
        raise DebugTraceUnavailableError(tx_hash, reason="empty trace result")

    frame = dict(frame)
    logger.debug(f"Fetched {count_frames(frame)} call frames for {tx_hash}")
    return frame
