"""
Event stream recording

Drives CallTrace construction from the enter/exit events a tracer emits,
in the order the execution produced them.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from hexbytes import HexBytes
from eth_utils import to_checksum_address
from eth_utils.address import is_address

from .call_trace import CallTrace, RawLog, RootPolicy
from ..utils.exceptions import DisconnectedTraceError, EventStreamError
from ..utils.logging import get_logger

logger = get_logger('recorder')


def normalize_call_address(address: Union[str, bytes, None]) -> str:
    """Checksum an account address; anything that is not one is kept as given."""
    if address is None:
        return CallTrace().address
    if is_address(address):
        return to_checksum_address(address)
    return str(address)


def parse_quantity(value: Union[int, str, None]) -> int:
    """Parse an integer given as int, decimal string or 0x-prefixed hex."""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if value.startswith('0x'):
        return int(value, 16)
    return int(value)


def to_raw_log(log: Union[RawLog, Dict[str, Any]]) -> RawLog:
    if isinstance(log, RawLog):
        return log
    return RawLog(topics=list(log.get('topics', [])), data=log.get('data', b''))


class CallTraceRecorder:
    """
    Builds a CallTrace from enter/exit events.

    Each enter opens a call at the next depth; each exit closes the
    innermost open call. The recorder keeps the open calls on a stack so
    an exit that does not match the innermost open call is rejected before
    it reaches the tree.
    """

    def __init__(self, root_policy: RootPolicy = RootPolicy.IGNORE):
        self.root_policy = RootPolicy(root_policy)
        self._root: Optional[CallTrace] = None
        self._open: List[CallTrace] = []
        # Calls under a second root dropped by RootPolicy.IGNORE; never attached
        self._skipped: List[CallTrace] = []

    @property
    def root(self) -> CallTrace:
        if self._root is None:
            raise EventStreamError("No root call has been recorded")
        return self._root

    @property
    def open_calls(self) -> List[CallTrace]:
        """Calls entered but not yet exited, outermost first."""
        return list(self._open)

    @property
    def complete(self) -> bool:
        return self._root is not None and not self._open and not self._skipped

    def enter(self, depth: int, address: Union[str, bytes, None], input: bytes = b"",
              is_creation: bool = False) -> CallTrace:
        """
        Record a call as it begins.

        A later depth-0 call either replaces the root's fields
        (RootPolicy.OVERWRITE) or is dropped with all of its subcalls
        (RootPolicy.IGNORE).

        Returns:
            The node added to the tree (the root for a depth-0 call), or a
            detached node for an ignored call
        """
        fragment = CallTrace(
            depth=depth,
            address=normalize_call_address(address),
            input=HexBytes(input),
            is_creation=is_creation,
        )

        if self._root is None:
            if depth != 0:
                raise DisconnectedTraceError(
                    f"First call must be at depth 0, got depth {depth}", depth=depth
                )
            self._root = fragment
            self._open.append(fragment)
            logger.debug(f"Root call to {fragment.address}")
            return fragment

        if self._skipped:
            if depth != self._skipped[-1].depth + 1:
                raise DisconnectedTraceError(
                    f"Cannot open a call at depth {depth}: innermost ignored call is at depth "
                    f"{self._skipped[-1].depth}",
                    depth=depth,
                )
            self._skipped.append(fragment)
            return fragment

        if depth == 0:
            if self._open:
                raise DisconnectedTraceError(
                    f"Cannot open a second root while {len(self._open)} calls are open", depth=0
                )
            if self.root_policy is RootPolicy.IGNORE:
                logger.debug(f"Ignoring second root call to {fragment.address}")
                self._skipped.append(fragment)
                return fragment
            self._root.add(fragment, self.root_policy)
            self._open.append(self._root)
            return self._root

        if not self._open or self._open[-1].depth != depth - 1:
            open_depth = self._open[-1].depth if self._open else None
            raise DisconnectedTraceError(
                f"Cannot open a call at depth {depth}: innermost open call is at depth {open_depth}",
                depth=depth,
            )

        fragment.location = self._root.locate(fragment)
        self._root.add(fragment, self.root_policy)
        self._open.append(fragment)
        return fragment

    def exit(self, depth: int, success: bool, output: bytes = b"", gas_cost: int = 0,
             logs: Iterable[Union[RawLog, Dict[str, Any]]] = (), location: Optional[int] = None,
             address: Union[str, bytes, None] = None, input: Optional[bytes] = None) -> CallTrace:
        """
        Record the result of the innermost open call.

        Address and input default to the values the call was opened with.
        Exits of an ignored root call and its subcalls leave the tree alone.

        Returns:
            The completed node
        """
        if self._skipped:
            if self._skipped[-1].depth != depth:
                raise DisconnectedTraceError(
                    f"Cannot close a call at depth {depth}: innermost ignored call is at depth "
                    f"{self._skipped[-1].depth}",
                    depth=depth,
                    location=location,
                )
            return self._skipped.pop()

        if not self._open or self._open[-1].depth != depth:
            open_depth = self._open[-1].depth if self._open else None
            raise DisconnectedTraceError(
                f"Cannot close a call at depth {depth}: innermost open call is at depth {open_depth}",
                depth=depth,
                location=location,
            )

        opened = self._open[-1]
        if location is None:
            location = opened.location
        elif location != opened.location:
            raise DisconnectedTraceError(
                f"Cannot close call at depth {depth} location {location}: "
                f"open call is at location {opened.location}",
                depth=depth,
                location=location,
            )

        fragment = CallTrace(
            depth=depth,
            location=location,
            success=success,
            address=normalize_call_address(address) if address is not None else opened.address,
            is_creation=opened.is_creation,
            input=HexBytes(input) if input is not None else opened.input,
            gas_cost=gas_cost,
            output=HexBytes(output),
            logs=[to_raw_log(log) for log in logs],
        )
        self.root.update(fragment)
        self._open.pop()
        return opened

    def record(self, event: Dict[str, Any]) -> CallTrace:
        """Apply one event record: ``{"event": "enter" | "exit", ...}``."""
        kind = event.get('event')
        try:
            if kind == 'enter':
                return self.enter(
                    depth=int(event['depth']),
                    address=event.get('address'),
                    input=event.get('input') or b'',
                    is_creation=bool(event.get('is_creation', False)),
                )
            if kind == 'exit':
                location = event.get('location')
                return self.exit(
                    depth=int(event['depth']),
                    success=bool(event.get('success', False)),
                    output=event.get('output') or b'',
                    gas_cost=parse_quantity(event.get('gas_cost')),
                    logs=event.get('logs', []),
                    location=int(location) if location is not None else None,
                    address=event.get('address'),
                    input=event.get('input'),
                )
        except (KeyError, TypeError, ValueError) as e:
            raise EventStreamError(f"Malformed {kind} event: {e}", event=event) from e
        raise EventStreamError(f"Unknown event type: {kind!r}", event=event)

    def replay(self, events: Iterable[Dict[str, Any]]) -> CallTrace:
        """Apply a whole event stream and return the root."""
        count = 0
        for event in events:
            self.record(event)
            count += 1
        logger.debug(f"Replayed {count} events")
        if self._open or self._skipped:
            logger.warning(f"Event stream ended with {len(self._open) + len(self._skipped)} open calls")
        return self.root


def build_call_trace(events: Iterable[Dict[str, Any]],
                     root_policy: RootPolicy = RootPolicy.IGNORE) -> CallTrace:
    """Build a complete call tree from an event stream."""
    return CallTraceRecorder(root_policy).replay(events)


def load_events_file(events_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Load events from a JSON array or a JSON Lines file."""
    try:
        with open(events_path, 'r') as f:
            content = f.read()
    except OSError as e:
        raise EventStreamError(f"Could not read events file: {e}", source=str(events_path)) from e

    try:
        if content.lstrip().startswith('['):
            events = json.loads(content)
        else:
            events = [json.loads(line) for line in content.splitlines() if line.strip()]
    except json.JSONDecodeError as e:
        raise EventStreamError(f"Invalid JSON in events file: {e}", source=str(events_path)) from e

    if not all(isinstance(event, dict) for event in events):
        raise EventStreamError("Every event must be a JSON object", source=str(events_path))
    return events
