"""
Call Trace Tree

Reconstructs the nested call graph of a single transaction from the
depth-first stream of call-enter/call-exit events emitted while it
executes. A call is added as soon as it opens and completed in place
once it returns, so nested and reentrant calls can be recorded before
their parents finish.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

from hexbytes import HexBytes
from eth_utils import to_hex

from ..utils.exceptions import DisconnectedTraceError
from ..utils.logging import TRACE, get_logger

logger = get_logger('call_trace')

ZERO_ADDRESS = '0x' + '00' * 20


class RootPolicy(str, Enum):
    """What to do when a second depth-0 fragment is added to an existing root."""
    IGNORE = "ignore"
    OVERWRITE = "overwrite"


@dataclass
class RawLog:
    """An emitted log record: indexed topics plus opaque data."""
    topics: List[HexBytes] = field(default_factory=list)
    data: HexBytes = field(default_factory=lambda: HexBytes(b""))

    def __post_init__(self):
        self.topics = [HexBytes(topic) for topic in self.topics]
        self.data = HexBytes(self.data)

    def __str__(self) -> str:
        topics = ', '.join(to_hex(topic) for topic in self.topics)
        return f"RawLog {{ topics: [{topics}], data: {to_hex(self.data)} }}"


@dataclass
class CallTrace:
    """
    One call frame of a transaction, and the tree rooted at it.

    The root node (depth 0) stands for the outermost call. Every node owns
    its children in call order.
    """
    depth: int = 0
    location: int = 0  # Index among the parent's children when created
    success: bool = False
    address: str = ZERO_ADDRESS  # Callee
    is_creation: bool = False
    input: HexBytes = field(default_factory=lambda: HexBytes(b""))  # Calldata, selector first
    gas_cost: int = 0
    output: HexBytes = field(default_factory=lambda: HexBytes(b""))
    logs: List[RawLog] = field(default_factory=list)
    children: List["CallTrace"] = field(default_factory=list)

    def __post_init__(self):
        if self.depth < 0:
            raise ValueError(f"Call depth must be non-negative, got {self.depth}")
        self.input = HexBytes(self.input)
        self.output = HexBytes(self.output)

    @property
    def selector(self) -> Optional[bytes]:
        """First 4 bytes of the input, or None when the input is shorter."""
        if len(self.input) < 4:
            return None
        return bytes(self.input[:4])

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _parent_for(self, fragment: "CallTrace", action: str) -> "CallTrace":
        # The open call at every depth is the most recently appended child,
        # so the parent of a new fragment is always reached through last children.
        node = self
        while node.depth != fragment.depth - 1:
            if not node.children or node.depth >= fragment.depth:
                raise DisconnectedTraceError(
                    f"Disconnected trace {action}: no open call at depth "
                    f"{node.depth + 1} to reach depth {fragment.depth}",
                    depth=fragment.depth,
                    location=fragment.location,
                )
            node = node.children[-1]
        return node

    def add(self, fragment: "CallTrace", root_policy: RootPolicy = RootPolicy.IGNORE) -> int:
        """
        Insert a newly opened call into the tree.

        The fragment's location is set to its index among its parent's
        children and returned. A depth-0 fragment denotes the root itself
        and is handled according to ``root_policy``.

        Raises:
            DisconnectedTraceError: If the fragment's depth cannot be reached
        """
        if fragment.depth == 0:
            if RootPolicy(root_policy) is RootPolicy.OVERWRITE:
                logger.log(TRACE, "Overwriting root with depth 0 fragment")
                self._apply(fragment)
            return 0

        parent = self._parent_for(fragment, "add")
        fragment.location = len(parent.children)
        parent.children.append(fragment)
        logger.log(TRACE, "Opened call depth=%d location=%d address=%s",
                   fragment.depth, fragment.location, fragment.address)
        return fragment.location

    def locate(self, fragment: "CallTrace") -> int:
        """Return the location ``add`` would assign to ``fragment`` now, without inserting it."""
        if fragment.depth == 0:
            return 0
        return len(self._parent_for(fragment, "location").children)

    def update(self, fragment: "CallTrace") -> None:
        """
        Complete a previously opened call with its result.

        The node addressed by the fragment's depth and location has its
        result fields overwritten; its children are left alone.

        Raises:
            DisconnectedTraceError: If no open call matches the fragment
        """
        if fragment.depth == 0:
            self._apply(fragment)
            return

        parent = self._parent_for(fragment, "update")
        if not 0 <= fragment.location < len(parent.children):
            raise DisconnectedTraceError(
                f"Disconnected trace update: no call at location {fragment.location} "
                f"under depth {parent.depth}",
                depth=fragment.depth,
                location=fragment.location,
            )
        parent.children[fragment.location]._apply(fragment)
        logger.log(TRACE, "Closed call depth=%d location=%d success=%s",
                   fragment.depth, fragment.location, fragment.success)

    def _apply(self, fragment: "CallTrace") -> None:
        # Fragments carry no subtree; children were built by earlier adds
        self.success = fragment.success
        self.address = fragment.address
        self.gas_cost = fragment.gas_cost
        self.output = fragment.output
        self.logs = list(fragment.logs)
        self.input = fragment.input

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def walk(self) -> Iterator["CallTrace"]:
        """Yield this node and its descendants depth-first, in call order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def total_logs(self) -> int:
        """Number of logs emitted by this call and every call beneath it."""
        return sum(len(node.logs) for node in self.walk())

    def total_descendant_calls(self) -> int:
        """Number of calls beneath this one, not counting itself."""
        return sum(len(node.children) for node in self.walk())

    def find(self, depth: int, location: int) -> Optional["CallTrace"]:
        """Return the first call at ``depth`` with ``location``, or None."""
        stack = [self]
        while stack:
            node = stack.pop()
            if node.depth == depth and node.location == location:
                return node
            if node.depth < depth:
                stack.extend(reversed(node.children))
        return None
