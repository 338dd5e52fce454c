"""
Call tree rendering

Walks a completed CallTrace and produces one styled line record per
call and per emitted log. Calls to registered contracts are decoded
against their ABI; everything else falls back to raw hex. Writing the
records to a terminal is a separate step so the tree walk can be tested
and buffered without capturing process output.
"""

import sys
from dataclasses import dataclass, field
from typing import List, Mapping, NamedTuple, Optional, TextIO, Union

from .call_trace import CallTrace, RawLog
from .contracts import ContractABI, ContractIndex
from ..utils.colors import blue, cyan, green, red
from ..utils.logging import get_logger

logger = get_logger('renderer')

BRANCH = "├─ "
LAST = "└─ "
PIPE = "│  "
SPACE = "   "

# Line styles
CALL_OK = "call_ok"
CALL_FAILED = "call_failed"
EVENT = "event"
RAW_LOG = "raw_log"

STYLE_COLORS = {
    CALL_OK: green,
    CALL_FAILED: red,
    EVENT: cyan,
    RAW_LOG: blue,
}


class Segment(NamedTuple):
    text: str
    style: Optional[str] = None


@dataclass
class RenderedLine:
    """One output line: tree connectors followed by styled text segments."""
    prefix: str
    segments: List[Segment] = field(default_factory=list)
    depth: int = 0

    @property
    def text(self) -> str:
        return self.prefix + ''.join(segment.text for segment in self.segments)

    def __str__(self) -> str:
        return self.text


Contracts = Union[ContractIndex, Mapping[str, tuple], None]


def _as_index(contracts: Contracts) -> ContractIndex:
    if contracts is None:
        return ContractIndex()
    if isinstance(contracts, ContractIndex):
        return contracts
    return ContractIndex.from_registry(contracts)


def _continuation(prefix: str) -> str:
    """Swap the trailing connector of ``prefix`` for the bar drawn beneath it."""
    if prefix.endswith(BRANCH):
        return prefix[:-len(BRANCH)] + PIPE
    if prefix.endswith(LAST):
        return prefix[:-len(LAST)] + SPACE
    return prefix


def _raw_payload(data: bytes) -> str:
    data = bytes(data)
    if len(data) >= 4:
        return f"{data[:4].hex()}({data[4:].hex()})"
    return f"({data.hex()})"


def _call_lines(node: CallTrace, contract: Optional[ContractABI], prefix: str,
                show_returns: bool) -> List[RenderedLine]:
    cost = Segment(f"[{node.gas_cost}] ")
    style = CALL_OK if node.success else CALL_FAILED

    if node.is_creation:
        if contract:
            segments = [cost, Segment(f"new {contract.name}", style), Segment(f"@{node.address}")]
        else:
            segments = [cost, Segment(f"new {node.address}")]
        return [RenderedLine(prefix, segments, node.depth)]

    if contract is None:
        return [RenderedLine(prefix, [cost, Segment(f"{node.address}::{_raw_payload(node.input)}")],
                             node.depth)]

    functions = contract.functions_for(node.selector)
    if not functions:
        logger.debug(f"No function in {contract.name} for input {bytes(node.input[:4]).hex()}")
        segments = [cost, Segment(contract.name, style), Segment("::"),
                    Segment(_raw_payload(node.input), style)]
        return [RenderedLine(prefix, segments, node.depth)]

    lines = []
    for function in functions:
        args = contract.decode_input(function, node.input)
        segments = [
            cost,
            Segment(contract.name, style),
            Segment("::"),
            Segment(function['name'], style),
            Segment(f"({args})"),
        ]
        if show_returns and node.success and node.output and function.get('outputs'):
            segments.append(Segment(f" → ({contract.decode_output(function, node.output)})"))
        lines.append(RenderedLine(prefix, segments, node.depth))
    return lines


def _log_lines(log: RawLog, contract: Optional[ContractABI], prefix: str,
               depth: int) -> List[RenderedLine]:
    events = []
    if contract is not None and log.topics:
        events = contract.events_for(log.topics[0])

    if not events:
        return [RenderedLine(prefix, [Segment("emit "), Segment(str(log), RAW_LOG)], depth)]

    return [
        RenderedLine(prefix, [
            Segment("emit "),
            Segment(event['name'], EVENT),
            Segment(f"({contract.decode_log(event, log.topics, log.data)})", EVENT),
        ], depth)
        for event in events
    ]


def render(tree: CallTrace, contracts: Contracts = None, prefix: str = "",
           show_returns: bool = False) -> List[RenderedLine]:
    """
    Render a completed call tree as line records.

    Args:
        tree: Root of the tree (or of the subtree) to render
        contracts: Mapping of name -> (abi, address, labels), or a prebuilt ContractIndex
        prefix: Connector prefix for the first line
        show_returns: Append decoded return data to successful matched calls

    Returns:
        Lines in display order: each call, then its children, then its logs

    Raises:
        ABIDecodeError: If calldata or a log does not decode against its matched ABI entry
    """
    index = _as_index(contracts)
    lines: List[RenderedLine] = []

    # Explicit stack: EVM call depth can exceed Python's recursion limit
    stack = [(tree, None, prefix)]
    while stack:
        node, log, line_prefix = stack.pop()
        if log is not None:
            lines.extend(_log_lines(log, index.lookup(node.address), line_prefix, node.depth))
            continue

        contract = index.lookup(node.address)
        lines.extend(_call_lines(node, contract, line_prefix, show_returns))

        inner = _continuation(line_prefix)
        pending = []
        for i, child in enumerate(node.children):
            is_last = i == len(node.children) - 1 and not node.logs
            pending.append((child, None, inner + (LAST if is_last else BRANCH)))
        for i, child_log in enumerate(node.logs):
            is_last = i == len(node.logs) - 1
            pending.append((node, child_log, inner + (LAST if is_last else BRANCH)))
        stack.extend(reversed(pending))

    return lines


def format_line(line: RenderedLine, use_colors: bool = True) -> str:
    """Join a line record into text, coloring styled segments."""
    if not use_colors:
        return line.text
    parts = [line.prefix]
    for segment in line.segments:
        color = STYLE_COLORS.get(segment.style)
        parts.append(color(segment.text) if color else segment.text)
    return ''.join(parts)


def write_lines(lines: List[RenderedLine], stream: Optional[TextIO] = None,
                use_colors: bool = True) -> None:
    """Write rendered lines to ``stream`` (stdout by default)."""
    stream = stream or sys.stdout
    for line in lines:
        stream.write(format_line(line, use_colors) + "\n")


def print_call_trace(tree: CallTrace, contracts: Contracts = None, prefix: str = "",
                     show_returns: bool = False, stream: Optional[TextIO] = None,
                     use_colors: bool = True) -> int:
    """Render ``tree`` and write it out. Returns the number of lines written."""
    lines = render(tree, contracts, prefix, show_returns)
    write_lines(lines, stream, use_colors)
    return len(lines)
