"""
Core module for evmtrace.

This module contains the call tree and everything that feeds or reads it:
- CallTrace: the call tree, built incrementally with add/update
- CallTraceRecorder: builds a CallTrace from an enter/exit event stream
- ContractIndex: address/selector/topic lookups over registered ABIs
- render: turns a completed CallTrace into styled line records
"""

from .call_trace import CallTrace, RawLog, RootPolicy, ZERO_ADDRESS
from .recorder import CallTraceRecorder, build_call_trace, load_events_file
from .contracts import (
    ContractABI,
    ContractEntry,
    ContractIndex,
    load_abi_file,
    load_contracts_file,
)
from .renderer import RenderedLine, Segment, render, write_lines, print_call_trace
from .call_frames import events_from_call_frame, fetch_call_frame

__all__ = [
    'CallTrace',
    'RawLog',
    'RootPolicy',
    'ZERO_ADDRESS',
    'CallTraceRecorder',
    'build_call_trace',
    'load_events_file',
    'ContractABI',
    'ContractEntry',
    'ContractIndex',
    'load_abi_file',
    'load_contracts_file',
    'RenderedLine',
    'Segment',
    'render',
    'write_lines',
    'print_call_trace',
    'events_from_call_frame',
    'fetch_call_frame',
]
