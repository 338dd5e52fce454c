"""
evmtrace - EVM call tree reconstruction and rendering
"""

__version__ = "0.1.0"

# Main entry point
from .cli.main import main

# Core components
from .core import (
    CallTrace,
    RawLog,
    RootPolicy,
    CallTraceRecorder,
    build_call_trace,
    ContractEntry,
    ContractIndex,
    render,
    print_call_trace,
)

# Utilities
from .utils import (
    EvmTraceError,
    DisconnectedTrace,
    DisconnectedTraceError,
    ABIDecodeError,
    setup_logging,
)

__all__ = [
    # Version
    '__version__',
    # Main
    'main',
    # Core
    'CallTrace',
    'RawLog',
    'RootPolicy',
    'CallTraceRecorder',
    'build_call_trace',
    'ContractEntry',
    'ContractIndex',
    'render',
    'print_call_trace',
    # Utils
    'EvmTraceError',
    'DisconnectedTrace',
    'DisconnectedTraceError',
    'ABIDecodeError',
    'setup_logging',
]
