"""
Utilities module for evmtrace.

Provides exception handling, logging and colors.
"""

from .exceptions import (
    EvmTraceError,
    DisconnectedTraceError,
    DisconnectedTrace,
    EventStreamError,
    ContractRegistryError,
    ABIDecodeError,
    RPCConnectionError,
    TransactionError,
    DebugTraceUnavailableError,
    format_error,
    format_error_json,
)
from .logging import TRACE, setup_logging, get_logger, logger
from .colors import (
    Colors,
    SUPPORTS_COLOR,
    red, green, blue, cyan,
    bold, dim,
    error, warning, info,
    number,
)

__all__ = [
    # Exceptions
    'EvmTraceError',
    'DisconnectedTraceError',
    'DisconnectedTrace',
    'EventStreamError',
    'ContractRegistryError',
    'ABIDecodeError',
    'RPCConnectionError',
    'TransactionError',
    'DebugTraceUnavailableError',
    # Formatting
    'format_error',
    'format_error_json',
    # Logging
    'TRACE',
    'setup_logging',
    'get_logger',
    'logger',
    # Colors
    'Colors',
    'SUPPORTS_COLOR',
    'red', 'green', 'blue', 'cyan',
    'bold', 'dim',
    'error', 'warning', 'info',
    'number',
]
