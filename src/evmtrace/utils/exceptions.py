"""
Custom exceptions for evmtrace.

This module provides a hierarchy of exceptions for the error cases of
trace construction, contract decoding and the command line tools, along
with utilities for formatting errors consistently.
"""

import json
from typing import Any, Dict, Optional


class EvmTraceError(Exception):
    """
    Base exception for all evmtrace errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
        error_code: Optional error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": True,
            "type": self.error_code,
            "message": self.message,
            **self.details
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)


# ============================================================================
# Trace Construction Errors
# ============================================================================

class DisconnectedTraceError(EvmTraceError):
    """
    Raised when a fragment cannot be attached to the tree.

    The event stream does not nest properly: a call was closed without a
    matching open call, or opened at a depth the tree cannot reach.
    """

    def __init__(
        self,
        message: str,
        depth: Optional[int] = None,
        location: Optional[int] = None,
        **kwargs
    ):
        details = {}
        if depth is not None:
            details["depth"] = depth
        if location is not None:
            details["location"] = location
        details.update(kwargs)
        super().__init__(message, details, "DisconnectedTrace")
        self.depth = depth
        self.location = location


# Name used by callers that think of it as a trace state rather than an error
DisconnectedTrace = DisconnectedTraceError


class EventStreamError(EvmTraceError):
    """Raised when an event stream or event record is malformed."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        details = {"source": source} if source else {}
        details.update(kwargs)
        super().__init__(message, details, "EventStreamError")


# ============================================================================
# Contract Errors
# ============================================================================

class ContractRegistryError(EvmTraceError):
    """Raised when a contracts mapping or ABI file cannot be loaded."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        details = {"path": path} if path else {}
        details.update(kwargs)
        super().__init__(message, details, "ContractRegistryError")


class ABIDecodeError(EvmTraceError):
    """Raised when calldata or a log does not decode against a matched ABI entry."""

    def __init__(
        self,
        message: str,
        contract_name: Optional[str] = None,
        abi_item: Optional[str] = None,
        **kwargs
    ):
        details = {}
        if contract_name:
            details["contract_name"] = contract_name
        if abi_item:
            details["abi_item"] = abi_item
        details.update(kwargs)
        super().__init__(message, details, "ABIDecodeError")


# ============================================================================
# Connection Errors
# ============================================================================

class RPCConnectionError(EvmTraceError):
    """Raised when RPC connection fails."""

    def __init__(self, message: str, rpc_url: Optional[str] = None, **kwargs):
        details = {"rpc_url": rpc_url} if rpc_url else {}
        details.update(kwargs)
        super().__init__(message, details, "RPCConnectionError")


class TransactionError(EvmTraceError):
    """Raised when transaction operations fail."""

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        **kwargs
    ):
        details = {}
        if tx_hash:
            details["tx_hash"] = tx_hash
        details.update(kwargs)
        super().__init__(message, details, "TransactionError")


class DebugTraceUnavailableError(TransactionError):
    """Raised when the node cannot produce a call trace for a transaction."""

    def __init__(
        self,
        tx_hash: str,
        reason: Optional[str] = None,
        **kwargs
    ):
        message = f"debug_traceTransaction unavailable for {tx_hash}"
        if reason:
            message += f": {reason}"
        super().__init__(message, tx_hash=tx_hash, **kwargs)
        self.error_code = "DebugTraceUnavailable"


# ============================================================================
# Error Formatting Utilities
# ============================================================================

def format_error(e: Exception, json_mode: bool = False) -> str:
    """
    Format an exception for display.

    Args:
        e: The exception to format
        json_mode: If True, output as JSON; otherwise use colored text

    Returns:
        Formatted error string
    """
    from evmtrace.utils.colors import error

    if isinstance(e, EvmTraceError):
        if json_mode:
            return e.to_json()
        return error(e.message)

    if json_mode:
        return json.dumps(format_error_json(str(e), type(e).__name__), indent=2)
    return error(str(e))


def format_error_json(
    message: str,
    error_type: str = "Error",
    **kwargs
) -> Dict[str, Any]:
    """
    Create a standardized error JSON structure.

    Args:
        message: Error message
        error_type: Error type/code
        **kwargs: Additional fields to include

    Returns:
        Dictionary suitable for JSON output
    """
    return {
        "error": True,
        "type": error_type,
        "message": message,
        **kwargs
    }
