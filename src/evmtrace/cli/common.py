"""
Common utilities for CLI commands.

This module provides the pieces shared by the render and trace
commands: contract loading, call tree output and error reporting.
"""

import sys
from typing import Any, Optional, Tuple

from evmtrace.core.call_trace import CallTrace
from evmtrace.core.contracts import ContractIndex, load_contracts_file
from evmtrace.core.renderer import render, write_lines
from evmtrace.utils.colors import Colors, bold, dim, number
from evmtrace.utils.exceptions import EvmTraceError, format_error
from evmtrace.utils.logging import logger


def load_contract_index(contracts_file: Optional[str]) -> ContractIndex:
    """
    Build the contract index for a render pass.

    Args:
        contracts_file: Optional path to a contracts mapping file

    Returns:
        ContractIndex, empty when no file was given

    Raises:
        ContractRegistryError: If the mapping or one of its ABI files cannot be loaded
    """
    if not contracts_file:
        return ContractIndex()
    contracts = load_contracts_file(contracts_file)
    logger.debug(f"Loaded {len(contracts)} contracts from {contracts_file}")
    return ContractIndex.from_registry(contracts)


def parse_focus(focus: str) -> Tuple[int, int]:
    """
    Parse a ``DEPTH:LOCATION`` node address.

    Raises:
        ValueError: If the value is not two non-negative integers
    """
    try:
        depth_str, location_str = focus.split(':')
        depth, location = int(depth_str), int(location_str)
    except ValueError:
        raise ValueError(f"Invalid node address '{focus}', expected DEPTH:LOCATION")
    if depth < 0 or location < 0:
        raise ValueError(f"Invalid node address '{focus}', depth and location must be non-negative")
    return depth, location


def print_tree_output(tree: CallTrace, args: Any) -> int:
    """
    Render a completed call tree according to the command options.

    Args:
        tree: Root of the recorded call tree
        args: Parsed command arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    json_mode = getattr(args, 'json_errors', False)
    use_colors = not getattr(args, 'no_color', False)

    node = tree
    if getattr(args, 'focus', None):
        try:
            depth, location = parse_focus(args.focus)
        except ValueError as e:
            return handle_command_error(e, json_mode)
        node = tree.find(depth, location)
        if node is None:
            return handle_command_error(
                EvmTraceError(f"No call at depth {depth} location {location}",
                              {"depth": depth, "location": location}, "CallNotFound"),
                json_mode,
            )

    try:
        index = load_contract_index(getattr(args, 'contracts', None))
        lines = render(node, index, show_returns=getattr(args, 'show_returns', False))
    except EvmTraceError as e:
        return handle_command_error(e, json_mode)

    write_lines(lines, use_colors=use_colors)

    if getattr(args, 'summary', False):
        print_summary(node)
    return 0


def print_summary(tree: CallTrace) -> None:
    """Print call and log totals for a (sub)tree."""
    calls = tree.total_descendant_calls() + 1
    logs = tree.total_logs()
    print(dim("-" * 60))
    print(f"{bold('Calls:')} {number(str(calls))}  {bold('Logs:')} {number(str(logs))}")


def configure_colors(args: Any) -> None:
    """Turn colors off globally when requested."""
    if getattr(args, 'no_color', False):
        Colors.disable()


def handle_command_error(
    e: Exception,
    json_mode: bool = False,
    exit_code: int = 1
) -> int:
    """
    Handle command errors uniformly.

    Args:
        e: The exception that occurred
        json_mode: If True, output as JSON on stdout
        exit_code: Exit code to return

    Returns:
        Exit code
    """
    logger.debug(f"Command failed: {type(e).__name__}: {e}")
    error_output = format_error(e, json_mode)
    if json_mode:
        print(error_output)
    else:
        print(error_output, file=sys.stderr)
    return exit_code
