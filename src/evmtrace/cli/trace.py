"""
Trace command implementation.

This module handles fetching the call frames of an existing transaction
from a node and printing them as a call tree.
"""

import sys

from evmtrace.core.call_frames import events_from_call_frame, fetch_call_frame
from evmtrace.core.recorder import CallTraceRecorder
from evmtrace.utils.colors import info
from evmtrace.utils.exceptions import EvmTraceError
from evmtrace.cli.common import handle_command_error, print_tree_output


def trace_command(args) -> int:
    """
    Execute the trace command.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    json_mode = getattr(args, 'json_errors', False)

    if not json_mode:
        print(f"Loading transaction {info(args.tx_hash)} from {info(args.rpc)}...")
        sys.stdout.flush()

    try:
        frame = fetch_call_frame(args.rpc, args.tx_hash, timeout=args.timeout)
        tree = CallTraceRecorder(args.root_policy).replay(events_from_call_frame(frame))
    except EvmTraceError as e:
        return handle_command_error(e, json_mode)

    return print_tree_output(tree, args)
