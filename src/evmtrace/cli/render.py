"""
Render command implementation.

This module handles rebuilding a call tree from a recorded enter/exit
event stream and printing it.
"""

from evmtrace.core.recorder import CallTraceRecorder, load_events_file
from evmtrace.utils.exceptions import EvmTraceError
from evmtrace.utils.logging import logger
from evmtrace.cli.common import handle_command_error, print_tree_output


def render_command(args) -> int:
    """
    Execute the render command.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    json_mode = getattr(args, 'json_errors', False)

    try:
        events = load_events_file(args.events_file)
        logger.debug(f"Loaded {len(events)} events from {args.events_file}")
        tree = CallTraceRecorder(args.root_policy).replay(events)
    except EvmTraceError as e:
        return handle_command_error(e, json_mode)

    return print_tree_output(tree, args)
