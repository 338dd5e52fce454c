#!/usr/bin/env python3
"""
Main entry point for evmtrace

This module serves as the CLI entry point, handling argument parsing
and routing to the appropriate command implementations in the cli/ module.
"""

import sys
import argparse

from evmtrace.core.call_trace import RootPolicy
from evmtrace.utils.logging import setup_logging
from .common import configure_colors
from .render import render_command
from .trace import trace_command


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by every command that prints a call tree."""
    parser.add_argument('--contracts', '-c', help='JSON file mapping contract names to address and ABI')
    parser.add_argument('--root-policy', choices=[p.value for p in RootPolicy], default=RootPolicy.IGNORE.value,
                        help='What a second depth 0 call does to the root (default: ignore)')
    parser.add_argument('--show-returns', action='store_true', help='Append decoded return data to matched calls')
    parser.add_argument('--focus', metavar='DEPTH:LOCATION', help='Only render the call at DEPTH:LOCATION and its subcalls')
    parser.add_argument('--summary', action='store_true', help='Print call and log totals after the tree')
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')
    parser.add_argument('--json-errors', action='store_true', help='Report errors as JSON on stdout')
    parser.add_argument('--debug', '-d', action='store_true', help='Enable debug logging')
    parser.add_argument('--verbose', action='store_true', help='Log every call tree mutation')
    parser.add_argument('--quiet', '-q', action='store_true', help='Suppress log output')
    parser.add_argument('--log-file', help='Also write logs to this file')


def main(argv=None):
    """Main entry point for evmtrace CLI."""
    parser = argparse.ArgumentParser(description='evmtrace - EVM call tree viewer')
    parser.add_argument('--version', '-v', action='version', version='%(prog)s 0.1.0')

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    # render command
    render_parser = subparsers.add_parser('render', help='Rebuild and print a call tree from a recorded event stream')
    render_parser.add_argument('events_file', help='JSON array or JSON Lines file of enter/exit events')
    _add_output_arguments(render_parser)

    # trace command
    trace_parser = subparsers.add_parser('trace', help='Fetch a transaction call tree from a node and print it')
    trace_parser.add_argument('tx_hash', help='Transaction hash to trace')
    trace_parser.add_argument('--rpc', '-r', default='http://localhost:8545', help='RPC URL')
    trace_parser.add_argument('--timeout', type=int, default=30, help='RPC request timeout in seconds')
    _add_output_arguments(trace_parser)

    args = parser.parse_args(argv)

    setup_logging(
        quiet=args.quiet,
        debug=args.debug,
        verbose=args.verbose,
        log_file=args.log_file,
        use_colors=not args.no_color,
    )
    configure_colors(args)

    if args.command == 'render':
        return render_command(args)
    elif args.command == 'trace':
        return trace_command(args)

    return 0


if __name__ == '__main__':
    sys.exit(main())
