"""
CLI module for evmtrace commands.

This module provides the command-line interface for evmtrace,
including the render and trace commands.
"""

from .main import main

__all__ = [
    'main',
    'render_command',
    'trace_command',
]


# Lazy imports to avoid circular dependencies
def render_command(args):
    """Execute the render command."""
    from .render import render_command as _render_command
    return _render_command(args)


def trace_command(args):
    """Execute the trace command."""
    from .trace import trace_command as _trace_command
    return _trace_command(args)
