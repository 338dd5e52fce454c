"""
Color utilities for evmtrace

Provides ANSI color codes for call tree output.
"""

import os
import sys

# Check if colors are supported
SUPPORTS_COLOR = (
    hasattr(sys.stdout, 'isatty') and sys.stdout.isatty() and
    os.environ.get('TERM') != 'dumb' and
    not os.environ.get('NO_COLOR')
)


class Colors:
    """ANSI color codes for terminal output."""

    RED = '\033[31m'
    GREEN = '\033[32m'
    BLUE = '\033[34m'
    CYAN = '\033[36m'

    BRIGHT_RED = '\033[91m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_CYAN = '\033[96m'

    BOLD = '\033[1m'
    DIM = '\033[2m'

    RESET = '\033[0m'

    _CODES = {}

    @classmethod
    def disable(cls):
        """Disable all colors."""
        for attr in dir(cls):
            if not attr.startswith('_') and attr.isupper():
                cls._CODES.setdefault(attr, getattr(cls, attr))
                setattr(cls, attr, '')

    @classmethod
    def enable(cls):
        """Re-enable colors after a call to disable()."""
        for attr, code in cls._CODES.items():
            setattr(cls, attr, code)


# Disable colors if not supported
if not SUPPORTS_COLOR:
    Colors.disable()


def red(text: str) -> str:
    """Return text in red."""
    return f"{Colors.RED}{text}{Colors.RESET}"

def green(text: str) -> str:
    """Return text in green."""
    return f"{Colors.GREEN}{text}{Colors.RESET}"

def blue(text: str) -> str:
    """Return text in blue."""
    return f"{Colors.BLUE}{text}{Colors.RESET}"

def cyan(text: str) -> str:
    """Return text in cyan."""
    return f"{Colors.CYAN}{text}{Colors.RESET}"

def bold(text: str) -> str:
    """Return text in bold."""
    return f"{Colors.BOLD}{text}{Colors.RESET}"

def dim(text: str) -> str:
    """Return text dimmed."""
    return f"{Colors.DIM}{text}{Colors.RESET}"


# Semantic color functions
def error(text: str) -> str:
    """Format error text."""
    return f"{Colors.BRIGHT_RED}{text}{Colors.RESET}"

def warning(text: str) -> str:
    """Format warning text."""
    return f"{Colors.BRIGHT_YELLOW}{text}{Colors.RESET}"

def info(text: str) -> str:
    """Format info text."""
    return f"{Colors.BRIGHT_CYAN}{text}{Colors.RESET}"

def number(text: str) -> str:
    """Format numbers."""
    return f"{Colors.BRIGHT_YELLOW}{text}{Colors.RESET}"
