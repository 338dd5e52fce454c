"""
Logging configuration for evmtrace.

Console output goes to stderr so it never interleaves with the rendered
call tree on stdout.
"""

import logging
import sys
from typing import Optional

from evmtrace.utils.colors import bold, dim, error, info, warning

# Custom log level for per-mutation tree tracing
TRACE = 5
logging.addLevelName(TRACE, 'TRACE')


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colors level names with the color helpers.

    Colors are only applied if the output stream supports them.
    """

    LEVEL_STYLES = {
        TRACE: dim,
        logging.DEBUG: dim,
        logging.INFO: info,
        logging.WARNING: warning,
        logging.ERROR: error,
        logging.CRITICAL: lambda text: bold(error(text)),
    }

    def __init__(self, fmt: str = None, datefmt: str = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        style = self.LEVEL_STYLES.get(record.levelno)
        if self.use_colors and style:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = style(record.levelname)
        return super().format(record)


def setup_logging(
    level: int = logging.WARNING,
    quiet: bool = False,
    debug: bool = False,
    verbose: bool = False,
    log_file: Optional[str] = None,
    use_colors: bool = True
) -> logging.Logger:
    """
    Configure logging for evmtrace.

    Args:
        level: Base logging level
        quiet: If True, suppress all console output
        debug: If True, set level to DEBUG
        verbose: If True, set level to TRACE (logs every tree mutation)
        log_file: Optional path to log file
        use_colors: Whether to use colored output

    Returns:
        Configured logger instance
    """
    if verbose:
        effective_level = TRACE
    elif debug:
        effective_level = logging.DEBUG
    else:
        effective_level = level

    logger = logging.getLogger('evmtrace')
    logger.setLevel(min(effective_level, logging.DEBUG) if log_file else effective_level)
    logger.handlers.clear()
    logger.propagate = False

    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(effective_level)

        supports_color = (
            hasattr(sys.stderr, 'isatty') and
            sys.stderr.isatty() and
            use_colors
        )

        console_handler.setFormatter(ColoredFormatter(
            fmt='%(levelname)s: %(message)s',
            use_colors=supports_color
        ))
        logger.addHandler(console_handler)

    if log_file:
        # File handler (no colors)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(min(effective_level, logging.DEBUG))
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional name for the logger. If None, returns the root evmtrace logger.
              If provided, returns a child logger (e.g., 'evmtrace.recorder').

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f'evmtrace.{name}')
    return logging.getLogger('evmtrace')


# Global logger instance for convenient access
logger = get_logger()
