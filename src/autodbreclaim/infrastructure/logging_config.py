"""
Logging configuration module.

Provides colored console output and an optional plain-text log file.
"""

import logging
import sys
from pathlib import Path


class Colors:
    """ANSI escape sequences for terminal colors."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    WHITE = "\033[37m"
    CYAN = "\033[36m"
    YELLOW = "\033[33m"
    BRIGHT_RED = "\033[91m"
    BG_RED = "\033[41m"


class ColoredFormatter(logging.Formatter):
    """
    Formatter that adds colors to log levels.

    Colors:
        DEBUG    - Dim/Gray
        INFO     - Cyan
        WARNING  - Yellow
        ERROR    - Red
        CRITICAL - Bold white on red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DIM + Colors.WHITE,
        logging.INFO: Colors.CYAN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.BRIGHT_RED,
        logging.CRITICAL: Colors.BOLD + Colors.WHITE + Colors.BG_RED,
    }

    def __init__(self, fmt: str, datefmt: str | None = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        saved_levelname = record.levelname
        saved_name = record.name

        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        record.levelname = f"{color}{record.levelname:8}{Colors.RESET}"
        record.name = f"{Colors.DIM}{record.name}{Colors.RESET}"

        result = super().format(record)

        # Restore for other handlers (file)
        record.levelname = saved_levelname
        record.name = saved_name

        return result


def setup_logging(level: int = logging.INFO, log_file: str | None = None,
                  use_colors: bool | None = None):
    """
    Configure application-wide logging.

    Args:
        level: Console logging level (logging.DEBUG, logging.INFO, etc.)
        log_file: Optional path to log file (always receives DEBUG)
        use_colors: Force colors on/off; defaults to whether stderr is a TTY
    """
    if use_colors is None:
        use_colors = sys.stderr.isatty()

    console_formatter = ColoredFormatter(
        fmt='[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
        datefmt='%H:%M:%S',
        use_colors=use_colors,
    )
    file_formatter = logging.Formatter(
        fmt='[%(asctime)s] %(levelname)-8s [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    # Report lines go to stdout; logs stay on stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(level)

    handlers = [console_handler]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(file_formatter)
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG,  # handlers filter
        handlers=handlers,
        force=True,
    )

    logging.getLogger('pyodbc').setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized (level=%s)", logging.getLevelName(level))
    if log_file:
        logger.debug("Log file: %s", log_file)
