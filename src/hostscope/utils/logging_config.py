"""
hostscope Logging Configuration

Logging is owned by an explicit LoggingContext built once at process start
and passed to every component that logs. Its lifecycle is
start() -> get_logger() -> close().

Usage:
    from hostscope.utils.logging_config import LoggingContext

    with LoggingContext(level="DEBUG", log_file="hostscope.log") as ctx:
        logger = ctx.get_logger(__name__)
        logger.info("Message")
"""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import List, Optional, Union

# Default format
DEFAULT_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DEBUG_FORMAT = "%(asctime)s | %(name)s:%(lineno)d | %(levelname)s | %(message)s"

ROOT_LOGGER_NAME = "hostscope"

# Color codes for terminal
LEVEL_COLORS = {
    'DEBUG': '\033[36m',     # Cyan
    'INFO': '\033[32m',      # Green
    'WARNING': '\033[33m',   # Yellow
    'ERROR': '\033[31m',     # Red
    'CRITICAL': '\033[35m',  # Magenta
}
RESET = '\033[0m'

NOISY_LIBRARIES = (
    'asyncio',
    'urllib3',
    'markdown_it',
)

VALID_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to log levels for terminal output."""

    def __init__(self, fmt=None, datefmt=None, use_colors=True, stream=None):
        super().__init__(fmt, datefmt)
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record):
        if not self.use_colors or record.levelname not in LEVEL_COLORS:
            return super().format(record)
        # Color a copy so other handlers see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{LEVEL_COLORS[record.levelname]}{record.levelname}{RESET}"
        return super().format(colored)


def parse_level(level: Union[int, str]) -> int:
    """Accept a logging level as int or name."""
    if isinstance(level, int):
        return level
    name = str(level).strip().upper()
    if name not in VALID_LEVELS:
        raise ValueError(f"Invalid log level: {level}")
    return getattr(logging, name)


class LoggingContext:
    """
    Owns the log handlers for one run.

    Handlers are attached to the ``hostscope`` logger on start() and
    detached on close(). Attach/detach is serialized by a lock; each
    handler serializes its own writes, so the file sink is never written
    concurrently.

    Args:
        level: Level name or number (default INFO)
        log_file: Optional path for a rotating log file
        log_format: Format string for both handlers
        use_colors: Color level names on an interactive console
        console: Attach a console (stderr) handler
        max_bytes: Max log file size before rotation
        backup_count: Number of rotated files to keep
        stream: Console stream, stderr when None
    """

    def __init__(
        self,
        level: Union[int, str] = logging.INFO,
        log_file: Optional[Union[str, Path]] = None,
        log_format: str = DEFAULT_FORMAT,
        use_colors: bool = True,
        console: bool = True,
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        stream=None,
    ):
        self.level = parse_level(level)
        self.log_file = Path(log_file) if log_file else None
        self.log_format = log_format
        self.use_colors = use_colors
        self.console = console
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.stream = stream

        self._handlers: List[logging.Handler] = []
        self._lock = threading.Lock()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def root(self) -> logging.Logger:
        return logging.getLogger(ROOT_LOGGER_NAME)

    def start(self) -> 'LoggingContext':
        """Attach handlers. Calling start() twice is a no-op."""
        with self._lock:
            if self._started:
                return self

            root = self.root
            root.setLevel(self.level)
            root.propagate = False

            if self.console:
                stream = self.stream or sys.stderr
                console_handler = logging.StreamHandler(stream)
                console_handler.setLevel(self.level)
                if self.use_colors:
                    console_handler.setFormatter(ColoredFormatter(self.log_format, stream=stream))
                else:
                    console_handler.setFormatter(logging.Formatter(self.log_format))
                self._attach(root, console_handler)

            if self.log_file:
                self.log_file.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    self.log_file,
                    maxBytes=self.max_bytes,
                    backupCount=self.backup_count,
                    encoding='utf-8',
                )
                file_handler.setLevel(self.level)
                file_handler.setFormatter(logging.Formatter(self.log_format))
                self._attach(root, file_handler)

            if not self._handlers:
                # Keeps records away from logging.lastResort
                self._attach(root, logging.NullHandler())

            for lib_name in NOISY_LIBRARIES:
                logging.getLogger(lib_name).setLevel(logging.WARNING)

            self._started = True
        return self

    def _attach(self, root: logging.Logger, handler: logging.Handler):
        root.addHandler(handler)
        self._handlers.append(handler)

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """
        Get a logger under the ``hostscope`` hierarchy.

        Names outside the hierarchy (e.g. ``__name__`` of a test module)
        are nested under it so they reach this context's handlers.
        """
        if not name or name == ROOT_LOGGER_NAME:
            return self.root
        if not name.startswith(ROOT_LOGGER_NAME + "."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(name)

    def set_level(self, level: Union[int, str]):
        with self._lock:
            self.level = parse_level(level)
            self.root.setLevel(self.level)
            for handler in self._handlers:
                handler.setLevel(self.level)

    def flush(self):
        for handler in list(self._handlers):
            handler.flush()

    def close(self):
        """Flush and detach every handler this context attached."""
        with self._lock:
            root = self.root
            for handler in self._handlers:
                try:
                    handler.flush()
                finally:
                    root.removeHandler(handler)
                    handler.close()
            self._handlers.clear()
            self._started = False

    def __enter__(self) -> 'LoggingContext':
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
