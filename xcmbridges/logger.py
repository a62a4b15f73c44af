"""
XCM Bridges Logging
===================

Console and file logging for the harness. Console output goes through
``rich`` with a highlighter tuned for chain names, hex blobs and endpoints so
dry-run dumps and dispatch errors stay readable in test runner output.

Modules take a logger with ``get_logger(__name__)``. Handlers are installed
once, either explicitly through ``LogManager.apply`` (``ScenarioContext``
does this with the ``[logging]`` section of the config) or lazily with the
environment defaults on the first record.
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_DATE_FORMAT,
    LOG_FILE_OUTPUT,
    LOG_FORMAT,
    LOG_LEVEL,
    LOG_MAX_FILE_SIZE,
)

LOG_FILE_PATH = Path(__file__).parent.parent / "logs" / "xcmbridges.log"

# websocket frames and HTTP probes are logged per request at DEBUG
QUIET_LIBRARIES = ("httpx", "httpcore", "websocket", "substrateinterface")

THEME = Theme({
    "xcmb.arrow": "bold yellow",
    "xcmb.chain": "bold cyan",
    "xcmb.hex": "dim cyan",
    "xcmb.level_debug": "bold dim",
    "xcmb.level_info": "bold green",
    "xcmb.level_warning": "bold yellow",
    "xcmb.level_error": "bold red",
    "xcmb.level_critical": "bold red reverse",
    "xcmb.logger_name": "magenta",
    "xcmb.timestamp": "bold cyan",
    "xcmb.url": "underline cyan",
})


class TerminalSafeFormatter(logging.Formatter):
    """
    Drops ANSI escapes and control characters from formatted records.

    Decoded chain data is logged verbatim and must not reach the terminal as
    escape sequences. Tabs and newlines are kept.
    """

    _unsafe = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
        r"|[\x00-\x08\x0B-\x1F\x7F]"
    )

    def format(self, record: logging.LogRecord) -> str:
        return self._unsafe.sub("", super().format(record))


class ChainLogHighlighter(RegexHighlighter):
    base_style = "xcmb."
    highlights = [
        r"(?P<timestamp>^\S+ UTC)",
        r"\b(?P<level_debug>DEBUG)\b",
        r"\b(?P<level_info>INFO)\b",
        r"\b(?P<level_warning>WARNING)\b",
        r"\b(?P<level_error>ERROR)\b",
        r"\b(?P<level_critical>CRITICAL)\b",
        r" - (?P<logger_name>xcmbridges(\.\w+)*) - ",
        r"\bon (?P<chain>[A-Z][A-Za-z]+)",
        r"(?P<arrow>→)",
        r"(?P<hex>\b0x[0-9a-fA-F]{8,})",
        r"(?P<url>wss?://\S+)",
    ]


class LogManager:
    """
    Owns the handlers the harness installs on the root logger.

    A single module-level instance is shared by every caller. Configuration
    happens at most once per process; later calls are ignored until
    ``reset`` removes the installed handlers.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: List[logging.Handler] = []
        self._settings: Optional[Tuple[str, bool]] = None

    @property
    def is_configured(self) -> bool:
        return bool(self._handlers)

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Install console and file handlers on the root logger.

        Args:
            log_level: Level name, defaults to ``LOG_LEVEL``.
            log_file: Rotating log file, defaults to ``logs/xcmbridges.log``.
            console_output: Log to stderr.
            file_output: Log to ``log_file``, defaults to ``LOG_FILE_OUTPUT``.
        """
        with self._lock:
            if self._handlers:
                return

            level = logging.getLevelName(str(log_level or LOG_LEVEL).upper())
            if not isinstance(level, int):
                level = logging.INFO

            formatter = TerminalSafeFormatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT + " UTC")
            formatter.converter = time.gmtime

            handlers: List[logging.Handler] = []
            if console_output:
                handlers.append(self._console_handler())
            if LOG_FILE_OUTPUT if file_output is None else file_output:
                path = Path(log_file or LOG_FILE_PATH)
                path.parent.mkdir(parents=True, exist_ok=True)
                handlers.append(logging.handlers.RotatingFileHandler(
                    filename=str(path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                ))

            root = logging.getLogger()
            root.setLevel(level)
            for handler in handlers:
                handler.setLevel(level)
                handler.setFormatter(formatter)
                root.addHandler(handler)
            for name in QUIET_LIBRARIES:
                logging.getLogger(name).setLevel(logging.WARNING)

            self._handlers = handlers

    @staticmethod
    def _console_handler() -> logging.Handler:
        if not LOG_CONSOLE_HIGHLIGHTING:
            return logging.StreamHandler(sys.stderr)
        return RichHandler(
            console=Console(theme=THEME, highlight=False, stderr=True),
            highlighter=ChainLogHighlighter(),
            keywords=[],
            markup=False,
            rich_tracebacks=True,
            show_level=False,
            show_path=False,
            show_time=False,
        )

    def reset(self) -> None:
        """Remove the installed handlers so ``configure`` applies again."""
        with self._lock:
            root = logging.getLogger()
            for handler in self._handlers:
                root.removeHandler(handler)
                handler.close()
            self._handlers = []
            self._settings = None

    def apply(self, log_level: str, file_output: bool) -> None:
        """Reconfigure when the requested settings differ from the installed ones."""
        settings = (log_level.upper(), file_output)
        if self._handlers and self._settings == settings:
            return
        self.reset()
        self.configure(log_level=log_level, file_output=file_output)
        self._settings = settings

    def get_logger(self, name: str) -> logging.Logger:
        if not self._handlers:
            self.configure()
        return logging.getLogger(name)


log_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    return log_manager.get_logger(name)
