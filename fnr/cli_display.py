"""
Terminal output — logger setup, per-match rendering and the shared writer
that keeps each file's output in one piece.
"""

import logging
import os
import sys
import threading
from datetime import datetime

from tqdm import tqdm

from .editing.types import Match

_RED = "\033[31m"
_GREEN = "\033[32m"
_UNDERLINE = "\033[4m"
_RESET = "\033[0m"

PRINT_MODES = ("full", "compact", "silent")


def setup_logger(verbose: bool = False, log_dir: str | None = None) -> logging.Logger:
    """Configure the ``fnr`` logger.

    Warnings and errors go to stderr (everything with *verbose*).  When
    *log_dir* is given, a timestamped file captures the full debug log.
    """
    logger = logging.getLogger("fnr")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(logging.DEBUG if verbose else logging.WARNING)
    sh.setFormatter(logging.Formatter("fnr: %(levelname)s: %(message)s"))
    logger.addHandler(sh)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = os.path.join(log_dir, f"fnr_{timestamp}.log")
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"
        ))
        logger.addHandler(fh)

    return logger


def _printable(text: str) -> str:
    """Undo surrogate escapes so undecodable bytes print as U+FFFD."""
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def _eol(text: str) -> str:
    return text if text.endswith(("\n", "\r")) else text + "\n"


class MatchPrinter:
    """Render proposed replacements in full, compact or silent form."""

    def __init__(self, stream, mode: str = "full", color: bool = False,
                 writes_enabled: bool = False):
        if mode not in PRINT_MODES:
            raise ValueError(f"unknown print mode: {mode}")
        self.stream = stream
        self.mode = mode
        self.color = color
        self.writes_enabled = writes_enabled
        self._last_line_num: int | None = None

    def _paint(self, code: str, text: str) -> str:
        if not self.color:
            return text
        body, nl = (text[:-1], "\n") if text.endswith("\n") else (text, "")
        return f"{code}{body}{_RESET}{nl}"

    def _write(self, text: str) -> None:
        self.stream.write(text)

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def display_header(self, path: str, num_matches: int) -> None:
        if self.mode != "full":
            return
        suffix = "" if num_matches == 1 else "es"
        name = self._paint(_UNDERLINE, str(path))
        self._write(f"{name} {num_matches} match{suffix}\n")
        self._last_line_num = None

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def display_match(self, path: str, m: Match, replacement: str) -> None:
        if self.mode == "compact":
            self._display_match_compact(path, m, replacement)
        elif self.mode == "full":
            self._display_match_full(m, replacement)

    def _display_match_compact(self, path: str, m: Match, replacement: str) -> None:
        for line in m.context_pre:
            self._write(_eol(f"{path}:{line.number}:{_printable(line.text)}"))
        self._write(self._paint(
            _RED, _eol(f"{path}:{m.number}-{_printable(m.line.text)}")))
        self._write(self._paint(
            _GREEN, _eol(f"{path}:{m.number}+{_printable(replacement)}")))
        for line in m.context_post:
            self._write(_eol(f"{path}:{line.number}:{_printable(line.text)}"))

    def _display_match_full(self, m: Match, replacement: str) -> None:
        first = m.context_pre[0].number if m.context_pre else m.number
        if self._last_line_num is not None and first > self._last_line_num + 1:
            self._write("  ---\n")

        for line in m.context_pre:
            self._write(_eol(f" {line.number:4} {_printable(line.text)}"))
        self._write(self._paint(
            _RED, _eol(f"-{m.number:4} {_printable(m.line.text)}")))
        self._write(self._paint(
            _GREEN, _eol(f"+{m.number:4} {_printable(replacement)}")))
        for line in m.context_post:
            self._write(_eol(f" {line.number:4} {_printable(line.text)}"))

        self._last_line_num = m.context_post[-1].number if m.context_post else m.number

    # ------------------------------------------------------------------
    # Footer
    # ------------------------------------------------------------------

    def display_footer(self, total_replacements: int, total_matches: int) -> None:
        if self.mode != "full":
            return
        self._write(
            f"All done. Replaced {total_replacements} of {total_matches} matches\n"
        )
        if not self.writes_enabled:
            self._write("Use -W, --write to modify files in place.\n")


class SharedWriter:
    """Serialise whole rendered buffers onto one output stream.

    When a tqdm progress bar is active, output goes through ``tqdm.write``
    so the bar is redrawn below the printed text.
    """

    def __init__(self, stream=None, progress: bool = False):
        self.stream = stream or sys.stdout
        self.progress = progress
        self.closed = False
        self._lock = threading.Lock()

    def print(self, text: str) -> bool:
        """Write *text* as one block; return False once the reader has gone away."""
        if not text:
            return not self.closed
        with self._lock:
            if self.closed:
                return False
            try:
                if self.progress:
                    tqdm.write(text, file=self.stream, end="")
                else:
                    self.stream.write(text)
                self.stream.flush()
            except BrokenPipeError:
                self.closed = True
                return False
        return True
