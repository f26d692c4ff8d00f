"""
File rewriter — streams the original file into a sibling temp file,
substituting accepted replacement lines, then renames the temp file over
the original.

The rename is the only visible mutation.  Untouched lines are copied
byte-for-byte: files are read and written with ``newline=""`` and
``surrogateescape`` so neither line endings nor undecodable bytes change.
"""

from __future__ import annotations

import logging
import os
import shutil
from typing import Sequence

from ..errors import RewriteInvariantError
from .types import MatchReplacement

logger = logging.getLogger(__name__)

TEMP_MARKER = ".fnr~"
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def temp_path_for(path: str) -> str:
    """Return the sibling temp path used while rewriting *path*."""
    return os.fspath(path) + TEMP_MARKER


def _check_ordering(replacements: Sequence[MatchReplacement]) -> None:
    last = 0
    for item in replacements:
        if item.number <= last:
            raise RewriteInvariantError(
                f"replacement for line {item.number} is out of order "
                f"(follows line {last})"
            )
        last = item.number


class FileRewriter:
    """Apply line replacements to a file atomically."""

    def apply(self, path: str, replacements: Sequence[MatchReplacement]) -> int:
        """Rewrite *path* with *replacements*; return the number applied.

        *replacements* must be strictly ascending by line number.  A
        replacement referring past the last line raises
        :class:`RewriteInvariantError` and the original is left untouched.
        """
        if not replacements:
            return 0
        _check_ordering(replacements)

        src_path = os.fspath(path)
        tmp_path = temp_path_for(src_path)
        pending = list(replacements)
        head = 0
        num_replaced = 0

        try:
            with open(src_path, "r", encoding=_ENCODING, errors=_ERRORS,
                      newline="") as src, \
                    open(tmp_path, "w", encoding=_ENCODING, errors=_ERRORS,
                         newline="") as dst:
                for line_num, line in enumerate(src, start=1):
                    if head < len(pending) and pending[head].number == line_num:
                        dst.write(pending[head].replacement_text)
                        head += 1
                        num_replaced += 1
                    else:
                        dst.write(line)

            if head < len(pending):
                raise RewriteInvariantError(
                    f"{src_path}: reached end of file with "
                    f"{len(pending) - head} replacement(s) left "
                    f"(next at line {pending[head].number})"
                )

            shutil.copymode(src_path, tmp_path)
            os.replace(tmp_path, src_path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

        logger.debug("Rewrote %s (%d line(s) replaced)", src_path, num_replaced)
        return num_replaced
