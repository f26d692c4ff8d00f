"""
Line search — compiles the FIND pattern and turns a file into the stream of
match / before-context / after-context line events the collector consumes.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from typing import Iterator

from .editing.types import EventKind, Line, LineEvent, split_terminator
from .errors import ConfigError, SearchError

logger = logging.getLogger(__name__)

# Bytes inspected up front for a NUL before any event is produced
_BINARY_PEEK_BYTES = 8192

_TEMPLATE_REF = re.compile(
    r"\$(?:"
    r"(?P<dollar>\$)"
    r"|\{(?P<braced>[A-Za-z0-9_]+)\}"
    r"|(?P<number>[0-9]+)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r")"
)


class PatternMatcher:
    """Compiled FIND pattern plus the REPLACE template.

    Template references: ``$1`` / ``${1}`` for numbered groups, ``$name`` /
    ``${name}`` for named groups and ``$$`` for a literal dollar sign.
    Missing or non-participating groups expand to the empty string.
    """

    def __init__(
        self,
        find: str,
        template: str,
        literal: bool = False,
        word: bool = False,
        ignore_case: bool = False,
        case_sensitive: bool = False,
        smart_case: bool = True,
    ) -> None:
        pattern = re.escape(find) if literal else find
        if word:
            pattern = rf"\b(?:{pattern})\b"

        flags = 0
        if not case_sensitive:
            if ignore_case:
                flags |= re.IGNORECASE
            elif smart_case and not _has_uppercase(find):
                flags |= re.IGNORECASE

        try:
            self.regex = re.compile(pattern, flags)
        except re.error as exc:
            raise ConfigError(f"Failed to parse pattern '{pattern}': {exc}") from exc

        if "\n" in template or "\r" in template:
            raise ConfigError("replacement template must not contain line breaks")
        self.template = template

    def search(self, text: str) -> bool:
        return self.regex.search(text) is not None

    def interpolate(self, m: re.Match) -> str:
        """Expand the template against one regex match."""
        groups = m.re.groupindex

        def _expand(ref: re.Match) -> str:
            if ref.group("dollar"):
                return "$"
            key = ref.group("braced") or ref.group("number") or ref.group("name")
            if key.isdigit():
                index = int(key)
                if index > m.re.groups:
                    return ""
            elif key in groups:
                index = groups[key]
            else:
                return ""
            return m.group(index) or ""

        return _TEMPLATE_REF.sub(_expand, self.template)

    def replace_line(self, text: str) -> str:
        """Replace every match in *text*, keeping its line terminator."""
        content, terminator = split_terminator(text)
        return self.regex.sub(self.interpolate, content) + terminator


def _has_uppercase(pattern: str) -> bool:
    # Escaped classes like \W or \S do not count as literal uppercase
    stripped = re.sub(r"\\.", "", pattern)
    return any(ch.isupper() for ch in stripped)


class LineSearcher:
    """Search one file at a time and yield :class:`LineEvent` items.

    Context lines follow grep conventions: after-context is counted first, so
    a line between two nearby matches is reported once, as after-context of
    the earlier match.  A NUL byte ends the stream for that file.
    """

    def __init__(
        self,
        matcher: PatternMatcher,
        before_context: int = 2,
        after_context: int = 2,
    ) -> None:
        self.matcher = matcher
        self.before_context = before_context
        self.after_context = after_context
        self.binary = False

    def search_path(self, path: str) -> Iterator[LineEvent]:
        """Yield line events for *path*.

        Raises :class:`SearchError` if the file cannot be read.
        """
        self.binary = False
        try:
            with open(path, "rb") as fh:
                head = fh.read(_BINARY_PEEK_BYTES)
            if b"\x00" in head:
                logger.debug("Skipping binary file %s", path)
                self.binary = True
                return
            yield from self._scan(path)
        except OSError as exc:
            raise SearchError(str(path), exc) from exc

    def _scan(self, path: str) -> Iterator[LineEvent]:
        before: deque[Line] = deque(maxlen=self.before_context)
        after_left = 0

        with open(path, "r", encoding="utf-8", errors="surrogateescape",
                  newline="") as f:
            for number, text in enumerate(f, start=1):
                if "\x00" in text:
                    logger.debug("NUL byte at %s:%d, stopping", path, number)
                    self.binary = True
                    return

                line = Line(number, text)
                content, _ = split_terminator(text)
                if self.matcher.search(content):
                    while before:
                        yield LineEvent(EventKind.BEFORE_CONTEXT, before.popleft())
                    yield LineEvent(EventKind.MATCH, line)
                    after_left = self.after_context
                elif after_left:
                    yield LineEvent(EventKind.AFTER_CONTEXT, line)
                    after_left -= 1
                elif self.before_context:
                    before.append(line)

