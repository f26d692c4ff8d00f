"""
File walker — enumerates candidate files under the search paths and
decides which of them are searched.
"""

import fnmatch
import logging
import os
from typing import Iterable, Iterator, Optional

from .editing.rewriter import TEMP_MARKER

logger = logging.getLogger(__name__)

SKIP_DIRS = {
    ".git", ".hg", ".svn", "node_modules", "__pycache__", "venv", ".venv",
    "dist", "build", ".tox", ".mypy_cache", ".pytest_cache", ".eggs",
    "target", ".idea", ".vscode", "site-packages", "htmlcov",
}

# Ignore files read in every walked directory, plus git's per-repo exclude
IGNORE_FILES = (".gitignore", ".ignore", os.path.join(".git", "info", "exclude"))

# (directory the pattern was read in, glob, applies to directories only)
IgnorePattern = tuple[str, str, bool]


def _is_hidden(name: str) -> bool:
    return name.startswith(".") and name not in (".", "..")


def _load_ignore_patterns(directory: str) -> list[IgnorePattern]:
    """Read the ignore files in *directory* and return their glob patterns.

    Blank lines, comments and ``!`` re-include lines are skipped.
    """
    patterns: list[IgnorePattern] = []
    for name in IGNORE_FILES:
        path = os.path.join(directory, name)
        if not os.path.isfile(path):
            continue
        try:
            with open(path, encoding="utf-8", errors="replace") as fh:
                for line in fh:
                    line = line.strip()
                    if not line or line.startswith(("#", "!")):
                        continue
                    dir_only = line.endswith("/")
                    line = line.rstrip("/")
                    if line:
                        patterns.append((directory, line, dir_only))
        except OSError as exc:
            logger.warning("Cannot read ignore file %s: %s", path, exc)
    return patterns


def _is_ignored(path: str, is_dir: bool, patterns: list[IgnorePattern]) -> bool:
    """Return True if *path* matches any ignore pattern.

    Patterns without a slash match the entry name at any depth; patterns
    with one match the path relative to the directory that declared them.
    """
    name = os.path.basename(path)
    for base, pattern, dir_only in patterns:
        if dir_only and not is_dir:
            continue
        if "/" in pattern:
            rel = os.path.relpath(path, base).replace(os.sep, "/")
            if fnmatch.fnmatch(rel, pattern.lstrip("/")):
                return True
        elif fnmatch.fnmatch(name, pattern):
            return True
    return False


def walk_files(
    paths: Iterable[str],
    hidden: bool = False,
    all_files: bool = False,
) -> Iterator[str]:
    """Yield files under *paths* in discovery order.

    Paths given explicitly as files are always yielded; paths that do not
    exist are reported and skipped.  Inside directories, hidden entries are
    skipped unless *hidden* or *all_files* is set, and both the
    :data:`SKIP_DIRS` set and entries listed in ``.gitignore`` / ``.ignore``
    / ``.git/info/exclude`` are pruned unless *all_files* is set.
    """
    show_hidden = hidden or all_files
    for root_path in paths:
        root_path = os.fspath(root_path)
        if not os.path.exists(root_path):
            logger.error("%s: No such file or directory", root_path)
            continue
        if not os.path.isdir(root_path):
            yield root_path
            continue

        inherited: dict[str, list[IgnorePattern]] = {}
        for root, dirs, files in os.walk(root_path):
            patterns: list[IgnorePattern] = []
            if not all_files:
                patterns = (inherited.pop(root, [])
                            + _load_ignore_patterns(root))

            # Filter in place so os.walk does not descend
            dirs[:] = sorted(
                d for d in dirs
                if (show_hidden or not _is_hidden(d))
                and (all_files or d not in SKIP_DIRS)
                and not _is_ignored(os.path.join(root, d), True, patterns)
            )
            for d in dirs:
                inherited[os.path.join(root, d)] = patterns

            for fname in sorted(files):
                if not show_hidden and _is_hidden(fname):
                    continue
                if fname.endswith(TEMP_MARKER):
                    continue
                path = os.path.join(root, fname)
                if _is_ignored(path, False, patterns):
                    continue
                yield path


class PathFilter:
    """Include/exclude filtering by literal substring of the path.

    When an include list is given it takes precedence and the exclude list
    is not consulted.
    """

    def __init__(self, include: Optional[list[str]] = None,
                 exclude: Optional[list[str]] = None):
        self.include = list(include) if include else None
        self.exclude = list(exclude or [])

    def path_matches(self, path: str) -> bool:
        if self.include is not None:
            return any(p in path for p in self.include)
        return not any(p in path for p in self.exclude)

    def should_search(self, path: str) -> bool:
        return os.path.isfile(path) and self.path_matches(path)
