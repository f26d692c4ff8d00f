"""
Error types raised by fnr.

Everything a user can cause (bad options, unreadable files, odd replacement
text) derives from :class:`FnrError`.  :class:`RewriteInvariantError` does
not: it signals a defect and is never handled as a normal failure.
"""


class FnrError(Exception):
    """Base class for user-facing errors."""


class ConfigError(FnrError):
    """Raised for malformed patterns, templates, options or config files."""


class SearchError(FnrError):
    """Raised when a file cannot be read for searching."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"{path}: {cause}")
        self.path = path
        self.cause = cause


class ReplacementError(FnrError, ValueError):
    """Raised when replacement text would not fit on one physical line."""


class RewriteInvariantError(RuntimeError):
    """A decided replacement did not line up with the file being rewritten."""
