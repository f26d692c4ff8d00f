"""
Configuration — loads settings from .fnr.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import logging
import os

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)


DEFAULT_CONTEXT_LINES = 2

_DEFAULTS = {
    "context": DEFAULT_CONTEXT_LINES,
    "color": "auto",
    "smart_case": True,
    "hidden": False,
    "all_files": False,
    "compact": False,
    "exclude": [],
    "threads": 0,
    "log_dir": "",
}

COLOR_CHOICES = ("always", "auto", "never")

# Config file search locations
_CONFIG_FILENAMES = [".fnr.yaml", ".fnr.yml"]


def _find_config_file() -> str | None:
    """Find an implicit config file in the CWD, then the user's home."""
    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str, strict: bool) -> dict:
    """Load a YAML mapping.

    With *strict* (an explicitly requested file) problems raise
    :class:`ConfigError`; otherwise they are logged and ignored.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        if strict:
            raise ConfigError(f"cannot load config file {path}: {exc}") from exc
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        if strict:
            raise ConfigError(f"config file {path} must contain a mapping")
        logger.warning("Ignoring config file %s: not a mapping", path)
        return {}
    return data


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _to_list(value) -> list[str]:
    if isinstance(value, str):
        return [p for p in value.split(",") if p]
    if isinstance(value, list):
        return [str(p) for p in value]
    raise ConfigError(f"expected a list of patterns, got {value!r}")


class Config:
    """Defaults for the command-line options.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables (``FNR_*``)
    3. .fnr.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(key: str, cast):
            env_val = os.getenv(f"FNR_{key.upper()}")
            if env_val is not None:
                raw = env_val
            elif yd.get(key) is not None:
                raw = yd[key]
            else:
                return _DEFAULTS[key]
            try:
                return cast(raw)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"invalid value for {key}: {raw!r}") from exc

        self.CONTEXT = _get("context", int)
        self.COLOR = _get("color", lambda v: str(v).lower())
        self.SMART_CASE = _get("smart_case", _to_bool)
        self.HIDDEN = _get("hidden", _to_bool)
        self.ALL_FILES = _get("all_files", _to_bool)
        self.COMPACT = _get("compact", _to_bool)
        self.EXCLUDE = _get("exclude", _to_list)
        self.THREADS = _get("threads", int)
        self.LOG_DIR = _get("log_dir", str)

        if self.CONTEXT < 0:
            raise ConfigError("context must not be negative")
        if self.THREADS < 0:
            raise ConfigError("threads must not be negative")
        if self.COLOR not in COLOR_CHOICES:
            raise ConfigError(
                f"color must be one of {', '.join(COLOR_CHOICES)}, got {self.COLOR!r}"
            )

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        if config_path:
            return cls(_load_yaml(config_path, strict=True))
        path = _find_config_file()
        yaml_data = _load_yaml(path, strict=False) if path else {}
        return cls(yaml_data)
