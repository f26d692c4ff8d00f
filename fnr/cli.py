"""
CLI entry point — argument parsing and main execution flow.
"""

import argparse
import logging
import os
import sys

from .cli_display import setup_logger
from .config import COLOR_CHOICES, Config
from .dispatcher import FindAndReplacer
from .editing.decision import Decision, FixedPolicy, InteractivePolicy
from .errors import ConfigError, FnrError
from .search import PatternMatcher
from .walker import PathFilter, walk_files

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fnr",
        description="Recursively find and replace. Like sed, but memorable.",
    )
    case = parser.add_mutually_exclusive_group()
    case.add_argument("-i", "--ignore-case", action="store_true",
                      help="Match case insensitively.")
    case.add_argument("-s", "--case-sensitive", action="store_true",
                      help="Match case sensitively.")
    case.add_argument("-S", "--smart-case", action="store_true", default=None,
                      help="Match case sensitively if FIND has uppercase "
                           "characters, insensitively otherwise. [default]")

    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Disable printing matches.")
    parser.add_argument("-c", "--compact", action="store_true", default=None,
                        help="Display compacted output format.")
    parser.add_argument("-W", "--write", action="store_true",
                        help="Modify files in place.")
    parser.add_argument("-p", "--prompt", action="store_true",
                        help="Confirm each modification before making it. "
                             "Implies --write.")
    parser.add_argument("-Q", "--literal", action="store_true",
                        help="Treat FIND as a string rather than a regular expression.")
    parser.add_argument("-w", "--word", action="store_true",
                        help="Match FIND only at word boundary.")

    visibility = parser.add_mutually_exclusive_group()
    visibility.add_argument("-a", "--all-files", action="store_true", default=None,
                            help="Search ALL files in given paths for matches.")
    visibility.add_argument("-H", "--hidden", action="store_true", default=None,
                            help="Find replacements in hidden files and directories.")

    parser.add_argument("-A", "--after", type=int, default=None, metavar="N",
                        help="Print N lines after matches.")
    parser.add_argument("-B", "--before", type=int, default=None, metavar="N",
                        help="Print N lines before matches.")
    parser.add_argument("-C", "--context", type=int, default=None, metavar="N",
                        help="Print N lines before and after matches.")
    parser.add_argument("-I", "--include", action="append", default=None,
                        metavar="PATTERN",
                        help="Include only files or directories matching pattern.")
    parser.add_argument("-E", "--exclude", action="append", default=[],
                        metavar="PATTERN",
                        help="Exclude files or directories matching pattern.")
    parser.add_argument("--color", choices=COLOR_CHOICES, default=None,
                        type=str.lower,
                        help="Control whether terminal output is in color.")
    parser.add_argument("--stats", dest="print_stats", action="store_true",
                        help="Print statistics about the run.")
    parser.add_argument("-j", "--threads", type=int, default=None, metavar="N",
                        help="Number of worker threads (at most 12).")
    parser.add_argument("--progress", action="store_true",
                        help="Show a progress bar on stderr.")
    parser.add_argument("--config", default=None,
                        help="Path to a .fnr.yaml config file.")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log debug output to stderr.")

    parser.add_argument("find", metavar="FIND",
                        help="What to search for. Literal string or regular expression.")
    parser.add_argument("replace", metavar="REPLACE",
                        help="What to replace it with. May reference capture "
                             "groups as $1, $2, ... or ${name}.")
    parser.add_argument("paths", metavar="PATH", nargs="*",
                        help="Locations to search. Current directory if not given; "
                             "read from standard input when it is piped.")
    return parser


def _check_conflicts(args: argparse.Namespace) -> None:
    if args.prompt and (args.write or args.quiet or args.compact):
        raise ConfigError("--prompt cannot be combined with --write, --quiet or --compact")
    if args.quiet and args.compact:
        raise ConfigError("--quiet cannot be combined with --compact")
    if args.context is not None and (args.after is not None or args.before is not None):
        raise ConfigError("--context cannot be combined with --after or --before")
    for name in ("after", "before", "context", "threads"):
        value = getattr(args, name)
        if value is not None and value < 0:
            raise ConfigError(f"--{name} must not be negative")


def _search_paths(args: argparse.Namespace) -> list[str]:
    if args.paths:
        return list(args.paths)

    # Paths piped on stdin, otherwise the current directory
    if not sys.stdin.isatty():
        if args.prompt:
            raise ConfigError("cannot use --prompt when reading files from stdin")
        return [line.rstrip("\r\n") for line in sys.stdin if line.strip()]
    return ["."]


def _color_enabled(choice: str) -> bool:
    if choice == "always":
        return True
    if choice == "never":
        return False
    return sys.stdout.isatty()


def run(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the find-and-replace and return the exit status."""
    args = build_parser().parse_args(argv)
    cfg = Config.load(args.config)
    setup_logger(verbose=args.verbose, log_dir=cfg.LOG_DIR or None)
    _check_conflicts(args)

    smart_case = cfg.SMART_CASE if args.smart_case is None else True
    matcher = PatternMatcher(
        args.find,
        args.replace,
        literal=args.literal,
        word=args.word,
        ignore_case=args.ignore_case,
        case_sensitive=args.case_sensitive,
        smart_case=smart_case,
    )

    if args.prompt:
        policy = InteractivePolicy()
    elif args.write:
        policy = FixedPolicy(Decision.ACCEPT)
    else:
        policy = FixedPolicy(Decision.IGNORE)

    default_context = cfg.CONTEXT if args.context is None else args.context
    before = default_context if args.before is None else args.before
    after = default_context if args.after is None else args.after

    if args.quiet:
        print_mode = "silent"
    elif args.compact or (cfg.COMPACT and not args.prompt):
        print_mode = "compact"
    else:
        print_mode = "full"

    hidden = cfg.HIDDEN if args.hidden is None else args.hidden
    all_files = cfg.ALL_FILES if args.all_files is None else args.all_files
    paths = _search_paths(args)

    replacer = FindAndReplacer(
        matcher,
        policy,
        before_context=before,
        after_context=after,
        path_filter=PathFilter(args.include, cfg.EXCLUDE + args.exclude),
        print_mode=print_mode,
        color=_color_enabled(args.color or cfg.COLOR),
        writes_enabled=args.write or args.prompt,
        threads=args.threads or cfg.THREADS or None,
        progress=args.progress,
    )
    logger.debug("Searching %d path(s) with %d worker(s)",
                 len(paths), 1 if policy.interactive else replacer.threads)

    result = replacer.run(walk_files(paths, hidden=hidden, all_files=all_files))

    if result.output_closed:
        _silence_stdout()
    elif args.print_stats:
        print(result.stats)
    if result.errors:
        return 1
    return 0


def _silence_stdout() -> None:
    # Point stdout at devnull so the interpreter's final flush does not
    # raise again on the closed pipe
    try:
        fd = sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


def main(argv: list[str] | None = None) -> int:
    try:
        return run(argv)
    except BrokenPipeError:
        _silence_stdout()
        return 0
    except FnrError as exc:
        print(f"fnr: error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print(file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
