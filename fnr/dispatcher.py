"""
Dispatcher — walks the candidate files and runs each one through search,
collection and replacement.

Batch runs use a bounded thread pool pulling from one shared walk iterator;
each worker owns its searcher, collector, policy copy and output buffer.
Interactive runs are processed sequentially on the calling thread so that
prompts appear in discovery order right below their diffs.
"""

from __future__ import annotations

import io
import logging
import os
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from tqdm import tqdm

from .cli_display import MatchPrinter, SharedWriter
from .editing.collector import MatchCollector
from .editing.decision import DecisionPolicy
from .editing.replacer import ReplacementOrchestrator
from .errors import ReplacementError, SearchError
from .search import LineSearcher, PatternMatcher
from .stats import Statistics
from .walker import PathFilter

logger = logging.getLogger(__name__)

MAX_WORKERS = 12

# Per-file verdicts for the worker loop
_CONTINUE = "continue"
_STOP_WORKER = "stop_worker"
_HALT = "halt"


def default_workers() -> int:
    return min(MAX_WORKERS, os.cpu_count() or 1)


@dataclass
class RunResult:
    """Outcome of a whole run."""
    stats: Statistics = field(default_factory=Statistics)
    halted: bool = False
    errors: int = 0
    # stdout reader went away (e.g. piped into `head`)
    output_closed: bool = False


class _SharedIterator:
    """Hand out paths from one iterator to many workers."""

    def __init__(self, paths: Iterable[str]):
        self._it: Iterator[str] = iter(paths)
        self._lock = threading.Lock()

    def next(self) -> Optional[str]:
        with self._lock:
            return next(self._it, None)


class FindAndReplacer:
    """Run a find-and-replace over a stream of candidate files."""

    def __init__(
        self,
        matcher: PatternMatcher,
        policy: DecisionPolicy,
        before_context: int = 2,
        after_context: int = 2,
        path_filter: PathFilter | None = None,
        print_mode: str = "full",
        color: bool = False,
        writes_enabled: bool = False,
        threads: int | None = None,
        progress: bool = False,
        stream=None,
    ) -> None:
        self.matcher = matcher
        self.policy = policy
        self.before_context = before_context
        self.after_context = after_context
        self.path_filter = path_filter or PathFilter()
        self.print_mode = print_mode
        self.color = color
        self.writes_enabled = writes_enabled
        self.threads = min(MAX_WORKERS, threads or default_workers())
        self.progress = progress and not policy.interactive
        self.stream = stream or sys.stdout

        self._halt = threading.Event()
        self._errors_lock = threading.Lock()
        self._result = RunResult()
        self._pbar = None

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self, paths: Iterable[str]) -> RunResult:
        """Process every file in *paths* until done or halted."""
        self._halt.clear()
        self._result = RunResult()
        started = time.perf_counter()

        if self.policy.interactive:
            self._run_sequential(paths)
        else:
            self._run_parallel(paths)

        self._result.stats.add_wall_time(time.perf_counter() - started)
        self._result.halted = self._halt.is_set()

        if not self._result.output_closed:
            self._print_footer()
        return self._result

    def _print_footer(self) -> None:
        footer = MatchPrinter(self.stream, self.print_mode, self.color,
                              self.writes_enabled)
        try:
            footer.display_footer(self._result.stats.num_replacements,
                                  self._result.stats.num_matches)
            self.stream.flush()
        except BrokenPipeError:
            self._result.output_closed = True

    def _run_sequential(self, paths: Iterable[str]) -> None:
        writer = SharedWriter(self.stream)
        worker = self._make_worker(self.policy)
        for path in paths:
            if self._halt.is_set():
                break
            verdict = self._process_file(path, worker, writer, buffered=False)
            if verdict != _CONTINUE:
                break

    def _run_parallel(self, paths: Iterable[str]) -> None:
        shared = _SharedIterator(paths)
        writer = SharedWriter(self.stream, progress=self.progress)
        self._pbar = tqdm(total=None, unit="file", desc="Searching",
                          file=sys.stderr, disable=not self.progress)
        try:
            with ThreadPoolExecutor(max_workers=self.threads,
                                    thread_name_prefix="fnr") as pool:
                futures = [
                    pool.submit(self._worker_loop, shared, writer)
                    for _ in range(self.threads)
                ]
                for future in futures:
                    future.result()
        finally:
            self._pbar.close()
            self._pbar = None

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    def _make_worker(self, policy: DecisionPolicy) -> "_Worker":
        searcher = LineSearcher(self.matcher, self.before_context,
                                self.after_context)
        return _Worker(searcher, MatchCollector(),
                       ReplacementOrchestrator(self.matcher, policy))

    def _worker_loop(self, shared: _SharedIterator, writer: SharedWriter) -> None:
        worker = self._make_worker(self.policy.clone())
        try:
            while not self._halt.is_set():
                path = shared.next()
                if path is None:
                    return
                verdict = self._process_file(path, worker, writer, buffered=True)
                if self._pbar is not None:
                    with self._errors_lock:
                        self._pbar.update(1)
                if verdict == _STOP_WORKER:
                    return
        except BaseException:
            self._halt.set()
            raise

    def _close_output(self) -> None:
        if not self._result.output_closed:
            logger.debug("Output closed by reader, stopping")
        self._result.output_closed = True
        self._halt.set()

    def _record_error(self) -> None:
        with self._errors_lock:
            self._result.errors += 1

    def _process_file(self, path: str, worker: "_Worker", writer: SharedWriter,
                      buffered: bool) -> str:
        stats = self._result.stats
        if not self.path_filter.should_search(path):
            stats.visit_file(False)
            return _CONTINUE
        stats.visit_file(True)

        try:
            with stats.search_timer():
                matches = list(worker.collector.collect(
                    worker.searcher.search_path(path)))
        except SearchError as exc:
            logger.error("search failed: %s", exc)
            self._record_error()
            return _STOP_WORKER

        if not matches:
            return _CONTINUE
        stats.add_matches(len(matches))

        out = io.StringIO() if buffered else self.stream
        printer = MatchPrinter(out, self.print_mode, self.color,
                               self.writes_enabled)
        try:
            outcome = worker.orchestrator.process(path, matches, printer)
        except BrokenPipeError:
            self._close_output()
            return _HALT
        except (OSError, ReplacementError) as exc:
            logger.error("%s: %s", path, exc)
            self._record_error()
            self._halt.set()
            return _HALT
        finally:
            if buffered and not writer.print(out.getvalue()):
                self._close_output()

        if outcome.applied:
            stats.add_replacements(outcome.applied)
        if outcome.halt or self._result.output_closed:
            self._halt.set()
            return _HALT
        return _CONTINUE


@dataclass
class _Worker:
    searcher: LineSearcher
    collector: MatchCollector
    orchestrator: ReplacementOrchestrator
