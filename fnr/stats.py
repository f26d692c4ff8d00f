"""
Run statistics — counters shared by all workers.
"""

import threading
import time
from contextlib import contextmanager


class Statistics:
    """Thread-safe counters for one run."""

    def __init__(self):
        self._lock = threading.Lock()
        self.wall_time = 0.0
        self.search_time = 0.0
        self.files_total = 0
        self.files_searched = 0
        self.files_ignored = 0
        self.files_with_matches = 0
        self.files_with_replacements = 0
        self.num_matches = 0
        self.num_replacements = 0

    def visit_file(self, searched: bool) -> None:
        with self._lock:
            self.files_total += 1
            if searched:
                self.files_searched += 1
            else:
                self.files_ignored += 1

    def add_matches(self, count: int) -> None:
        with self._lock:
            self.files_with_matches += 1
            self.num_matches += count

    def add_replacements(self, count: int) -> None:
        with self._lock:
            self.files_with_replacements += 1
            self.num_replacements += count

    def add_wall_time(self, seconds: float) -> None:
        with self._lock:
            self.wall_time += seconds

    @contextmanager
    def search_timer(self):
        """Accumulate the time spent inside the ``with`` block."""
        started = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - started
            with self._lock:
                self.search_time += elapsed

    def __str__(self) -> str:
        return (
            f"wall time               {self.wall_time:.3f} s\n"
            f"search time             {self.search_time:.3f} s\n"
            f"num matches             {self.num_matches}\n"
            f"num replacements        {self.num_replacements}\n"
            f"total files             {self.files_total}\n"
            f"  ... ignored           {self.files_ignored}\n"
            f"  ... searched          {self.files_searched}\n"
            f"  ... with matches      {self.files_with_matches}\n"
            f"  ... with replacements {self.files_with_replacements}"
        )
