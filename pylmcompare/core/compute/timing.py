"""
Wall-clock timing for solver results.

Every Result carries a `timing` dict: 'total_seconds' plus one entry per
named section of the computation.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Stopwatch with named, accumulating sections.

        timer = Timer()
        timer.start()
        with timer.section('decomposition'):
            ...
        timer.stop()
        timer.result()   # {'total_seconds': ..., 'decomposition': ...}

    Also usable as `with Timer() as timer:`, which starts and stops it.
    """

    def __init__(self):
        self._sections: dict[str, float] = {}
        self._t0: float | None = None
        self._elapsed: float | None = None

    def __enter__(self) -> 'Timer':
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def start(self) -> None:
        self._t0 = time.perf_counter()
        self._elapsed = None

    def stop(self) -> None:
        if self._t0 is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._elapsed = time.perf_counter() - self._t0

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self._sections[name] = self._sections.get(name, 0.0) + time.perf_counter() - t0

    def result(self) -> dict[str, float]:
        """
        Timings in seconds.

        Raises:
            RuntimeError: The timer has not been stopped
        """
        if self._elapsed is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._elapsed, **self._sections}
