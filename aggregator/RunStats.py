from __future__ import annotations

import threading
import time
from typing import Callable, Optional


class RunStats:
    """Thread-safe counters and wall-clock timing for one aggregation run.

    ``trades`` counts every data line handed to the decoder, including lines
    that later turn out to be malformed.
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._lock: threading.Lock = threading.Lock()
        self._trades: int = 0
        self._malformed: int = 0
        self._passthrough: int = 0
        self._out_of_window: int = 0
        self._started: Optional[float] = None
        self._stopped: Optional[float] = None

    # -- Timing ----------------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            self._started = self._clock()
            self._stopped = None

    def stop(self) -> None:
        with self._lock:
            if self._started is not None and self._stopped is None:
                self._stopped = self._clock()

    @property
    def elapsed(self) -> float:
        """Seconds between start() and stop(), or until now while running."""
        with self._lock:
            if self._started is None:
                return 0.0
            end = self._stopped if self._stopped is not None else self._clock()
            return end - self._started

    # -- Counters --------------------------------------------------------------

    def add_trade(self) -> None:
        with self._lock:
            self._trades += 1

    def add_malformed(self) -> None:
        with self._lock:
            self._malformed += 1

    def add_passthrough(self) -> None:
        with self._lock:
            self._passthrough += 1

    def add_out_of_window(self) -> None:
        with self._lock:
            self._out_of_window += 1

    @property
    def trades(self) -> int:
        with self._lock:
            return self._trades

    @property
    def malformed(self) -> int:
        with self._lock:
            return self._malformed

    @property
    def passthrough(self) -> int:
        with self._lock:
            return self._passthrough

    @property
    def out_of_window(self) -> int:
        with self._lock:
            return self._out_of_window

    # -- Reporting -------------------------------------------------------------

    def throughput(self) -> float:
        """Trades per second, 0.0 before any time has elapsed."""
        elapsed = self.elapsed
        if elapsed <= 0:
            return 0.0
        return self.trades / elapsed

    def to_dict(self) -> dict:
        return {
            "trades": self.trades,
            "malformed": self.malformed,
            "passthrough": self.passthrough,
            "out_of_window": self.out_of_window,
            "elapsed": self.elapsed,
        }

    def summary(self) -> str:
        """One-line human readable summary for the diagnostic stream."""
        return (
            f"Took {self.elapsed:.3f}s for processing {self.trades:,} trades "
            f"({self.throughput():,.2f} TPS)"
        )
