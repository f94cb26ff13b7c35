"""Stream aggregation manager, the concrete AggregationManager for framed trade streams.

Reads a BEGIN/END framed byte stream line by line, routes trade records into
a ``MarketTable`` (inline or through a worker pool), and once the stream ends
reduces the table and publishes one result per market.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import BinaryIO, List, Optional, TextIO, TYPE_CHECKING

from aggregationManager.AggregationManager import AggregationManager
from tradeFeed.LineFramer import LineKind, frame
from tradeFeed.TradeDecoder import MalformedTradeError, decode_trade

if TYPE_CHECKING:
    from aggregationManager.AggregatorConfig import AggregatorConfig
    from aggregator.MarketData import MarketData
    from aggregator.MarketTable import MarketTable
    from aggregator.RunStats import RunStats
    from publisher.Publisher import Publisher
    from tradeFeed.struct.MarketResult import MarketResult

logger = logging.getLogger("aggregationManager.stream")


class DriverState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    DRAINING = "draining"
    DONE = "done"
    FAILED = "failed"


class PublishError(RuntimeError):
    """A publisher failed to publish the run's results."""


class _InFlight:
    """Wait-group over dispatched applies that remembers the first failure."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = 0
        self._error: Optional[BaseException] = None

    def add(self) -> None:
        with self._cond:
            self._pending += 1

    def done(self, future: Future) -> None:
        exc = future.exception()
        with self._cond:
            self._pending -= 1
            if exc is not None and self._error is None:
                self._error = exc
            self._cond.notify_all()

    @property
    def error(self) -> Optional[BaseException]:
        with self._cond:
            return self._error

    def wait(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._pending == 0)


class StreamAggregationManager(AggregationManager):
    """Drives one aggregation run over a framed trade stream.

    The reading thread is the only producer. With ``workers > 1`` each data
    line is decoded and applied on a thread pool; per-market locks in the
    table keep the sums consistent. On END, clean end-of-stream, or
    ``stop()`` the manager stops reading, waits for every dispatched apply
    to finish, and only then reduces the table.

    Args:
        workers: Pool size for decode-and-apply. ``1`` or less runs inline.
        strict_window: Drop data lines that arrive outside BEGIN/END.
        skip_malformed: Skip undecodable data lines instead of failing.
        diagnostics: Sink for passthrough lines (``sys.stderr`` by default).
    """

    def __init__(
        self,
        workers: int = 1,
        strict_window: bool = False,
        skip_malformed: bool = False,
        diagnostics: Optional[TextIO] = None,
    ) -> None:
        self._workers = workers
        self._strict_window = strict_window
        self._skip_malformed = skip_malformed
        self._diagnostics = diagnostics
        self._publishers: List[Publisher] = []
        self._market_data: Optional[MarketTable] = None
        self._stats: Optional[RunStats] = None
        self._stop_event: threading.Event = threading.Event()
        self._lock: threading.Lock = threading.Lock()
        self._state: DriverState = DriverState.IDLE
        self._created: bool = False

    @classmethod
    def from_config(
        cls, config: AggregatorConfig, diagnostics: Optional[TextIO] = None
    ) -> "StreamAggregationManager":
        return cls(
            workers=config.workers,
            strict_window=config.strict_window,
            skip_malformed=config.skip_malformed,
            diagnostics=diagnostics,
        )

    @property
    def name(self) -> str:
        return "stream-aggregator"

    @property
    def state(self) -> DriverState:
        with self._lock:
            return self._state

    @property
    def stats(self) -> Optional[RunStats]:
        return self._stats

    def create(
        self,
        publishers: List[Publisher],
        market_data: MarketData,
        stats: RunStats,
    ) -> None:
        """Wire up publishers, the market table, and run statistics.

        Each run needs a fresh ``create()``: the table is frozen once reduced.

        Args:
            publishers: Destinations for the final results.
            market_data: ``MarketTable`` that accumulates trades.
            stats: Counters shared with the diagnostics reporter.
        """
        self._publishers = list(publishers)
        self._market_data = market_data
        self._stats = stats
        self._stop_event.clear()
        self._set_state(DriverState.IDLE)
        self._created = True

    def run(self, source: BinaryIO) -> List[MarketResult]:
        """Aggregate ``source`` and publish the results. Blocks until done.

        Raises:
            RuntimeError: If ``create()`` was not called first.
            StreamReadError: If reading ``source`` fails.
            MalformedTradeError: If a data line cannot be decoded and
                malformed lines are not being skipped.
            PublishError: If any publisher fails.
        """
        if not self._created:
            raise RuntimeError("Must call create() before run()")
        self._created = False

        logger.info(
            "Starting %s with %d worker(s), strict_window=%s, skip_malformed=%s",
            self.name, self._workers, self._strict_window, self._skip_malformed,
        )

        run_started = time.time()
        self._stats.start()
        try:
            self._consume_and_drain(source)
            results = self._market_data.export()
            self._publish(results, run_started, time.time())
        except BaseException:
            self._set_state(DriverState.FAILED)
            logger.error("%s failed after %d trades", self.name, self._stats.trades)
            raise
        finally:
            self._stats.stop()

        self._set_state(DriverState.DONE)
        logger.info("%s finished: %d markets, %d trades", self.name, len(results), self._stats.trades)
        return results

    def stop(self) -> None:
        """Signal the read loop to stop after the current line."""
        self._stop_event.set()

    # -- Internal --------------------------------------------------------------

    def _set_state(self, state: DriverState) -> None:
        with self._lock:
            previous = self._state
            self._state = state
        if previous is not state:
            logger.debug("State %s -> %s", previous.value, state.value)

    def _consume_and_drain(self, source: BinaryIO) -> None:
        """Read until END, end-of-stream, stop or failure, then wait for workers."""
        in_flight = _InFlight()
        executor: Optional[ThreadPoolExecutor] = None
        if self._workers > 1:
            executor = ThreadPoolExecutor(
                max_workers=self._workers, thread_name_prefix="aggregator"
            )

        try:
            self._consume(source, executor, in_flight)
        finally:
            self._set_state(DriverState.DRAINING)
            in_flight.wait()
            if executor is not None:
                executor.shutdown(wait=True)

        if in_flight.error is not None:
            raise in_flight.error

    def _consume(
        self,
        source: BinaryIO,
        executor: Optional[ThreadPoolExecutor],
        in_flight: _InFlight,
    ) -> None:
        for line in frame(source):
            if self._stop_event.is_set():
                logger.info("Stop requested, no further input will be read")
                return

            if line.kind is LineKind.DATA:
                if self._strict_window and self.state is not DriverState.ACTIVE:
                    self._stats.add_out_of_window()
                    continue
                self._stats.add_trade()
                if executor is None:
                    self._process(line.raw)
                    continue
                in_flight.add()
                executor.submit(self._process, line.raw).add_done_callback(in_flight.done)
                if in_flight.error is not None:
                    logger.error("Worker failed, no further input will be read")
                    return

            elif line.kind is LineKind.BEGIN:
                if self.state is DriverState.IDLE:
                    self._set_state(DriverState.ACTIVE)

            elif line.kind is LineKind.END:
                logger.info("END received, no further input will be read")
                return

            else:
                self._stats.add_passthrough()
                self._forward(line.raw)

    def _forward(self, raw: bytes) -> None:
        """Write a passthrough line to the diagnostics sink, bytes untouched when possible."""
        sink = self._diagnostics if self._diagnostics is not None else sys.stderr
        buffer = getattr(sink, "buffer", None)
        if buffer is None:
            # text-only sink, undecodable bytes become U+FFFD
            sink.write(raw.decode("utf-8", errors="replace"))
            return
        sink.flush()
        buffer.write(raw)
        buffer.flush()

    def _process(self, raw: bytes) -> None:
        """Decode one data line and apply it to its market."""
        try:
            trade = decode_trade(raw)
        except MalformedTradeError as exc:
            if not self._skip_malformed:
                raise
            self._stats.add_malformed()
            logger.warning("Skipping %s", exc)
            return
        self._market_data.record(trade)

    def _publish(self, results: List[MarketResult], window_start: float, window_end: float) -> None:
        """Hand the results to each publisher in order, stopping at the first failure.

        Publishers after a failing one are not called, so a destination listed
        last only receives results once every earlier one succeeded.
        """
        key = f"aggregates/{window_start:.6f}-{window_end:.6f}"
        payload = [result.to_dict() for result in results]

        for index, pub in enumerate(self._publishers):
            try:
                pub.publish_json(key, payload)
            except Exception as exc:
                logger.error("Publish failed for %s: %s", key, exc)
                raise PublishError(
                    f"publisher {index + 1} of {len(self._publishers)} failed for {key}"
                ) from exc

        logger.info("Published %d market results to %s", len(results), key)
