"""
utils/live_analysis.py — Fixed-interval re-analysis loop and scoped camera streams.

LiveAnalysisLoop fires one analysis per interval. Each tick runs in its
own worker thread and does not wait for earlier ticks, so calls that
outlive the interval overlap. Results are applied in completion order:
the last response to land wins, including a stale one from an earlier
tick. There is no dedup, no queue and no failure budget.

acquire_stream() wraps a media stream (anything exposing get_tracks(),
each track exposing stop()) and stops every track on exit, whichever way
the block is left.
"""

import logging
import threading
from collections import deque
from contextlib import contextmanager

logger = logging.getLogger(__name__)

ANALYSIS_INTERVAL = 10.0

# Completed tick numbers kept for inspection, oldest dropped first
COMPLETED_HISTORY = 100


class LiveAnalysisLoop:
    """Best-effort single-timer polling of an analysis callable."""

    def __init__(self, analyze, interval=ANALYSIS_INTERVAL, on_result=None):
        self.analyze = analyze
        self.interval = interval
        self.on_result = on_result
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._timer = None
        self._ticks = 0
        self._in_flight = 0
        self._latest = None
        self._latest_tick = None
        self.completed = deque(maxlen=COMPLETED_HISTORY)

    @property
    def latest(self):
        """Result of the most recently completed call."""
        with self._lock:
            return self._latest

    @property
    def latest_tick(self):
        with self._lock:
            return self._latest_tick

    @property
    def in_flight(self):
        with self._lock:
            return self._in_flight

    @property
    def running(self):
        return self._timer is not None and self._timer.is_alive()

    def start(self):
        """Start the timer. A second start while running is a no-op."""
        if self.running:
            return
        self._stop.clear()
        self._timer = threading.Thread(target=self._run, name='live-analysis', daemon=True)
        self._timer.start()

    def stop(self):
        """Stop the timer. Calls already in flight still complete and apply."""
        self._stop.set()
        if self._timer is not None:
            self._timer.join()
            self._timer = None

    def _run(self):
        while not self._stop.wait(self.interval):
            self.tick()

    def tick(self):
        """Start one analysis now; returns the worker thread."""
        with self._lock:
            self._ticks += 1
            tick = self._ticks
            self._in_flight += 1
        worker = threading.Thread(target=self._execute, args=(tick,), daemon=True)
        worker.start()
        return worker

    def _execute(self, tick):
        try:
            result = self.analyze()
        except Exception:
            logger.exception("Live analysis tick %d failed", tick)
            with self._lock:
                self._in_flight -= 1
            return

        with self._lock:
            self._in_flight -= 1
            self._latest = result
            self._latest_tick = tick
            self.completed.append(tick)

        if self.on_result is not None:
            self.on_result(tick, result)


def release_stream(stream):
    """Stop every track of a stream."""
    for track in stream.get_tracks():
        track.stop()


@contextmanager
def acquire_stream(open_stream):
    """
    Open a media stream for the duration of a block.

    Args:
        open_stream: Zero-argument callable returning the stream.

    Yields:
        The open stream. All its tracks are stopped on exit.
    """
    stream = open_stream()
    try:
        yield stream
    finally:
        release_stream(stream)
        logger.debug("Media stream released")
