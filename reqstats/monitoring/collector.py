"""
In-memory request stats: rolling (per reset interval) and cumulative status code counts
plus cumulative response time. Thread-safe; one instance per service.
"""
import logging
import os
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from reqstats.monitoring.recorder import DEFAULT_STATUS, Recorder, Send
from reqstats.monitoring.report import Report, build_report

logger = logging.getLogger(__name__)

RESET_INTERVAL_SECONDS = 1.0


def status_key(status: int | str) -> str:
    """Canonical decimal form used as the counter key ("0200" and 200 both give "200")."""
    return str(int(status))


class _ReadWriteLock:
    """Many readers or one writer. Waiting writers block new readers so they cannot starve."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers_waiting = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writing or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class Collector:
    """
    Aggregates request outcomes. Call start() to launch the background thread that
    clears rolling counts every reset_interval seconds, and stop() on shutdown.
    Recording and snapshots work whether or not the thread is running.
    """

    def __init__(
        self,
        reset_interval: float = RESET_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if reset_interval <= 0:
            raise ValueError("reset_interval must be positive")
        self._reset_interval = reset_interval
        self._clock = clock
        self.started_at = datetime.now(timezone.utc)
        self._started_clock = clock()
        self.pid = os.getpid()

        self._lock = _ReadWriteLock()
        self._rolling_counts: dict[str, int] = {}
        self._total_counts: dict[str, int] = {}
        self._total_response_time = 0.0

        self._lifecycle_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._stopped = False

    # --- Lifecycle ---

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Launch the reset thread. Raises RuntimeError if already started or stopped."""
        with self._lifecycle_lock:
            if self._stopped:
                raise RuntimeError("collector is stopped and cannot be restarted")
            if self._thread is not None:
                raise RuntimeError("collector already started")
            self._thread = threading.Thread(
                target=self._reset_loop,
                name="reqstats-reset",
                daemon=True,
            )
            self._thread.start()
        logger.info("telemetry stats_collector_started reset_interval=%s", self._reset_interval)

    def stop(self) -> None:
        """Stop the reset thread and wait for it to exit. A second call does nothing."""
        with self._lifecycle_lock:
            if self._stopped:
                return
            self._stopped = True
            self._stop_event.set()
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        logger.info("telemetry stats_collector_stopped")

    def _reset_loop(self) -> None:
        while not self._stop_event.wait(self._reset_interval):
            self.reset_rolling()

    # --- Recording ---

    def begin(self, send: Send, default_status: int = DEFAULT_STATUS) -> tuple[float, Recorder]:
        """Start timing a request; the returned Recorder replaces its send callable."""
        return self._clock(), Recorder(send, default_status)

    def end(self, start: float, recorder: Recorder) -> float:
        """Record a finished request with the status its Recorder captured."""
        return self.end_with_status(start, recorder.status)

    def end_with_status(self, start: float, status: int | str) -> float:
        """Record a finished request with an explicit status. Returns elapsed seconds."""
        elapsed = self._clock() - start
        self.record_outcome(elapsed, status)
        return elapsed

    def record_outcome(self, elapsed: float, status: int | str) -> None:
        key = status_key(status)
        with self._lock.write():
            self._rolling_counts[key] = self._rolling_counts.get(key, 0) + 1
            self._total_counts[key] = self._total_counts.get(key, 0) + 1
            self._total_response_time += elapsed

    def reset_rolling(self) -> None:
        """Clear rolling counts; cumulative counts and time are kept."""
        with self._lock.write():
            self._rolling_counts = {}
        logger.debug("telemetry stats_rolling_reset")

    # --- Reading ---

    def snapshot(self) -> Report:
        with self._lock.read():
            rolling_counts = dict(self._rolling_counts)
            total_counts = dict(self._total_counts)
            total_response_time = self._total_response_time
            uptime = self._clock() - self._started_clock
            now = datetime.now(timezone.utc)
        return build_report(
            pid=self.pid,
            uptime_sec=uptime,
            now=now,
            rolling_counts=rolling_counts,
            total_counts=total_counts,
            total_response_time_sec=total_response_time,
        )
