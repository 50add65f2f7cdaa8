"""
Delivery Worker

Fixed-size pool of daemon threads consuming a single FIFO queue of
DeliveryTask. Transport calls, the only blocking I/O in the notifier, run
here and never on application threads.
"""

import logging
import queue
import threading
import time
from typing import List, Optional

from ..models import DeliveryTask

logger = logging.getLogger(__name__)

# Time to wait for queued and in-flight tasks on shutdown
DEFAULT_GRACE_PERIOD = 1.0

_STOP = object()


class DeliveryWorker:
    """
    Hands tasks to their transport on background threads.

    Usage:
        worker = DeliveryWorker(worker_count=2)
        worker.enqueue(task)
        ...
        dropped = worker.stop(grace_period=1.0)
    """

    def __init__(
        self,
        worker_count: int = 2,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        name: str = "snagwire-delivery",
    ):
        """
        Start the worker threads.

        Args:
            worker_count: Number of threads
            grace_period: Default drain timeout used by stop()
            name: Thread name prefix
        """
        self.grace_period = grace_period
        self._queue: "queue.Queue" = queue.Queue()
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._abandoned = threading.Event()
        self._accepting = True
        self._stopped = False
        self._pending = 0  # queued + in flight
        self._in_flight = 0
        self._dropped = 0

        self._threads: List[threading.Thread] = []
        for i in range(worker_count):
            thread = threading.Thread(target=self._run, name=f"{name}-{i + 1}", daemon=True)
            thread.start()
            self._threads.append(thread)

    @property
    def accepting(self) -> bool:
        return self._accepting

    def enqueue(self, task: DeliveryTask) -> bool:
        """
        Submit a task without blocking. The queue is unbounded.

        Returns:
            False if the worker has been stopped
        """
        with self._lock:
            if not self._accepting:
                logger.debug("Worker stopped, dropping %r", task)
                return False
            self._pending += 1
            self._queue.put(task)
        return True

    def pending_task_count(self) -> int:
        """Number of queued plus in-flight tasks."""
        with self._lock:
            return self._pending

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every submitted task has finished or ``timeout`` elapses."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def stop(self, grace_period: Optional[float] = None) -> int:
        """
        Stop accepting tasks and drain the queue.

        Waits up to the grace period for queued and in-flight tasks. Whatever
        is left after that is abandoned and reported in a single warning.

        Args:
            grace_period: Drain timeout in seconds (defaults to the worker's)

        Returns:
            Number of tasks that were not delivered
        """
        with self._lock:
            if self._stopped:
                return self._dropped
            self._stopped = True
            self._accepting = False
            # Sentinels go after every accepted task, so workers drain first
            for _ in self._threads:
                self._queue.put(_STOP)

        timeout = self.grace_period if grace_period is None else grace_period
        deadline = time.monotonic() + timeout
        for thread in self._threads:
            thread.join(max(0.0, deadline - time.monotonic()))

        if not any(t.is_alive() for t in self._threads):
            return 0

        with self._lock:
            self._abandoned.set()
            self._dropped = self._pending
            in_flight = self._in_flight

        if self._dropped:
            logger.warning(
                "Application terminated. %d error(s) were not sent "
                "(%d in flight, %d never started)",
                self._dropped,
                in_flight,
                self._dropped - in_flight,
            )
        return self._dropped

    def _run(self) -> None:
        while True:
            task = self._queue.get()
            if task is _STOP or self._abandoned.is_set():
                return

            with self._lock:
                self._in_flight += 1
            try:
                self._deliver(task)
            finally:
                with self._lock:
                    self._in_flight -= 1
                    self._pending -= 1
                    if self._pending == 0:
                        self._idle.notify_all()

    def _deliver(self, task: DeliveryTask) -> None:
        try:
            delivered = task.run()
        except Exception:
            logger.warning("Transport failed for %r, dropping it", task, exc_info=True)
            return

        if delivered is False:
            logger.debug("%r was not accepted, dropping it", task)
