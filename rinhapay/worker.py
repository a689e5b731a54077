"""A pool of worker threads that process queued payments in small batches."""

from __future__ import annotations

import logging
import os
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from rinhapay.payment import PaymentRequest

log = logging.getLogger(__name__)

MAX_WORKERS = 100
WORKERS_PER_CPU = 4
BATCH_SIZE = 10
BATCH_PARALLELISM = 5
FLUSH_INTERVAL = 0.05
DEFAULT_QUEUE_SIZE = 20000


class _Processor(Protocol):
    def process_payment(self, payment: PaymentRequest) -> object: ...


def default_worker_count() -> int:
    """Return four workers per CPU, capped at the pool maximum."""
    cpus = os.cpu_count() or 1
    return min(cpus * WORKERS_PER_CPU, MAX_WORKERS)


class WorkerPool:
    """Processes submitted payments asynchronously on a fixed set of threads."""

    def __init__(
        self,
        processor: _Processor,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        worker_count: int | None = None,
    ) -> None:
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        if worker_count is None:
            worker_count = default_worker_count()
        if worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        self.processor = processor
        self.worker_count = worker_count
        self._queue: queue.Queue[PaymentRequest] = queue.Queue(maxsize=queue_size)
        self._closed = threading.Event()
        self._threads: list[threading.Thread] = []
        self._state_lock = threading.Lock()

    def start(self) -> None:
        """Start the worker threads."""
        with self._state_lock:
            if self._threads:
                raise RuntimeError("worker pool already started")
            if self._closed.is_set():
                raise RuntimeError("worker pool is stopped")
            self._threads = [
                threading.Thread(target=self._work, name=f"payment-worker-{n}", daemon=True)
                for n in range(self.worker_count)
            ]
            for thread in self._threads:
                thread.start()

    def stop(self) -> None:
        """Stop accepting payments, finish the queued ones and join the workers."""
        self._closed.set()
        with self._state_lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join()

    def submit(self, payment: PaymentRequest) -> bool:
        """Queue *payment* without blocking; return False if full or stopped."""
        if self._closed.is_set():
            return False
        try:
            self._queue.put_nowait(payment)
        except queue.Full:
            return False
        return True

    def queue_size(self) -> int:
        """Return the number of payments waiting in the queue."""
        return self._queue.qsize()

    def _work(self) -> None:
        batch: list[PaymentRequest] = []
        with ThreadPoolExecutor(max_workers=BATCH_PARALLELISM) as executor:
            deadline = time.monotonic() + FLUSH_INTERVAL
            while True:
                try:
                    payment = self._queue.get(timeout=max(0.0, deadline - time.monotonic()))
                except queue.Empty:
                    self._process_batch(executor, batch)
                    batch = []
                    if self._closed.is_set():
                        return
                    deadline = time.monotonic() + FLUSH_INTERVAL
                    continue

                batch.append(payment)
                if len(batch) >= BATCH_SIZE or time.monotonic() >= deadline:
                    self._process_batch(executor, batch)
                    batch = []
                    deadline = time.monotonic() + FLUSH_INTERVAL

    def _process_batch(self, executor: ThreadPoolExecutor, batch: list[PaymentRequest]) -> None:
        if batch:
            list(executor.map(self._process_one, batch))

    def _process_one(self, payment: PaymentRequest) -> None:
        try:
            self.processor.process_payment(payment)
        except Exception:
            log.exception("payment processing raised")