import threading
import time

import pytest

from rinhapay.payment import PaymentRequest
from rinhapay.worker import BATCH_PARALLELISM, MAX_WORKERS, WorkerPool, default_worker_count


class RecordingProcessor:
    def __init__(self, delay=0.0, fail_on=()):
        self.delay = delay
        self.fail_on = set(fail_on)
        self.amounts = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def process_payment(self, payment):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if payment.amount in self.fail_on:
                raise RuntimeError("boom")
            with self._lock:
                self.amounts.append(payment.amount)
        finally:
            with self._lock:
                self.active -= 1


def _payment(amount):
    return PaymentRequest(amount=amount, type="credit")


def test_submit_rejects_when_queue_full():
    pool = WorkerPool(RecordingProcessor(), queue_size=2, worker_count=1)
    assert pool.submit(_payment(1)) is True
    assert pool.submit(_payment(2)) is True
    assert pool.submit(_payment(3)) is False
    assert pool.queue_size() == 2


def test_stop_processes_everything_queued():
    processor = RecordingProcessor()
    pool = WorkerPool(processor, queue_size=100, worker_count=3)
    pool.start()
    amounts = list(range(1, 26))
    for amount in amounts:
        assert pool.submit(_payment(amount))
    pool.stop()
    assert sorted(processor.amounts) == amounts
    assert pool.queue_size() == 0


def test_partial_batch_is_flushed_without_stop():
    processor = RecordingProcessor()
    pool = WorkerPool(processor, queue_size=10, worker_count=1)
    pool.start()
    try:
        pool.submit(_payment(7))
        deadline = time.monotonic() + 2.0
        while not processor.amounts and time.monotonic() < deadline:
            time.sleep(0.01)
        assert processor.amounts == [7]
    finally:
        pool.stop()


def test_batch_parallelism_is_bounded():
    processor = RecordingProcessor(delay=0.02)
    pool = WorkerPool(processor, queue_size=50, worker_count=1)
    for amount in range(1, 21):
        pool.submit(_payment(amount))
    pool.start()
    pool.stop()
    assert len(processor.amounts) == 20
    assert 1 <= processor.max_active <= BATCH_PARALLELISM


def test_failing_payment_does_not_stop_worker():
    processor = RecordingProcessor(fail_on={2})
    pool = WorkerPool(processor, queue_size=10, worker_count=1)
    pool.start()
    for amount in (1, 2, 3):
        pool.submit(_payment(amount))
    pool.stop()
    assert sorted(processor.amounts) == [1, 3]


def test_submit_after_stop_is_rejected():
    pool = WorkerPool(RecordingProcessor(), queue_size=10, worker_count=1)
    pool.start()
    pool.stop()
    assert pool.submit(_payment(1)) is False
    assert pool.queue_size() == 0


def test_start_twice_raises():
    pool = WorkerPool(RecordingProcessor(), queue_size=10, worker_count=1)
    pool.start()
    try:
        with pytest.raises(RuntimeError):
            pool.start()
    finally:
        pool.stop()


@pytest.mark.parametrize("queue_size, worker_count", [(0, 1), (10, 0)])
def test_invalid_sizes_raise(queue_size, worker_count):
    with pytest.raises(ValueError):
        WorkerPool(RecordingProcessor(), queue_size=queue_size, worker_count=worker_count)


def test_default_worker_count_is_capped(monkeypatch):
    monkeypatch.setattr("os.cpu_count", lambda: 64)
    assert default_worker_count() == MAX_WORKERS


def test_default_worker_count_within_bounds():
    assert 1 <= default_worker_count() <= MAX_WORKERS