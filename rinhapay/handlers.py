"""HTTP endpoint logic for accepting payments and reporting a summary."""

from __future__ import annotations

import itertools
import json
import threading
import time
from dataclasses import dataclass
from http import HTTPStatus

from rinhapay.payment import PaymentRequest, ValidationError
from rinhapay.processor import PaymentProcessor
from rinhapay.worker import DEFAULT_QUEUE_SIZE, WorkerPool

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


@dataclass(frozen=True)
class Response:
    """An HTTP response produced by a handler."""

    status: int
    body: bytes
    content_type: str = TEXT_CONTENT_TYPE


def _error(message: str, status: HTTPStatus) -> Response:
    return Response(int(status), (message + "\n").encode("utf-8"), TEXT_CONTENT_TYPE)


def _json(payload: object, status: HTTPStatus) -> Response:
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False) + "\n"
    return Response(int(status), body.encode("utf-8"), JSON_CONTENT_TYPE)


class PaymentHandler:
    """Accepts payments into a worker pool and reports processing counters."""

    def __init__(self, default_url: str, fallback_url: str, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self.processor = PaymentProcessor(default_url, fallback_url)
        self.worker_pool = WorkerPool(self.processor, queue_size)
        self._counter = itertools.count(1)
        self._counter_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._health_thread: threading.Thread | None = None
        self.worker_pool.start()

    def post_payments(self, method: str, body: bytes) -> Response:
        """Validate a posted payment and queue it for processing."""
        if method != "POST":
            return _error("Method not allowed", HTTPStatus.METHOD_NOT_ALLOWED)
        try:
            payment = PaymentRequest.from_json(body)
        except ValueError:
            return _error("Invalid JSON", HTTPStatus.BAD_REQUEST)
        try:
            payment.validate()
        except ValidationError as exc:
            return _error(str(exc), HTTPStatus.BAD_REQUEST)

        if not self.worker_pool.submit(payment):
            return _error("Service temporarily unavailable", HTTPStatus.SERVICE_UNAVAILABLE)

        with self._counter_lock:
            request_id = next(self._counter)
        return _json(
            {
                "id": f"req_{int(time.time())}_{request_id}",
                "message": "Payment queued for processing",
                "status": "accepted",
            },
            HTTPStatus.ACCEPTED,
        )

    def get_payments_summary(self, method: str) -> Response:
        """Return the processing counters as JSON."""
        if method != "GET":
            return _error("Method not allowed", HTTPStatus.METHOD_NOT_ALLOWED)
        return _json(self.processor.summary().to_dict(), HTTPStatus.OK)

    def start_health_checker(self) -> None:
        """Start probing unhealthy processors in the background."""
        if self._health_thread is not None:
            return
        self._health_thread = threading.Thread(
            target=self.processor.health_checker,
            args=(self._stop_event,),
            name="health-checker",
            daemon=True,
        )
        self._health_thread.start()

    def stop(self) -> None:
        """Stop the health checker and drain the worker pool."""
        self._stop_event.set()
        self.worker_pool.stop()
        if self._health_thread is not None:
            self._health_thread.join()