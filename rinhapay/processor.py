"""Forwarding payments to a default processor with a fallback."""

from __future__ import annotations

import logging
import threading
import time
import urllib.error
import urllib.request
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from rinhapay.payment import PaymentRequest, PaymentSummary, ProcessorResult

log = logging.getLogger(__name__)

FAILURE_THRESHOLD = 3
DEFAULT_TIMEOUT = 0.3
PING_TIMEOUT = 0.2
HEALTH_CHECK_INTERVAL = 10.0


def health_url(url: str) -> str:
    """Return the URL used to probe the processor at *url*."""
    if "httpbin.org" in url:
        if "/post" in url:
            return url.replace("/post", "/get", 1)
        return url
    return url + "/health"


@dataclass
class ProcessorStatus:
    """Health state of one processor, acting as a simple circuit breaker."""

    is_healthy: bool = True
    failure_count: int = 0
    last_check_time: int = 0
    response_time_ms: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def mark_healthy(self) -> None:
        """Close the circuit and reset the failure count."""
        with self._lock:
            self.is_healthy = True
            self.failure_count = 0
            self.last_check_time = int(time.time())

    def mark_unhealthy(self) -> None:
        """Record a failure; open the circuit after enough of them."""
        with self._lock:
            self.failure_count += 1
            if self.failure_count >= FAILURE_THRESHOLD:
                self.is_healthy = False
            self.last_check_time = int(time.time())

    def record_response_time(self, millis: int) -> None:
        with self._lock:
            self.response_time_ms = millis


class PaymentProcessor:
    """Sends payments to the default processor, falling back when needed."""

    def __init__(self, default_url: str, fallback_url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.default_url = default_url
        self.fallback_url = fallback_url
        self.timeout = timeout
        self.default_status = ProcessorStatus()
        self.fallback_status = ProcessorStatus()
        self._lock = threading.Lock()
        self._total_payments = 0
        self._default_success = 0
        self._fallback_success = 0
        self._total_errors = 0

    def process_payment(self, payment: PaymentRequest) -> ProcessorResult:
        """Process *payment*, trying the default processor then the fallback."""
        with self._lock:
            self._total_payments += 1
        log.info("processing payment amount=%d type=%s", payment.amount, payment.type)

        targets = (
            (self.default_url, "default", self.default_status),
            (self.fallback_url, "fallback", self.fallback_status),
        )
        for url, processor_id, status in targets:
            log.debug("%s processor healthy: %s", processor_id, status.is_healthy)
            if not status.is_healthy:
                continue
            result = self._send(url, processor_id, payment, status)
            if result.success:
                with self._lock:
                    if processor_id == "default":
                        self._default_success += 1
                    else:
                        self._fallback_success += 1
                log.info("%s processor succeeded", processor_id)
                return result
            log.warning("%s processor failed: %s", processor_id, result.error)

        with self._lock:
            self._total_errors += 1
        log.error("all processors failed, payment rejected")
        return ProcessorResult(success=False, processor_id="none", error="all processors unavailable")

    def _send(
        self, url: str, processor_id: str, payment: PaymentRequest, status: ProcessorStatus
    ) -> ProcessorResult:
        start = time.monotonic()
        request = urllib.request.Request(
            url,
            data=payment.to_json(),
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                code = response.status
        except urllib.error.HTTPError as exc:
            code = exc.code
            exc.close()
        except (OSError, ValueError) as exc:
            status.mark_unhealthy()
            return ProcessorResult(success=False, processor_id=processor_id, error=str(exc))

        status.record_response_time(int((time.monotonic() - start) * 1000))

        if 200 <= code < 300:
            status.mark_healthy()
            return ProcessorResult(success=True, processor_id=processor_id)
        if code == 429 or code >= 500:
            status.mark_unhealthy()
        return ProcessorResult(success=False, processor_id=processor_id, error=f"HTTP {code}")

    def summary(self) -> PaymentSummary:
        """Return a snapshot of the processing counters."""
        with self._lock:
            return PaymentSummary(
                total_payments=self._total_payments,
                default_success=self._default_success,
                fallback_success=self._fallback_success,
                total_errors=self._total_errors,
            )

    def health_checker(self, stop_event: threading.Event, interval: float = HEALTH_CHECK_INTERVAL) -> None:
        """Probe unhealthy processors every *interval* seconds until stopped."""
        while not stop_event.wait(interval):
            self.check_processor_health()

    def check_processor_health(self) -> None:
        """Probe both processors concurrently and revive those that answer."""
        targets = (
            (self.default_url, self.default_status),
            (self.fallback_url, self.fallback_status),
        )

        def revive(url: str, status: ProcessorStatus) -> None:
            if not status.is_healthy and self.ping_processor(url):
                status.mark_healthy()

        with ThreadPoolExecutor(max_workers=len(targets)) as pool:
            for future in [pool.submit(revive, url, status) for url, status in targets]:
                future.result()

    def ping_processor(self, url: str) -> bool:
        """Return True if the processor's health endpoint answers 200."""
        request = urllib.request.Request(health_url(url), method="GET")
        try:
            with urllib.request.urlopen(request, timeout=PING_TIMEOUT) as response:
                return response.status == 200
        except urllib.error.HTTPError as exc:
            exc.close()
            return False
        except (OSError, ValueError):
            return False