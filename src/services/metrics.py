"""CloudWatch custom metrics for the outbound provider calls.

Every call the gateways make to Google Calendar or the SMS provider is
wrapped in ``metrics.track(service, operation)``, which records a request
count, a latency sample and, on failure, an error count keyed by exception
type.

* Data points are buffered in memory behind a lock.
* With ``METRICS_ENABLED=true`` a daemon thread pushes the buffer to
  CloudWatch every ``FLUSH_INTERVAL_SECONDS``; otherwise data points are
  only logged at DEBUG and never buffered.
* ``put_metric_data`` accepts at most ``MAX_BATCH_SIZE`` points per call.

>>> from src.services.metrics import metrics
>>> with metrics.track("google_calendar", "freebusy.query"):
...     service.freebusy().query(body=body).execute()
"""

from __future__ import annotations

import atexit
import logging
import os
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

NAMESPACE = "RefreshPainting"
FLUSH_INTERVAL_SECONDS = 60
MAX_BATCH_SIZE = 1_000  # CloudWatch API limit per PutMetricData call


class MetricsClient:
    """Batched CloudWatch publisher for provider-call metrics."""

    def __init__(self, enabled: bool | None = None) -> None:
        if enabled is None:
            enabled = os.getenv("METRICS_ENABLED", "false").lower() == "true"
        self._enabled = enabled
        self._buffer: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._cw_client = None

        if self._enabled:
            self._start_flush_thread()

    def _get_cw_client(self):
        if self._cw_client is None:
            import boto3  # noqa: PLC0415 - only needed when metrics are pushed

            self._cw_client = boto3.client("cloudwatch")
        return self._cw_client

    # ── Recording ─────────────────────────────────────────────────────

    @contextmanager
    def track(self, service: str, operation: str) -> Iterator[None]:
        """Time the wrapped block and record its outcome.

        Exceptions are recorded and re-raised unchanged.
        """
        started = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.record_failure(
                service, operation,
                error_type=type(exc).__name__,
                latency_ms=(time.perf_counter() - started) * 1000,
            )
            raise
        self.record_success(
            service, operation, latency_ms=(time.perf_counter() - started) * 1000,
        )

    def record_success(self, service: str, operation: str, latency_ms: float) -> None:
        now = datetime.now(UTC)
        self._append(self._point("RequestCount", now, 1, "Count",
                                 Service=service, Status="success"))
        self._append(self._point("Latency", now, latency_ms, "Milliseconds",
                                 Service=service, Operation=operation))
        logger.debug("Metric: %s %s success latency=%.1fms", service, operation, latency_ms)

    def record_failure(
        self,
        service: str,
        operation: str,
        error_type: str,
        latency_ms: float = 0,
    ) -> None:
        now = datetime.now(UTC)
        self._append(self._point("RequestCount", now, 1, "Count",
                                 Service=service, Status="failure"))
        self._append(self._point("ErrorCount", now, 1, "Count",
                                 Service=service, ErrorType=error_type))
        if latency_ms > 0:
            self._append(self._point("Latency", now, latency_ms, "Milliseconds",
                                     Service=service, Operation=operation))
        logger.debug(
            "Metric: %s %s failure error=%s latency=%.1fms",
            service, operation, error_type, latency_ms,
        )

    @staticmethod
    def _point(
        name: str, timestamp: datetime, value: float, unit: str, **dimensions: str,
    ) -> dict[str, Any]:
        return {
            "MetricName": f"Provider/{name}",
            "Dimensions": [{"Name": k, "Value": v} for k, v in dimensions.items()],
            "Timestamp": timestamp,
            "Value": value,
            "Unit": unit,
        }

    # ── Publishing ────────────────────────────────────────────────────

    def flush(self) -> int:
        """Send buffered metrics to CloudWatch.  Returns count sent."""
        with self._lock:
            if not self._buffer:
                return 0
            batch = self._buffer[:]
            self._buffer.clear()

        if not self._enabled:
            logger.debug("Metrics flush skipped (not enabled): %d items", len(batch))
            return 0

        sent = 0
        try:
            cw = self._get_cw_client()
            for i in range(0, len(batch), MAX_BATCH_SIZE):
                chunk = batch[i : i + MAX_BATCH_SIZE]
                cw.put_metric_data(Namespace=NAMESPACE, MetricData=chunk)
                sent += len(chunk)
            logger.info("Flushed %d metrics to CloudWatch", sent)
        except Exception:
            logger.exception("Failed to flush metrics to CloudWatch")
        return sent

    def _append(self, metric_data: dict[str, Any]) -> None:
        # Nothing would ever drain the buffer when publishing is off
        if not self._enabled:
            return
        with self._lock:
            self._buffer.append(metric_data)

    def _start_flush_thread(self) -> None:
        def _loop():
            while True:
                time.sleep(FLUSH_INTERVAL_SECONDS)
                try:
                    self.flush()
                except Exception:
                    logger.exception("Metrics flush thread error")

        t = threading.Thread(target=_loop, daemon=True, name="metrics-flush")
        t.start()
        atexit.register(self.flush)
        logger.info("Metrics flush thread started (interval=%ds)", FLUSH_INTERVAL_SECONDS)


# ── Module-level singleton ──────────────────────────────────────────
metrics = MetricsClient()
