"""Request tracking shared by annotation services."""
from typing import Any, Dict, Optional

import time
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from grade_annotator.utils.logger import logger


class ServiceStatus(Enum):
    """Service status enumeration."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


class RequestOutcome(Enum):
    """How a tracked request ended."""
    ANNOTATED = "annotated"
    PARTIAL = "partial"
    FALLBACK = "fallback"
    FAILED = "failed"


@dataclass
class RequestRecord:
    """Handle yielded by :meth:`BaseService.track_request`.

    The caller sets ``outcome`` when a request that returned normally still
    did not annotate in place.
    """
    operation: Optional[str] = None
    outcome: RequestOutcome = RequestOutcome.ANNOTATED


@dataclass
class ServiceMetrics:
    """Per-outcome request counters."""
    service_name: str
    total_requests: int = 0
    outcomes: Dict[RequestOutcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in RequestOutcome}
    )
    average_response_time: float = 0.0
    last_request_time: Optional[datetime] = None
    last_failure_time: Optional[datetime] = None
    status: ServiceStatus = ServiceStatus.UNKNOWN

    @property
    def successful_requests(self) -> int:
        """Requests annotated in place."""
        return self.outcomes[RequestOutcome.ANNOTATED]

    @property
    def failed_requests(self) -> int:
        return self.outcomes[RequestOutcome.FAILED]

    @property
    def success_rate(self) -> float:
        """Percentage of requests annotated in place."""
        if self.total_requests == 0:
            return 0.0
        return (self.successful_requests / self.total_requests) * 100

    def record(self, outcome: RequestOutcome, response_time: float) -> None:
        self.total_requests += 1
        self.outcomes[outcome] += 1
        if self.average_response_time == 0:
            self.average_response_time = response_time
        else:
            # Exponential moving average
            alpha = 0.1
            self.average_response_time = (
                alpha * response_time + (1 - alpha) * self.average_response_time
            )

        if self.success_rate >= 95:
            self.status = ServiceStatus.HEALTHY
        elif self.success_rate >= 80:
            self.status = ServiceStatus.DEGRADED
        else:
            self.status = ServiceStatus.UNHEALTHY

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "service_name": self.service_name,
            "total_requests": self.total_requests,
            "outcomes": {outcome.value: count for outcome, count in self.outcomes.items()},
            "success_rate": self.success_rate,
            "average_response_time": self.average_response_time,
            "last_request_time": self.last_request_time.isoformat() if self.last_request_time else None,
            "last_failure_time": self.last_failure_time.isoformat() if self.last_failure_time else None,
            "status": self.status.value,
        }


class BaseService(ABC):
    """Base service class providing request tracking and health status.

    Fallback and partial outcomes count against the success rate, so a
    service that keeps falling back to reports turns DEGRADED and then
    UNHEALTHY even though it never raises.
    """

    def __init__(self, service_name: str):
        self.service_name = service_name
        self.metrics = ServiceMetrics(service_name=service_name)
        self._lock = threading.RLock()
        self._initialized = False

        logger.debug(f"Initialized {self.service_name} service")

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize the service.

        Returns:
            bool: True if initialization successful, False otherwise
        """

    @abstractmethod
    def health_check(self) -> bool:
        """Perform health check."""

    def is_initialized(self) -> bool:
        return self._initialized

    def get_status(self) -> ServiceStatus:
        return self.metrics.status

    def get_metrics(self) -> ServiceMetrics:
        with self._lock:
            return self.metrics

    @contextmanager
    def track_request(self, operation_name=None):
        """Context manager to track request metrics.

        Yields a :class:`RequestRecord`; an exception escaping the block
        is recorded as FAILED and re-raised.
        """
        start_time = time.time()
        record = RequestRecord(operation=operation_name)
        with self._lock:
            self.metrics.last_request_time = datetime.now(timezone.utc)

        try:
            yield record
        except Exception as e:
            with self._lock:
                self.metrics.record(RequestOutcome.FAILED, time.time() - start_time)
                self.metrics.last_failure_time = datetime.now(timezone.utc)
            logger.error(f"Request failed in {self.service_name}: {str(e)}")
            raise

        with self._lock:
            self.metrics.record(record.outcome, time.time() - start_time)
        if record.outcome is not RequestOutcome.ANNOTATED:
            logger.debug(f"{self.service_name} {operation_name or 'request'} ended as {record.outcome.value}")

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.service_name})"
