"""Unit tests for base service request tracking."""

import pytest

from grade_annotator.services import BaseService, RequestOutcome, ServiceMetrics, ServiceStatus


class MockService(BaseService):
    """Mock service for testing."""

    def __init__(self, service_name: str):
        super().__init__(service_name)
        self._initialized = self.initialize()

    def initialize(self) -> bool:
        return True

    def health_check(self) -> bool:
        return True


class TestServiceMetrics:
    """Test cases for ServiceMetrics."""

    def test_metrics_initialization(self):
        """Test metrics initialization."""
        metrics = ServiceMetrics("test_service")

        assert metrics.total_requests == 0
        assert metrics.average_response_time == 0.0
        assert metrics.status == ServiceStatus.UNKNOWN
        assert metrics.success_rate == 0.0
        assert set(metrics.outcomes) == set(RequestOutcome)

    def test_only_in_place_annotations_count_as_success(self):
        metrics = ServiceMetrics("test_service")
        for _ in range(8):
            metrics.record(RequestOutcome.ANNOTATED, 0.1)
        metrics.record(RequestOutcome.FALLBACK, 0.1)
        metrics.record(RequestOutcome.PARTIAL, 0.1)

        assert metrics.success_rate == 80.0
        assert metrics.status == ServiceStatus.DEGRADED

    def test_response_time_is_smoothed(self):
        metrics = ServiceMetrics("test_service")
        metrics.record(RequestOutcome.ANNOTATED, 1.0)
        metrics.record(RequestOutcome.ANNOTATED, 2.0)

        assert metrics.average_response_time == pytest.approx(1.1)

    def test_to_dict(self):
        metrics = ServiceMetrics("test_service")
        metrics.record(RequestOutcome.FALLBACK, 0.2)

        data = metrics.to_dict()
        assert data["outcomes"]["fallback"] == 1
        assert data["outcomes"]["annotated"] == 0
        assert data["status"] == "unhealthy"


class TestBaseService:
    """Test cases for BaseService."""

    def test_service_initialization(self):
        """Test service initialization."""
        service = MockService("test_service")

        assert service.service_name == "test_service"
        assert service.is_initialized()
        assert service.get_status() == ServiceStatus.UNKNOWN
        assert str(service) == "MockService(test_service)"

    def test_track_request_success(self):
        """Test request tracking for successful requests."""
        service = MockService("test_service")

        with service.track_request("annotate") as record:
            assert record.operation == "annotate"

        metrics = service.get_metrics()
        assert metrics.total_requests == 1
        assert metrics.successful_requests == 1
        assert metrics.last_request_time is not None
        assert metrics.status == ServiceStatus.HEALTHY

    def test_outcome_set_by_caller(self):
        service = MockService("test_service")

        with service.track_request("annotate") as record:
            record.outcome = RequestOutcome.FALLBACK

        metrics = service.get_metrics()
        assert metrics.outcomes[RequestOutcome.FALLBACK] == 1
        assert metrics.successful_requests == 0
        assert metrics.status == ServiceStatus.UNHEALTHY

    def test_track_request_failure(self):
        """Test request tracking for failed requests."""
        service = MockService("test_service")

        with pytest.raises(ValueError):
            with service.track_request():
                raise ValueError("Test error")

        metrics = service.get_metrics()
        assert metrics.failed_requests == 1
        assert metrics.last_failure_time is not None
        assert metrics.status == ServiceStatus.UNHEALTHY
