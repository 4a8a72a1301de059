"""Tests for the shared logger."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from grade_annotator.utils.logger import Logger, logger


class TestLogger:
    """Test cases for the process-wide logger."""

    @pytest.fixture(autouse=True)
    def restore_metrics(self):
        saved = dict(logger.metrics)
        yield
        logger.metrics.clear()
        logger.metrics.update(saved)

    def test_singleton(self):
        assert Logger() is logger

    def test_log_metric_counts_known_metrics_only(self):
        before = logger.metrics["rasterizations"]
        logger.log_metric("rasterizations")
        logger.log_metric("rasterizations", 2)
        logger.log_metric("not_a_metric")

        assert logger.metrics["rasterizations"] == before + 3
        assert "not_a_metric" not in logger.metrics

    def test_log_annotation_counts_fallbacks(self):
        annotated = logger.metrics["documents_annotated"]
        fallbacks = logger.metrics["fallbacks"]

        logger.log_annotation("essay.docx", "docx", 2, used_fallback=False)
        logger.log_annotation("scan.pdf", "pdf", 0, used_fallback=True)

        assert logger.metrics["documents_annotated"] == annotated + 2
        assert logger.metrics["fallbacks"] == fallbacks + 1

    def test_warnings_and_errors_are_counted(self):
        warnings = logger.metrics["warnings"]
        errors = logger.metrics["errors"]

        logger.log_warning("Skipping region", {"page": 0})
        logger.log_error_with_context(ValueError("bad"), {"file": "a.pdf"})

        assert logger.metrics["warnings"] == warnings + 1
        assert logger.metrics["errors"] == errors + 1

    def test_concurrent_metric_updates_are_not_lost(self):
        before = logger.metrics["placeholders_located"]

        def bump(_):
            for _ in range(500):
                logger.log_metric("placeholders_located")

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(bump, range(8)))

        assert logger.metrics["placeholders_located"] == before + 4000
