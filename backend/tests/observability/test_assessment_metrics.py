"""
Tests for the Prometheus counters and Sentry helpers.
"""
from unittest.mock import patch

from prometheus_client import CollectorRegistry

from app import observability
from app.observability import ApplicationMetrics, capture_error


class TestApplicationMetrics:
    def test_counters_increment_per_label(self):
        metrics = ApplicationMetrics(registry=CollectorRegistry())

        metrics.record_test_created("math")
        metrics.record_test_created("math")
        metrics.record_test_submitted("psychology")
        metrics.record_video_upload("interview")
        metrics.record_error("ConflictError")

        get = metrics.registry.get_sample_value
        assert get("assessment_tests_created_total", {"test_type": "math"}) == 2
        assert get("assessment_tests_submitted_total", {"test_type": "psychology"}) == 1
        assert get("assessment_video_uploads_total", {"test_type": "interview"}) == 1
        assert get("assessment_errors_total", {"error_type": "ConflictError"}) == 1

    def test_instances_do_not_share_registry(self):
        first = ApplicationMetrics()
        second = ApplicationMetrics()

        first.record_test_created("math")

        assert (
            second.registry.get_sample_value(
                "assessment_tests_created_total", {"test_type": "math"}
            )
            is None
        )

    def test_render_exposition_format(self):
        metrics = ApplicationMetrics()
        metrics.record_test_created("portuguese")

        output = metrics.render().decode("utf-8")

        assert 'assessment_tests_created_total{test_type="portuguese"} 1.0' in output


class TestSentryHelpers:
    def test_capture_error_noop_when_not_initialized(self):
        with patch.object(observability, "_sentry_initialized", False):
            assert capture_error(RuntimeError("boom")) is None

    def test_init_without_dsn_is_disabled(self):
        with patch.object(observability, "_sentry_initialized", False), patch.object(
            observability.settings, "SENTRY_DSN", ""
        ):
            assert observability.init_sentry() is False

    def test_capture_error_sends_to_sentry(self):
        with patch.object(observability, "_sentry_initialized", True), patch(
            "app.observability.sentry_sdk.capture_exception", return_value="event-1"
        ) as capture:
            event_id = capture_error(
                RuntimeError("boom"),
                context={"test_instance_id": "t-1"},
                tags={"error_type": "RuntimeError"},
            )

        assert event_id == "event-1"
        capture.assert_called_once()
