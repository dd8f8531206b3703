"""
Error tracking and application metrics.

- Sentry is initialised at startup when SENTRY_DSN is set; ``capture_error``
  is a no-op otherwise.
- Prometheus counters for the assessment lifecycle, exposed at ``/metrics``.

Usage:
    from app.observability import metrics

    metrics.record_test_created("math")
    metrics.record_error(error_type="GracefulFailure")
"""
import logging
from typing import Any, Optional

import sentry_sdk
from prometheus_client import CollectorRegistry, Counter, generate_latest

from app.core.config import settings

logger = logging.getLogger(__name__)

_sentry_initialized = False


def init_sentry() -> bool:
    """Initialise the Sentry SDK if a DSN is configured.

    Returns:
        True if Sentry is active after the call.
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True
    if not settings.SENTRY_DSN:
        logger.info("Sentry disabled (SENTRY_DSN not set)")
        return False

    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENV,
            release=settings.APP_VERSION,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            send_default_pii=False,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
        return False

    _sentry_initialized = True
    logger.info(
        f"Sentry initialized for environment '{settings.ENV}' "
        f"with {settings.SENTRY_TRACES_SAMPLE_RATE * 100:.0f}% trace sampling"
    )
    return True


def capture_error(
    exception: BaseException,
    *,
    context: Optional[dict[str, Any]] = None,
    tags: Optional[dict[str, str]] = None,
) -> Optional[str]:
    """Send an exception to Sentry with extra context.

    Returns:
        Event ID if captured, None if Sentry is not initialised.
    """
    if not _sentry_initialized:
        return None

    with sentry_sdk.new_scope() as scope:
        if context:
            scope.set_context("additional", {k: str(v) for k, v in context.items()})
        if tags:
            for key, value in tags.items():
                scope.set_tag(key, value)
        return sentry_sdk.capture_exception(exception)


class ApplicationMetrics:
    """
    Prometheus counters for the assessment lifecycle.

    Counters live in their own registry so that several instances (one per
    test, for example) never collide in the global default registry.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.tests_created = Counter(
            "assessment_tests_created_total",
            "Test instances created",
            ["test_type"],
            registry=self.registry,
        )
        self.tests_submitted = Counter(
            "assessment_tests_submitted_total",
            "Test instances submitted and graded",
            ["test_type"],
            registry=self.registry,
        )
        self.video_uploads = Counter(
            "assessment_video_uploads_total",
            "Video responses accepted",
            ["test_type"],
            registry=self.registry,
        )
        self.errors = Counter(
            "assessment_errors_total",
            "Errors by type",
            ["error_type"],
            registry=self.registry,
        )

    def record_test_created(self, test_type: str) -> None:
        self.tests_created.labels(test_type=test_type).inc()

    def record_test_submitted(self, test_type: str) -> None:
        self.tests_submitted.labels(test_type=test_type).inc()

    def record_video_upload(self, test_type: str) -> None:
        self.video_uploads.labels(test_type=test_type).inc()

    def record_error(self, error_type: str) -> None:
        self.errors.labels(error_type=error_type).inc()

    def render(self) -> bytes:
        """Current metrics in Prometheus exposition format."""
        return generate_latest(self.registry)


metrics = ApplicationMetrics()
