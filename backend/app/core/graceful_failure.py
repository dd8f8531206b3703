"""
Graceful failure utilities.

Reusable context manager for non-critical operations that should not block
the main execution flow: attempt the operation, log any exception with
context, continue without raising.

Used for blob cleanup when a response is deleted and for metric recording.
Engine failures that must reach the caller are raised as
``app.core.exceptions.AssessmentError`` instead.

Usage:
    from app.core.graceful_failure import graceful_failure

    with graceful_failure("delete video blob", logger, context={"blob": ref}):
        storage.delete(ref)
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional

from app.observability import metrics


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """Context manager for non-critical operations that should not block execution.

    Unlike engine failures, exceptions raised inside the block are logged and
    swallowed: the session is not rolled back and nothing propagates.

    Args:
        operation_name: Human-readable name of the operation for logging
            (e.g., "delete video blob").
        logger: The logger instance to use for logging errors.
        log_level: Logging level for error messages. Defaults to WARNING.
        exc_info: Whether to include exception traceback in log. Defaults to False.
        context: Optional dictionary of additional context to include in log message
            (e.g., {"test_instance_id": "..."}).

    Example:
        >>> with graceful_failure(
        ...     "delete video blob",
        ...     logger,
        ...     context={"video_response_id": video.id},
        ... ):
        ...     storage.delete(video.blob_reference)
    """
    try:
        yield
    except Exception as e:
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            message = f"Failed to {operation_name} ({context_str}): {e}"
        else:
            message = f"Failed to {operation_name}: {e}"

        logger.log(log_level, message, exc_info=exc_info)

        try:
            metrics.record_error(error_type="GracefulFailure")
        except Exception:
            pass  # Metrics recording should not break graceful failure handling
