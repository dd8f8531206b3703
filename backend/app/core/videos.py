"""
Video response upload and management.

Files are validated before any byte reaches blob storage. Only the opaque
blob reference and metadata are stored in the database.
"""
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import BinaryIO, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.datetime_utils import utc_now
from app.core.exceptions import InvalidMediaError, NotFoundError
from app.core.graceful_failure import graceful_failure
from app.core.test_access import ensure_not_submitted, get_owned_test
from app.models.models import (
    QuestionSnapshot,
    TestInstance,
    VideoResponse,
    VideoResponseType,
)
from app.observability import metrics
from app.storage.blob_storage import BlobStorage

logger = logging.getLogger(__name__)


@dataclass
class VideoUpload:
    """An incoming file as received from the boundary layer."""

    stream: BinaryIO
    filename: str
    content_type: Optional[str]
    size_bytes: Optional[int] = None


def _stream_size(stream: BinaryIO) -> int:
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def validate_video(filename: str, content_type: Optional[str], size_bytes: int) -> None:
    """
    Check size, content type and extension against the configured limits.

    Raises:
        InvalidMediaError: the file must not be uploaded
    """
    if size_bytes <= 0:
        raise InvalidMediaError("file is empty", filename=filename)

    max_bytes = settings.video_max_file_size_bytes
    if size_bytes > max_bytes:
        raise InvalidMediaError(
            f"file exceeds the maximum size of {settings.VIDEO_MAX_FILE_SIZE_MB} MB",
            filename=filename,
            size_bytes=size_bytes,
        )

    allowed_types = {t.lower() for t in settings.VIDEO_ALLOWED_CONTENT_TYPES}
    if not content_type or content_type.split(";")[0].strip().lower() not in allowed_types:
        raise InvalidMediaError(
            f"content type '{content_type}' is not allowed",
            filename=filename,
        )

    extension = file_extension(filename)
    allowed_extensions = {e.lower() for e in settings.VIDEO_ALLOWED_EXTENSIONS}
    if extension not in allowed_extensions:
        raise InvalidMediaError(
            f"extension '{extension or '(none)'}' is not allowed",
            filename=filename,
        )


def build_blob_path(
    test_id: str, candidate_id: str, question_number: int, extension: str
) -> str:
    timestamp = int(utc_now().timestamp())
    return (
        f"test-videos-{test_id}/candidate-{candidate_id}/"
        f"q{question_number}_{timestamp}{extension}"
    )


def _resolve_snapshot(
    db: Session, instance: TestInstance, snapshot_id: str
) -> QuestionSnapshot:
    snapshot = db.query(QuestionSnapshot).filter(QuestionSnapshot.id == snapshot_id).first()
    if snapshot is None or snapshot.test_instance_id != instance.id:
        raise NotFoundError(
            "QuestionSnapshot", snapshot_id, test_instance_id=instance.id
        )
    return snapshot


def _next_question_number(db: Session, instance: TestInstance) -> int:
    highest = (
        db.query(func.max(VideoResponse.question_number))
        .filter(VideoResponse.test_instance_id == instance.id)
        .scalar()
    )
    return (highest or 0) + 1


def upload_video(
    db: Session,
    storage: BlobStorage,
    test_id: str,
    candidate_id: str,
    upload: VideoUpload,
    question_snapshot_id: Optional[str] = None,
    question_number: Optional[int] = None,
    response_type: Optional[VideoResponseType] = None,
) -> VideoResponse:
    """
    Validate, store and record a video response.

    The question number comes from the snapshot's order when a snapshot is
    given, otherwise from ``question_number``, otherwise one past the highest
    number already uploaded to this test.

    Raises:
        NotFoundError: unknown test, or snapshot not part of this test
        UnauthorizedError: the test belongs to another candidate
        InvalidTransitionError: the test is already submitted
        InvalidMediaError: size, content type or extension rejected
    """
    instance = get_owned_test(db, test_id, candidate_id, for_update=True)
    ensure_not_submitted(instance, "upload a video")

    size = upload.size_bytes if upload.size_bytes is not None else _stream_size(upload.stream)
    validate_video(upload.filename, upload.content_type, size)

    snapshot = None
    if question_snapshot_id:
        snapshot = _resolve_snapshot(db, instance, question_snapshot_id)

    if snapshot is not None:
        if question_number is not None and question_number != snapshot.question_order:
            logger.warning(
                f"Ignoring question_number {question_number} for snapshot "
                f"{snapshot.id}; using its order {snapshot.question_order}"
            )
        question_number = snapshot.question_order
    elif question_number is None:
        question_number = _next_question_number(db, instance)

    blob_path = build_blob_path(
        instance.id, candidate_id, question_number, file_extension(upload.filename)
    )
    reference = storage.upload(upload.stream, blob_path, upload.content_type)

    video = VideoResponse(
        test_instance_id=instance.id,
        candidate_id=candidate_id,
        question_snapshot_id=snapshot.id if snapshot is not None else None,
        question_number=question_number,
        response_type=response_type or VideoResponseType.QUESTION_ANSWER,
        blob_reference=reference,
        content_type=upload.content_type,
        file_size_bytes=size,
        uploaded_at=utc_now(),
    )
    try:
        db.add(video)
        db.commit()
    except Exception:
        db.rollback()
        with graceful_failure(
            "remove orphaned video blob", logger, context={"blob_reference": reference}
        ):
            storage.delete(reference)
        raise
    db.refresh(video)

    logger.info(
        f"Uploaded video for question {question_number} of test {instance.id} "
        f"({size} bytes)",
        extra={"candidate_id": candidate_id, "test_instance_id": instance.id},
    )
    metrics.record_video_upload(instance.test_type.value)
    return video


def get_test_video_responses(
    db: Session, test_id: str, candidate_id: str
) -> List[VideoResponse]:
    instance = get_owned_test(db, test_id, candidate_id)
    return (
        db.query(VideoResponse)
        .filter(VideoResponse.test_instance_id == instance.id)
        .order_by(VideoResponse.question_number, VideoResponse.uploaded_at)
        .all()
    )


def get_video_response(
    db: Session, video_response_id: str, candidate_id: str
) -> VideoResponse:
    video = db.query(VideoResponse).filter(VideoResponse.id == video_response_id).first()
    if video is None:
        raise NotFoundError("VideoResponse", video_response_id)
    get_owned_test(db, video.test_instance_id, candidate_id)
    return video


def delete_video_response(
    db: Session, storage: BlobStorage, video_response_id: str, candidate_id: str
) -> None:
    """
    Delete a video response while its test is still open.

    The blob is removed first; a storage failure is logged and the record
    is deleted anyway.
    """
    video = get_video_response(db, video_response_id, candidate_id)
    instance = get_owned_test(
        db, video.test_instance_id, candidate_id, for_update=True
    )
    ensure_not_submitted(instance, "delete a video")

    with graceful_failure(
        "delete video blob",
        logger,
        context={"video_response_id": video.id, "blob_reference": video.blob_reference},
    ):
        storage.delete(video.blob_reference)

    test_instance_id = video.test_instance_id
    db.delete(video)
    db.commit()
    logger.info(f"Deleted video response {video_response_id} from test {test_instance_id}")


def get_secure_video_url(
    db: Session,
    storage: BlobStorage,
    video_response_id: str,
    candidate_id: str,
    ttl: Optional[timedelta] = None,
) -> str:
    """Temporary read URL for a video the candidate owns."""
    video = get_video_response(db, video_response_id, candidate_id)
    ttl = ttl or timedelta(minutes=settings.VIDEO_URL_TTL_MINUTES)
    return storage.generate_temporary_read_url(video.blob_reference, ttl)
