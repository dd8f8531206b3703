"""
Test attempt endpoints: create, read, start, submit, answers and videos.

Engine failures raised by ``app.core`` propagate to the application-level
handler, which maps them to HTTP status codes.
"""
import logging
from typing import List, Optional

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    Query,
    UploadFile,
    status,
)
from sqlalchemy.orm import Session

from app.core import answers as answers_engine
from app.core import test_lifecycle, videos
from app.core.answers import AnswerInput
from app.core.auth import get_current_candidate_id
from app.core.background_tasks import safe_background_task
from app.core.eligibility import can_start
from app.core.snapshot_engine import create_test as create_test_instance
from app.models import get_db
from app.models.models import TestType, VideoResponseType
from app.schemas.responses import (
    AnswerItem,
    QuestionResponseRead,
    SubmitAnswersRequest,
    VideoResponseRead,
)
from app.schemas.tests import (
    CreateTestRequest,
    EligibilityResponse,
    QuestionSnapshotResponse,
    RemainingTimeResponse,
    StartTestResponse,
    SubmitTestRequest,
    SubmitTestResponse,
    TestInstanceResponse,
    TestStatusResponse,
    TestWithQuestionsResponse,
)
from app.services.ai_notification import VideoNotifier, get_video_notifier
from app.storage import BlobStorage, get_blob_storage

router = APIRouter()
logger = logging.getLogger(__name__)


def _to_answer_inputs(items: List[AnswerItem]) -> List[AnswerInput]:
    return [
        AnswerInput(
            question_snapshot_id=item.question_snapshot_id,
            selected_answers=item.selected_answers,
            response_time_ms=item.response_time_ms,
        )
        for item in items
    ]


@router.get("/eligibility", response_model=EligibilityResponse)
def check_eligibility(
    test_type: TestType = Query(..., description="Test type to check"),
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    """
    Whether the current candidate may create a test of this type.

    Each test type can be taken once: an active or submitted attempt blocks
    a new one.
    """
    return EligibilityResponse(
        test_type=test_type, can_start=can_start(db, candidate_id, test_type)
    )


@router.post(
    "",
    response_model=TestWithQuestionsResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_test(
    request: CreateTestRequest,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    """
    Create a test attempt with its frozen questions.

    Returns 409 if the candidate already has an attempt of this type and
    422 if the question bank cannot supply the test.
    """
    instance = create_test_instance(
        db, candidate_id, request.test_type, request.difficulty_level
    )
    questions = [
        QuestionSnapshotResponse.model_validate(s) for s in instance.question_snapshots
    ]
    return TestWithQuestionsResponse(
        test=TestInstanceResponse.model_validate(instance),
        questions=questions,
        total_questions=len(questions),
    )


@router.get("", response_model=List[TestInstanceResponse])
def list_tests(
    test_type: Optional[TestType] = Query(None, description="Only attempts of this type"),
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    """All test attempts of the current candidate, newest first."""
    return test_lifecycle.list_candidate_tests(db, candidate_id, test_type)


@router.get("/{test_id}", response_model=TestInstanceResponse)
def get_test(
    test_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    return test_lifecycle.get_test(db, test_id, candidate_id)


@router.get("/{test_id}/questions", response_model=List[QuestionSnapshotResponse])
def get_test_questions(
    test_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    """Questions of a test in order, without answer keys."""
    return test_lifecycle.get_test_questions(db, test_id, candidate_id)


@router.get("/{test_id}/status", response_model=TestStatusResponse)
def get_test_status(
    test_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    progress = test_lifecycle.get_test_progress(db, test_id, candidate_id)
    return TestStatusResponse(
        test_id=progress.test_instance_id,
        test_type=progress.test_type,
        status=progress.status,
        total_questions=progress.total_questions,
        questions_answered=progress.questions_answered,
        videos_uploaded=progress.videos_uploaded,
        videos_required=progress.videos_required,
        can_start=progress.can_start,
        can_submit=progress.can_submit,
        started_at=progress.started_at,
        remaining_time_seconds=progress.remaining_time_seconds,
    )


@router.get("/{test_id}/remaining-time", response_model=RemainingTimeResponse)
def get_remaining_time(
    test_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    return RemainingTimeResponse(
        test_id=test_id,
        remaining_time_seconds=test_lifecycle.get_remaining_time(
            db, test_id, candidate_id
        ),
    )


@router.post("/{test_id}/start", response_model=StartTestResponse)
def start_test(
    test_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    """Start a not-started test. Starting twice returns 400."""
    instance = test_lifecycle.start_test(db, test_id, candidate_id)
    return StartTestResponse(
        test=TestInstanceResponse.model_validate(instance),
        remaining_time_seconds=test_lifecycle.get_remaining_time(
            db, test_id, candidate_id
        ),
    )


@router.post("/{test_id}/submit", response_model=SubmitTestResponse)
def submit_test(
    test_id: str,
    request: Optional[SubmitTestRequest] = None,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    """
    Submit an in-progress test for grading.

    Answers in the body are merged with those saved earlier. Once submitted,
    the test and its responses can no longer be changed.
    """
    items = request.answers if request is not None else []
    result = test_lifecycle.submit_test(
        db, test_id, candidate_id, _to_answer_inputs(items)
    )
    instance = result.test_instance
    return SubmitTestResponse(
        test_id=instance.id,
        status=instance.status,
        score=instance.score,
        raw_score=instance.raw_score,
        max_possible_score=instance.max_possible_score,
        correct_answers=result.correct_answers,
        total_questions=result.total_questions,
        duration_seconds=instance.duration_seconds,
    )


@router.post("/{test_id}/answers", response_model=List[QuestionResponseRead])
def submit_answers(
    test_id: str,
    request: SubmitAnswersRequest,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    """
    Save answers without submitting the test.

    Sending an answer for the same question again replaces the previous one.
    Items for questions outside this test are ignored.
    """
    return answers_engine.submit_answers(
        db, test_id, candidate_id, _to_answer_inputs(request.answers)
    )


@router.get("/{test_id}/responses", response_model=List[QuestionResponseRead])
def get_test_responses(
    test_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    return answers_engine.get_test_responses(db, test_id, candidate_id)


@router.post(
    "/{test_id}/videos",
    response_model=VideoResponseRead,
    status_code=status.HTTP_201_CREATED,
)
def upload_video(
    test_id: str,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="Recorded video"),
    question_snapshot_id: Optional[str] = Form(None),
    question_number: Optional[int] = Form(None, ge=1),
    response_type: Optional[VideoResponseType] = Form(None),
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
    notifier: VideoNotifier = Depends(get_video_notifier),
):
    """
    Upload a video answer.

    The AI analysis agent is notified after the response is stored; a
    notification failure never fails the upload.
    """
    video = videos.upload_video(
        db,
        storage,
        test_id,
        candidate_id,
        videos.VideoUpload(
            stream=file.file,
            filename=file.filename or "",
            content_type=file.content_type,
            size_bytes=file.size,
        ),
        question_snapshot_id=question_snapshot_id,
        question_number=question_number,
        response_type=response_type,
    )
    background_tasks.add_task(
        safe_background_task, notifier.notify_video_ready, video.id
    )
    return video


@router.get("/{test_id}/videos", response_model=List[VideoResponseRead])
def get_test_videos(
    test_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    return videos.get_test_video_responses(db, test_id, candidate_id)
