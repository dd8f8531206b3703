"""
Endpoints addressing a single saved answer or video by its own id.

Ownership is resolved through the parent test.
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core import answers as answers_engine
from app.core import videos
from app.core.auth import get_current_candidate_id
from app.core.config import settings
from app.models import get_db
from app.schemas.responses import (
    QuestionResponseRead,
    UpdateResponseRequest,
    VideoResponseRead,
    VideoUrlResponse,
)
from app.storage import BlobStorage, get_blob_storage

router = APIRouter()


@router.get("/responses/{response_id}", response_model=QuestionResponseRead)
def get_response(
    response_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    return answers_engine.get_response(db, response_id, candidate_id)


@router.put("/responses/{response_id}", response_model=QuestionResponseRead)
def update_response(
    response_id: str,
    request: UpdateResponseRequest,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    """Change a saved answer while the test is still open."""
    return answers_engine.update_response(
        db,
        response_id,
        candidate_id,
        request.selected_answers,
        request.response_time_ms,
    )


@router.delete("/responses/{response_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_response(
    response_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    answers_engine.delete_response(db, response_id, candidate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/videos/{video_response_id}", response_model=VideoResponseRead)
def get_video_response(
    video_response_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
):
    return videos.get_video_response(db, video_response_id, candidate_id)


@router.get("/videos/{video_response_id}/url", response_model=VideoUrlResponse)
def get_video_url(
    video_response_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
):
    """Temporary read URL for an uploaded video."""
    url = videos.get_secure_video_url(db, storage, video_response_id, candidate_id)
    return VideoUrlResponse(
        url=url, expires_in_seconds=settings.VIDEO_URL_TTL_MINUTES * 60
    )


@router.delete(
    "/videos/{video_response_id}", status_code=status.HTTP_204_NO_CONTENT
)
def delete_video_response(
    video_response_id: str,
    candidate_id: str = Depends(get_current_candidate_id),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
):
    """Delete a video while the test is still open."""
    videos.delete_video_response(db, storage, video_response_id, candidate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
