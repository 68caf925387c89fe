from typing import Callable

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from ....db.base import get_session_factory
from ....models.moderation import ContentType, ModerationQueued
from ....services.moderation import run_message_moderation, run_review_moderation

# Called by the review/message CRUD layer right after it saves new content
router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.post("/reviews/{review_id}", response_model=ModerationQueued, status_code=status.HTTP_202_ACCEPTED)
async def moderate_review(
    review_id: str,
    background_tasks: BackgroundTasks,
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    background_tasks.add_task(run_review_moderation, review_id, session_factory)
    return ModerationQueued(content_type=ContentType.REVIEW, content_id=review_id)


@router.post("/messages/{message_id}", response_model=ModerationQueued, status_code=status.HTTP_202_ACCEPTED)
async def moderate_message(
    message_id: str,
    background_tasks: BackgroundTasks,
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    background_tasks.add_task(run_message_moderation, message_id, session_factory)
    return ModerationQueued(content_type=ContentType.MESSAGE, content_id=message_id)
