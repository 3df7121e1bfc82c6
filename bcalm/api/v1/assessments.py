# bcalm/api/v1/assessments.py
from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Response, status

from bcalm.api.deps import get_assessment_service, get_current_user
from bcalm.models.assessment import (
    AnswerIn,
    AssessmentAnswer,
    AssessmentAttempt,
    AssessmentQuestion,
    AttemptResult,
    PublicResult,
    ResumeState,
    StartAttemptIn,
)
from bcalm.models.base import CamelModel
from bcalm.services.assessment import AssessmentService
from bcalm.services.auth import CurrentUser

router = APIRouter(prefix="/assessment", tags=["assessment"])

class AttemptOut(CamelModel):
    attempt: AssessmentAttempt
    resumed: bool

class DiscardOut(CamelModel):
    deleted: bool
    attempt_id: Optional[str] = None

@router.get("/questions", response_model=List[AssessmentQuestion], response_model_by_alias=True)
async def list_questions(
    user: CurrentUser = Depends(get_current_user),
    svc: AssessmentService = Depends(get_assessment_service),
):
    return await svc.list_questions()

@router.post("/attempts", response_model=AttemptOut, response_model_by_alias=True)
async def start_attempt(
    response: Response,
    payload: Optional[StartAttemptIn] = Body(None),
    user: CurrentUser = Depends(get_current_user),
    svc: AssessmentService = Depends(get_assessment_service),
):
    """Resume the latest incomplete attempt (200) or create one (201)."""
    force_new = payload.force_new if payload else False
    attempt, created = await svc.start_or_resume_attempt(user.id, force_new=force_new)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return AttemptOut(attempt=attempt, resumed=not created)

@router.get("/resume", response_model=ResumeState, response_model_by_alias=True)
async def resume_state(user: CurrentUser = Depends(get_current_user), svc: AssessmentService = Depends(get_assessment_service)):
    return await svc.get_resume_state(user.id)

@router.delete("/attempts/incomplete", response_model=DiscardOut, response_model_by_alias=True)
async def discard_incomplete(user: CurrentUser = Depends(get_current_user), svc: AssessmentService = Depends(get_assessment_service)):
    attempt_id = await svc.discard_incomplete_attempt(user.id)
    return DiscardOut(deleted=attempt_id is not None, attempt_id=attempt_id)

@router.post("/answers/{attempt_id}", response_model=AssessmentAnswer, response_model_by_alias=True)
async def save_answer(
    attempt_id: str,
    payload: AnswerIn,
    user: CurrentUser = Depends(get_current_user),
    svc: AssessmentService = Depends(get_assessment_service),
):
    return await svc.save_answer(attempt_id, payload.question_id, payload.answer_value, user.id)

@router.post("/complete/{attempt_id}", response_model=AssessmentAttempt, response_model_by_alias=True)
async def complete_attempt(
    attempt_id: str,
    user: CurrentUser = Depends(get_current_user),
    svc: AssessmentService = Depends(get_assessment_service),
):
    return await svc.complete_attempt(attempt_id, user.id)

@router.get("/results/{attempt_id}", response_model=AttemptResult, response_model_by_alias=True)
async def get_result(
    attempt_id: str,
    user: CurrentUser = Depends(get_current_user),
    svc: AssessmentService = Depends(get_assessment_service),
):
    return await svc.get_result(attempt_id, user.id)

@router.get("/share/{share_token}", response_model=PublicResult, response_model_by_alias=True)
async def get_shared_result(share_token: str, svc: AssessmentService = Depends(get_assessment_service)):
    # public: no auth, redacted view only
    return await svc.get_public_result(share_token)
