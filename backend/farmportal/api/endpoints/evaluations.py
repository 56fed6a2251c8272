from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.api.dependencies import get_current_admin
from farmportal.core.database import get_db
from farmportal.schemas.common import MessageResponse
from farmportal.schemas.catalog import (
    EvaluationQuestionCreate,
    EvaluationQuestionUpdate,
    EvaluationQuestionResponse,
    EvaluationSubmitRequest,
    EvaluationResponseOut,
    SubmissionStatusResponse,
)
from farmportal.services.evaluation_service import evaluation_service

router = APIRouter()


@router.get("/questions", response_model=List[EvaluationQuestionResponse])
async def list_questions(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await evaluation_service.list_questions(db)


@router.get("/questions/published", response_model=List[EvaluationQuestionResponse])
async def published_questions(db: AsyncSession = Depends(get_db)):
    return await evaluation_service.published_questions(db)


@router.post("/questions", response_model=EvaluationQuestionResponse, status_code=201)
async def create_question(
    body: EvaluationQuestionCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await evaluation_service.create_question(db, body.model_dump())


@router.patch("/questions/{question_id}", response_model=EvaluationQuestionResponse)
async def update_question(
    question_id: str,
    body: EvaluationQuestionUpdate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await evaluation_service.update_question(db, question_id, body.model_dump(exclude_unset=True))


@router.delete("/questions/{question_id}", response_model=MessageResponse)
async def delete_question(
    question_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    await evaluation_service.delete_question(db, question_id)
    return {"message": "Question deleted successfully"}


@router.post("/submit", response_model=MessageResponse, status_code=201)
async def submit_evaluation(body: EvaluationSubmitRequest, db: AsyncSession = Depends(get_db)):
    """One submission per trainee"""
    await evaluation_service.submit_responses(
        db, body.trainee_id, [r.model_dump() for r in body.responses]
    )
    return {"message": "Evaluation submitted successfully"}


@router.get("/submissions/{trainee_id}", response_model=SubmissionStatusResponse)
async def submission_status(trainee_id: str, db: AsyncSession = Depends(get_db)):
    return {"submitted": await evaluation_service.has_submitted(db, trainee_id)}


@router.get("/responses", response_model=List[EvaluationResponseOut])
async def list_responses(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await evaluation_service.list_responses(db)
