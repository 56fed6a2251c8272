from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.api.dependencies import get_current_admin
from farmportal.core.database import get_db
from farmportal.schemas.common import MessageResponse
from farmportal.schemas.catalog import (
    ExamCreate,
    ExamUpdate,
    ExamResponse,
    ExamQuestionCreate,
    ExamQuestionUpdate,
    ExamQuestionResponse,
    PublicExamQuestion,
    StartAttemptRequest,
    SubmitAttemptRequest,
    GradeAttemptRequest,
    ExamAttemptResponse,
)
from farmportal.services.exam_service import exam_service

router = APIRouter()


# ============== Exams ==============

@router.get("", response_model=List[ExamResponse])
async def list_exams(
    sponsor_id: Optional[str] = Query(None, alias="sponsorId"),
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await exam_service.list_exams(db, sponsor_id)


@router.get("/available", response_model=List[ExamResponse])
async def available_exams(db: AsyncSession = Depends(get_db)):
    return await exam_service.available_exams(db)


@router.post("", response_model=ExamResponse, status_code=201)
async def create_exam(
    body: ExamCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await exam_service.create_exam(db, body.model_dump())


# Question routes by question id sit before /{exam_id} routes
@router.put("/questions/{question_id}", response_model=ExamQuestionResponse)
async def update_question(
    question_id: str,
    body: ExamQuestionUpdate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await exam_service.update_question(db, question_id, body.model_dump(exclude_unset=True))


@router.delete("/questions/{question_id}", response_model=MessageResponse)
async def delete_question(
    question_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    await exam_service.delete_question(db, question_id)
    return {"message": "Question deleted successfully"}


# ============== Attempts ==============

@router.get("/attempts", response_model=List[ExamAttemptResponse])
async def list_attempts(
    exam_id: Optional[str] = Query(None, alias="examId"),
    trainee_id: Optional[str] = Query(None, alias="traineeId"),
    db: AsyncSession = Depends(get_db)
):
    return await exam_service.list_attempts(db, exam_id, trainee_id)


@router.get("/attempts/{attempt_id}", response_model=ExamAttemptResponse)
async def get_attempt(attempt_id: str, db: AsyncSession = Depends(get_db)):
    return await exam_service.get_attempt(db, attempt_id)


@router.post("/attempts/{attempt_id}/submit", response_model=ExamAttemptResponse)
async def submit_attempt(
    attempt_id: str,
    body: SubmitAttemptRequest,
    db: AsyncSession = Depends(get_db)
):
    """Score the answers; a second submit is rejected"""
    return await exam_service.submit_attempt(db, attempt_id, [a.model_dump() for a in body.answers])


@router.post("/attempts/{attempt_id}/grade", response_model=ExamAttemptResponse)
async def grade_attempt(
    attempt_id: str,
    body: GradeAttemptRequest,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await exam_service.grade_attempt(db, attempt_id, body.overrides)


# ============== Single exam ==============

@router.get("/{exam_id}", response_model=ExamResponse)
async def get_exam(exam_id: str, db: AsyncSession = Depends(get_db)):
    return await exam_service.get_exam(db, exam_id)


@router.patch("/{exam_id}", response_model=ExamResponse)
async def update_exam(
    exam_id: str,
    body: ExamUpdate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await exam_service.update_exam(db, exam_id, body.model_dump(exclude_unset=True))


@router.delete("/{exam_id}", response_model=MessageResponse)
async def delete_exam(
    exam_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Deletes the exam with its questions, attempts and answers"""
    await exam_service.delete_exam(db, exam_id)
    return {"message": "Exam deleted successfully"}


@router.get("/{exam_id}/questions", response_model=List[ExamQuestionResponse])
async def list_questions(
    exam_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await exam_service.list_questions(db, exam_id)


@router.get("/{exam_id}/questions/public", response_model=List[PublicExamQuestion])
async def public_questions(exam_id: str, db: AsyncSession = Depends(get_db)):
    """Questions without answers, for trainees taking the exam"""
    return await exam_service.public_questions(db, exam_id)


@router.post("/{exam_id}/questions", response_model=ExamQuestionResponse, status_code=201)
async def create_question(
    exam_id: str,
    body: ExamQuestionCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await exam_service.create_question(db, exam_id, body.model_dump())


@router.post("/{exam_id}/start", response_model=ExamAttemptResponse, status_code=201)
async def start_attempt(
    exam_id: str,
    body: StartAttemptRequest,
    db: AsyncSession = Depends(get_db)
):
    return await exam_service.start_attempt(db, exam_id, body.trainee_id)
