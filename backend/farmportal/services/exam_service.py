"""
Exam Service - computer based tests

Flow: admin creates an exam and its questions -> trainee starts an attempt
-> submits answers (objective questions graded immediately) -> admin may
re-grade with point overrides, which marks the attempt graded.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from farmportal.core.logging_config import logger
from farmportal.models import (
    AttemptStatus,
    Exam,
    ExamAttempt,
    ExamQuestion,
    ExamQuestionType,
)
from farmportal.repositories import (
    exam_repository,
    exam_question_repository,
    exam_attempt_repository,
    exam_answer_repository,
    trainee_repository,
)


def is_correct_answer(question_type: ExamQuestionType, answer: Optional[str], correct: str) -> bool:
    """
    Case-insensitive comparison after trimming. Fill-in-the-blank accepts
    any of several comma-separated correct answers.
    """
    given = (answer or "").strip().lower()
    if not given:
        return False
    expected = (correct or "").strip().lower()
    if question_type == ExamQuestionType.FILL_BLANK:
        return given in [option.strip() for option in expected.split(",")]
    return given == expected


class ExamService:

    # ==================== EXAMS ====================

    async def list_exams(self, db: AsyncSession, sponsor_id: Optional[str] = None) -> List[Exam]:
        if sponsor_id:
            return await exam_repository.find_by(db, order_by="-created_at", sponsor_id=sponsor_id)
        return await exam_repository.list_all(db, order_by="-created_at")

    async def available_exams(self, db: AsyncSession) -> List[Exam]:
        return await exam_repository.find_by(db, order_by="-created_at", is_active=True)

    async def get_exam(self, db: AsyncSession, exam_id: str) -> Exam:
        exam = await exam_repository.get(db, exam_id)
        if not exam:
            raise ResourceNotFoundError("Exam", exam_id)
        return exam

    async def create_exam(self, db: AsyncSession, data: Dict[str, Any]) -> Exam:
        exam = await exam_repository.create(db, **data)
        await db.commit()
        logger.info(f"[Exams] Created {exam.title}")
        return await exam_repository.get(db, exam.id)

    async def update_exam(self, db: AsyncSession, exam_id: str, data: Dict[str, Any]) -> Exam:
        await self.get_exam(db, exam_id)
        if data:
            await exam_repository.update(db, exam_id, **data)
            await db.commit()
        return await exam_repository.get(db, exam_id)

    async def delete_exam(self, db: AsyncSession, exam_id: str) -> None:
        await self.get_exam(db, exam_id)
        # Children first; sqlite does not enforce ON DELETE CASCADE by default
        attempts = await exam_attempt_repository.find_by(db, exam_id=exam_id)
        if attempts:
            await exam_answer_repository.delete_where(db, attempt_id=[a.id for a in attempts])
        await exam_attempt_repository.delete_where(db, exam_id=exam_id)
        await exam_question_repository.delete_where(db, exam_id=exam_id)
        await exam_repository.delete(db, exam_id)
        await db.commit()

    # ==================== QUESTIONS ====================

    async def list_questions(self, db: AsyncSession, exam_id: str) -> List[ExamQuestion]:
        await self.get_exam(db, exam_id)
        return await exam_question_repository.find_by(db, order_by=["order_index", "created_at"], exam_id=exam_id)

    async def public_questions(self, db: AsyncSession, exam_id: str) -> List[ExamQuestion]:
        exam = await self.get_exam(db, exam_id)
        if not exam.is_active:
            raise AuthorizationError("Exam is not available")
        return await self.list_questions(db, exam_id)

    async def create_question(self, db: AsyncSession, exam_id: str, data: Dict[str, Any]) -> ExamQuestion:
        await self.get_exam(db, exam_id)
        if data.get("question_type") == ExamQuestionType.MCQ and not data.get("options"):
            raise ValidationError("Multiple choice questions need options", field="options")
        question = await exam_question_repository.create(db, exam_id=exam_id, **data)
        await db.commit()
        return await exam_question_repository.get(db, question.id)

    async def update_question(self, db: AsyncSession, question_id: str, data: Dict[str, Any]) -> ExamQuestion:
        if not await exam_question_repository.get(db, question_id):
            raise ResourceNotFoundError("Question", question_id)
        if data:
            await exam_question_repository.update(db, question_id, **data)
            await db.commit()
        return await exam_question_repository.get(db, question_id)

    async def delete_question(self, db: AsyncSession, question_id: str) -> None:
        if not await exam_question_repository.delete(db, question_id):
            raise ResourceNotFoundError("Question", question_id)
        await db.commit()

    # ==================== ATTEMPTS ====================

    async def list_attempts(
        self,
        db: AsyncSession,
        exam_id: Optional[str] = None,
        trainee_id: Optional[str] = None,
    ) -> List[ExamAttempt]:
        filters = {}
        if exam_id:
            filters["exam_id"] = exam_id
        if trainee_id:
            filters["trainee_id"] = trainee_id
        return await exam_attempt_repository.find_by(db, order_by="-created_at", **filters)

    async def get_attempt(self, db: AsyncSession, attempt_id: str) -> ExamAttempt:
        attempt = await exam_attempt_repository.get(db, attempt_id)
        if not attempt:
            raise ResourceNotFoundError("Exam attempt", attempt_id)
        return attempt

    async def start_attempt(self, db: AsyncSession, exam_id: str, trainee_id: str) -> ExamAttempt:
        exam = await self.get_exam(db, exam_id)
        if not exam.is_active:
            raise AuthorizationError("Exam is not available")
        if not await trainee_repository.get(db, trainee_id):
            raise ResourceNotFoundError("Trainee", trainee_id)

        attempt = await exam_attempt_repository.create(
            db,
            exam_id=exam_id,
            trainee_id=trainee_id,
            start_time=datetime.utcnow(),
            status=AttemptStatus.IN_PROGRESS,
        )
        await db.commit()
        logger.info(f"[Exams] Trainee {trainee_id} started {exam.title}")
        return await exam_attempt_repository.get(db, attempt.id)

    async def submit_attempt(self, db: AsyncSession, attempt_id: str, answers: List[Dict[str, Any]]) -> ExamAttempt:
        """Store answers and score every question; unanswered questions earn nothing"""
        attempt = await self.get_attempt(db, attempt_id)
        if attempt.status != AttemptStatus.IN_PROGRESS:
            raise ConflictError("Exam attempt already submitted")

        questions = await exam_question_repository.find_by(db, exam_id=attempt.exam_id)
        by_id = {q.id: q for q in questions}
        given = {}
        for item in answers:
            if item["question_id"] not in by_id:
                raise ValidationError(f"Question {item['question_id']} is not part of this exam", field="answers")
            given[item["question_id"]] = str(item.get("answer") or "")

        score = 0
        for question_id, answer in given.items():
            question = by_id[question_id]
            correct = is_correct_answer(question.question_type, answer, question.correct_answer)
            awarded = question.points if correct else 0
            score += awarded
            await exam_answer_repository.create(
                db,
                attempt_id=attempt_id,
                question_id=question_id,
                answer=answer,
                is_correct=correct,
                points_awarded=awarded,
            )

        # Conditional so a double submit cannot score twice
        won = await exam_attempt_repository.claim(
            db, attempt_id,
            expected={"status": AttemptStatus.IN_PROGRESS},
            status=AttemptStatus.SUBMITTED,
            end_time=datetime.utcnow(),
            score=score,
            total_points=sum(q.points for q in questions),
        )
        if not won:
            await db.rollback()
            raise ConflictError("Exam attempt already submitted")
        await db.commit()

        logger.info(f"[Exams] Attempt {attempt_id} submitted: {score} points")
        return await exam_attempt_repository.get(db, attempt_id)

    async def grade_attempt(
        self,
        db: AsyncSession,
        attempt_id: str,
        overrides: Optional[Dict[str, int]] = None,
    ) -> ExamAttempt:
        """Apply per-question point overrides, re-total and mark graded"""
        attempt = await self.get_attempt(db, attempt_id)
        if attempt.status == AttemptStatus.IN_PROGRESS:
            raise ConflictError("Exam attempt has not been submitted")

        overrides = overrides or {}
        answers = await exam_answer_repository.find_by(db, attempt_id=attempt_id)
        score = 0
        for answer in answers:
            if answer.question_id in overrides:
                points = int(overrides[answer.question_id])
                await exam_answer_repository.update(db, answer.id, points_awarded=points, is_correct=points > 0)
                score += points
            else:
                score += answer.points_awarded or 0

        await exam_attempt_repository.update(db, attempt_id, score=score, status=AttemptStatus.GRADED)
        await db.commit()
        return await exam_attempt_repository.get(db, attempt_id)


exam_service = ExamService()
