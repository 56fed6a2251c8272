"""Post-training evaluation questions and trainee responses"""

from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from farmportal.core.logging_config import logger
from farmportal.models import EvaluationQuestion, EvaluationResponse, QuestionType
from farmportal.repositories import (
    evaluation_question_repository,
    evaluation_response_repository,
    trainee_repository,
)


class EvaluationService:

    # ==================== QUESTIONS ====================

    async def list_questions(self, db: AsyncSession) -> List[EvaluationQuestion]:
        return await evaluation_question_repository.list_all(db, order_by="created_at")

    async def published_questions(self, db: AsyncSession) -> List[EvaluationQuestion]:
        return await evaluation_question_repository.find_by(db, order_by="created_at", is_published=True)

    async def create_question(self, db: AsyncSession, data: Dict[str, Any]) -> EvaluationQuestion:
        if data.get("type") == QuestionType.SINGLE_CHOICE and not data.get("options"):
            raise ValidationError("Single choice questions need options", field="options")
        question = await evaluation_question_repository.create(db, **data)
        await db.commit()
        return await evaluation_question_repository.get(db, question.id)

    async def update_question(self, db: AsyncSession, question_id: str, data: Dict[str, Any]) -> EvaluationQuestion:
        if not await evaluation_question_repository.get(db, question_id):
            raise ResourceNotFoundError("Evaluation question", question_id)
        if data:
            await evaluation_question_repository.update(db, question_id, **data)
            await db.commit()
        return await evaluation_question_repository.get(db, question_id)

    async def delete_question(self, db: AsyncSession, question_id: str) -> None:
        if not await evaluation_question_repository.delete(db, question_id):
            raise ResourceNotFoundError("Evaluation question", question_id)
        await db.commit()

    # ==================== RESPONSES ====================

    async def has_submitted(self, db: AsyncSession, trainee_id: str) -> bool:
        return await evaluation_response_repository.exists(db, trainee_id=trainee_id)

    async def submit_responses(
        self,
        db: AsyncSession,
        trainee_id: str,
        responses: List[Dict[str, Any]],
    ) -> List[EvaluationResponse]:
        """Store one response per answered question, all or nothing"""
        trainee = await trainee_repository.get(db, trainee_id)
        if not trainee:
            raise ResourceNotFoundError("Trainee", trainee_id)
        if not responses:
            raise ValidationError("At least one response is required", field="responses")
        if await self.has_submitted(db, trainee_id):
            raise ConflictError("Evaluation already submitted")

        published = {q.id: q for q in await self.published_questions(db)}
        submitted_at = datetime.utcnow()
        created = []

        for item in responses:
            question = published.get(item["question_id"])
            if not question:
                raise ValidationError(f"Unknown evaluation question {item['question_id']}", field="questionId")
            answer = item["answer"]
            if question.type == QuestionType.RATING and not isinstance(answer, (int, float)):
                raise ValidationError("Rating answers must be numeric", field="answer")

            created.append(await evaluation_response_repository.create(
                db,
                trainee_id=trainee.id,
                trainee_name=trainee.full_name,
                trainee_email=trainee.email,
                question_id=question.id,
                question=question.question,
                answer=answer,
                submitted_at=submitted_at,
            ))

        await db.commit()
        logger.info(f"[Evaluation] {trainee.email} submitted {len(created)} responses")
        return created

    async def list_responses(self, db: AsyncSession) -> List[EvaluationResponse]:
        return await evaluation_response_repository.list_all(db, order_by="-submitted_at")


evaluation_service = EvaluationService()
