"""Per-entity repositories"""

from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.models import (
    Trainee,
    Room,
    TagNumber,
    Sponsor,
    Batch,
    StaffRegistration,
    ResourcePersonRegistration,
    GeneratedId,
    IdType,
    Notification,
    Message,
    EvaluationQuestion,
    EvaluationResponse,
    Exam,
    ExamQuestion,
    ExamAttempt,
    ExamAnswer,
    Announcement,
    AnnouncementReply,
    SystemSetting,
    VerificationCode,
    PasswordResetToken,
)
from farmportal.repositories.base import Repository


class TraineeRepository(Repository[Trainee]):

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[Trainee]:
        result = await db.execute(
            select(Trainee)
            .where(func.lower(Trainee.email) == email.strip().lower())
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def in_room(self, db: AsyncSession, room_number: str, block: str) -> List[Trainee]:
        return await self.find_by(db, room_number=room_number, room_block=block)


class RoomRepository(Repository[Room]):

    async def get_by_location(self, db: AsyncSession, block: str, room_number: str) -> Optional[Room]:
        return await self.first_by(db, block=block, room_number=room_number)


class TagNumberRepository(Repository[TagNumber]):

    async def get_by_tag_no(self, db: AsyncSession, tag_no: str) -> Optional[TagNumber]:
        return await self.first_by(db, tag_no=tag_no)


class GeneratedIdRepository(Repository[GeneratedId]):

    async def max_sequence(self, db: AsyncSession, id_type: IdType) -> int:
        result = await db.execute(
            select(func.max(GeneratedId.sequence)).where(GeneratedId.type == id_type)
        )
        return int(result.scalar() or 0)


class EmailLookupRepository(Repository):
    """Repository for tables with a case-insensitive email column"""

    async def get_by_email(self, db: AsyncSession, email: str):
        result = await db.execute(
            select(self.model)
            .where(func.lower(self.model.email) == email.strip().lower())
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()


trainee_repository = TraineeRepository(Trainee)
room_repository = RoomRepository(Room)
tag_repository = TagNumberRepository(TagNumber)
sponsor_repository = Repository(Sponsor)
batch_repository = Repository(Batch)
staff_repository = EmailLookupRepository(StaffRegistration)
resource_person_repository = EmailLookupRepository(ResourcePersonRegistration)
generated_id_repository = GeneratedIdRepository(GeneratedId)
notification_repository = Repository(Notification)
message_repository = Repository(Message)
evaluation_question_repository = Repository(EvaluationQuestion)
evaluation_response_repository = Repository(EvaluationResponse)
exam_repository = Repository(Exam)
exam_question_repository = Repository(ExamQuestion)
exam_attempt_repository = Repository(ExamAttempt)
exam_answer_repository = Repository(ExamAnswer)
announcement_repository = Repository(Announcement)
announcement_reply_repository = Repository(AnnouncementReply)
setting_repository = Repository(SystemSetting)
verification_code_repository = Repository(VerificationCode)
password_reset_repository = Repository(PasswordResetToken)
