from farmportal.repositories.base import Repository
from farmportal.repositories.entities import (
    trainee_repository,
    room_repository,
    tag_repository,
    sponsor_repository,
    batch_repository,
    staff_repository,
    resource_person_repository,
    generated_id_repository,
    notification_repository,
    message_repository,
    evaluation_question_repository,
    evaluation_response_repository,
    exam_repository,
    exam_question_repository,
    exam_attempt_repository,
    exam_answer_repository,
    announcement_repository,
    announcement_reply_repository,
    setting_repository,
    verification_code_repository,
    password_reset_repository,
)

__all__ = [
    "Repository",
    "trainee_repository",
    "room_repository",
    "tag_repository",
    "sponsor_repository",
    "batch_repository",
    "staff_repository",
    "resource_person_repository",
    "generated_id_repository",
    "notification_repository",
    "message_repository",
    "evaluation_question_repository",
    "evaluation_response_repository",
    "exam_repository",
    "exam_question_repository",
    "exam_attempt_repository",
    "exam_answer_repository",
    "announcement_repository",
    "announcement_reply_repository",
    "setting_repository",
    "verification_code_repository",
    "password_reset_repository",
]
