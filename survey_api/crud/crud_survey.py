from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import func

from survey_api.models import Survey, SurveyQuestion
from survey_api.schemas import QuestionIn, SurveyCreate

# Felder, die ein Client an einer Umfrage setzen darf. user_id gehört nicht dazu.
WRITABLE_FIELDS = ("title", "description", "status", "expire_date", "image")


def build_questions(questions_in: Sequence[QuestionIn]) -> List[SurveyQuestion]:
    return [
        SurveyQuestion(
            position=position,
            type=question.type,
            text=question.text,
            description=question.description,
            options=question.options,
            required=question.required,
        )
        for position, question in enumerate(questions_in)
    ]


async def get_survey(db: AsyncSession, survey_id: int) -> Optional[Survey]:
    result = await db.execute(
        select(Survey)
        .options(selectinload(Survey.questions))
        .where(Survey.id == survey_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_surveys_for_user(
    db: AsyncSession, user_id: int, offset: int = 0, limit: int = 15
) -> Tuple[List[Survey], int]:
    count_result = await db.execute(
        select(func.count(Survey.id)).where(Survey.user_id == user_id)
    )
    total = count_result.scalar_one()

    result = await db.execute(
        select(Survey)
        .options(selectinload(Survey.questions))
        .where(Survey.user_id == user_id)
        .order_by(Survey.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def create_survey(
    db: AsyncSession,
    user_id: int,
    survey_in: SurveyCreate,
    image_path: Optional[str] = None,
) -> Survey:
    db_survey = Survey(
        user_id=user_id,
        title=survey_in.title,
        description=survey_in.description,
        status=survey_in.status,
        expire_date=survey_in.expire_date,
        image=image_path,
        questions=build_questions(survey_in.questions),
    )
    db.add(db_survey)
    await db.flush()
    return db_survey


async def update_survey(
    db: AsyncSession,
    db_survey: Survey,
    fields: Dict[str, Any],
    questions_in: Optional[Sequence[QuestionIn]] = None,
) -> Survey:
    """
    Write the allow-listed ``fields`` and, if given, replace the question list.

    ``db_survey`` must have been loaded with its questions (see ``get_survey``).
    """
    for field, value in fields.items():
        if field in WRITABLE_FIELDS:
            setattr(db_survey, field, value)

    if questions_in is not None:
        # alte Fragen werden durch delete-orphan entfernt
        db_survey.questions = build_questions(questions_in)

    db_survey.updated_at = func.now()
    await db.flush()
    return db_survey


async def delete_survey(db: AsyncSession, db_survey: Survey) -> None:
    await db.delete(db_survey)
    await db.flush()
