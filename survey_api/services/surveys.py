import logging
import math

from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.crud import crud_survey
from survey_api.errors import AuthorizationError, NotFoundError, ValidationError
from survey_api.models import Survey, User
from survey_api.schemas import (
    PageMeta,
    QuestionOut,
    SurveyCreate,
    SurveyOut,
    SurveyPage,
    SurveyUpdate,
)
from survey_api.services.image_storage import ImageStorage

logger = logging.getLogger(__name__)

# keeps the row offset within a database integer
MAX_PAGE = 1_000_000
MAX_ROW_ID = 2**63 - 1


def survey_to_out(survey: Survey, base_url: str) -> SurveyOut:
    return SurveyOut(
        id=survey.id,
        title=survey.title,
        description=survey.description,
        status=bool(survey.status),
        expire_date=survey.expire_date,
        image_url=ImageStorage.public_url(survey.image, base_url),
        created_at=survey.created_at,
        updated_at=survey.updated_at,
        questions=[QuestionOut.model_validate(q) for q in survey.questions],
    )


async def get_owned_survey(db: AsyncSession, user: User, survey_id: int) -> Survey:
    survey = None
    if 0 < survey_id <= MAX_ROW_ID:
        survey = await crud_survey.get_survey(db, survey_id)
    if survey is None:
        raise NotFoundError("Survey", survey_id)
    if survey.user_id != user.id:
        logger.warning(
            "User %s tried to access survey %s of user %s",
            user.id,
            survey_id,
            survey.user_id,
        )
        raise AuthorizationError()
    return survey


async def list_surveys(
    db: AsyncSession, user: User, base_url: str, page: int = 1, per_page: int = 15
) -> SurveyPage:
    if page < 1:
        raise ValidationError({"page": ["The page must be at least 1."]})
    if page > MAX_PAGE:
        raise ValidationError(
            {"page": [f"The page may not be greater than {MAX_PAGE}."]}
        )
    surveys, total = await crud_survey.get_surveys_for_user(
        db, user.id, offset=(page - 1) * per_page, limit=per_page
    )
    return SurveyPage(
        data=[survey_to_out(s, base_url) for s in surveys],
        meta=PageMeta(
            current_page=page,
            last_page=max(1, math.ceil(total / per_page)),
            per_page=per_page,
            total=total,
        ),
    )


async def create_survey(
    db: AsyncSession, user: User, survey_in: SurveyCreate, storage: ImageStorage
) -> Survey:
    # Bild zuerst speichern; schlägt das fehl, wird nichts in die DB geschrieben
    image_path = storage.save_data_uri(survey_in.image) if survey_in.image else None
    try:
        survey = await crud_survey.create_survey(db, user.id, survey_in, image_path)
        await db.commit()
    except Exception:
        await db.rollback()
        storage.delete(image_path)
        raise

    logger.info("User %s created survey %s", user.id, survey.id)
    return await crud_survey.get_survey(db, survey.id)


async def show_survey(db: AsyncSession, user: User, survey_id: int) -> Survey:
    return await get_owned_survey(db, user, survey_id)


async def update_survey(
    db: AsyncSession,
    user: User,
    survey_id: int,
    survey_in: SurveyUpdate,
    storage: ImageStorage,
) -> Survey:
    survey = await get_owned_survey(db, user, survey_id)

    fields = survey_in.model_dump(exclude_unset=True, exclude={"questions", "image"})
    old_image = survey.image
    new_image = None
    if survey_in.image:
        new_image = storage.save_data_uri(survey_in.image)
        fields["image"] = new_image

    questions_in = survey_in.questions if "questions" in survey_in.model_fields_set else None
    try:
        await crud_survey.update_survey(db, survey, fields, questions_in)
        await db.commit()
    except Exception:
        await db.rollback()
        storage.delete(new_image)
        raise

    # altes Bild erst löschen, wenn der neue Pfad gespeichert ist
    if new_image and old_image:
        storage.delete(old_image)

    logger.info("User %s updated survey %s", user.id, survey_id)
    return await crud_survey.get_survey(db, survey_id)


async def destroy_survey(
    db: AsyncSession, user: User, survey_id: int, storage: ImageStorage
) -> None:
    survey = await get_owned_survey(db, user, survey_id)
    image = survey.image

    await crud_survey.delete_survey(db, survey)
    await db.commit()

    if image:
        storage.delete(image)
    logger.info("User %s deleted survey %s", user.id, survey_id)
