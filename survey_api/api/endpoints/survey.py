from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api import config
from survey_api.api.deps import get_current_user, get_image_storage
from survey_api.database import get_db_session
from survey_api.models import User
from survey_api.schemas import SurveyCreate, SurveyEnvelope, SurveyPage, SurveyUpdate
from survey_api.services import surveys
from survey_api.services.image_storage import ImageStorage

router = APIRouter(prefix="/survey", tags=["survey"])


@router.get("", response_model=SurveyPage)
async def list_surveys(
    page: int = Query(1),
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
):
    return await surveys.list_surveys(
        db, user, config.APP_URL, page=page, per_page=config.SURVEY_PAGE_SIZE
    )


@router.post("", response_model=SurveyEnvelope, status_code=status.HTTP_201_CREATED)
async def create_survey(
    survey_in: SurveyCreate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_image_storage),
):
    survey = await surveys.create_survey(db, user, survey_in, storage)
    return SurveyEnvelope(data=surveys.survey_to_out(survey, config.APP_URL))


@router.get("/{survey_id}", response_model=SurveyEnvelope)
async def read_survey(
    survey_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
):
    survey = await surveys.show_survey(db, user, survey_id)
    return SurveyEnvelope(data=surveys.survey_to_out(survey, config.APP_URL))


@router.api_route("/{survey_id}", methods=["PUT", "PATCH"], response_model=SurveyEnvelope)
async def update_survey(
    survey_id: int,
    survey_in: SurveyUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_image_storage),
):
    survey = await surveys.update_survey(db, user, survey_id, survey_in, storage)
    return SurveyEnvelope(data=surveys.survey_to_out(survey, config.APP_URL))


@router.delete("/{survey_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_survey(
    survey_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_image_storage),
):
    await surveys.destroy_survey(db, user, survey_id, storage)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
