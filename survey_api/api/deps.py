import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api import config
from survey_api.crud import crud_token, crud_user
from survey_api.database import get_db_session
from survey_api.errors import AuthenticationError
from survey_api.models import PersonalAccessToken, User
from survey_api.services.image_storage import ImageStorage

logger = logging.getLogger(__name__)

# auto_error=False: fehlender Header soll 401 liefern, nicht FastAPIs 403
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentSession:
    user: User
    token: PersonalAccessToken


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> CurrentSession:
    """
    Resolves the ``Authorization: Bearer <token>`` header to the user and the
    token row used for this request.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError()

    db_token = await crud_token.find_valid_token(db, credentials.credentials)
    if db_token is None:
        logger.warning("Request with invalid or revoked token rejected")
        raise AuthenticationError()

    user = await crud_user.get_user(db, db_token.user_id)
    if user is None:
        raise AuthenticationError()
    return CurrentSession(user=user, token=db_token)


async def get_current_user(
    session: CurrentSession = Depends(get_current_session),
) -> User:
    return session.user


def get_image_storage() -> ImageStorage:
    return ImageStorage(config.PUBLIC_DIR, config.IMAGES_SUBDIR)
