"""
Register / login / logout.

The functions work on an open ``AsyncSession`` and only flush; the request
(or the caller) decides when to commit.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api import config
from survey_api.core.security import (
    get_password_hash,
    password_rule_violations,
    verify_password,
)
from survey_api.crud import crud_token, crud_user
from survey_api.errors import (
    ConflictError,
    InvalidCredentialsError,
    ValidationError,
)
from survey_api.models import PersonalAccessToken, User

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "The email has already been taken."
NAME_MAX_LENGTH = 255


def token_expiry(remember: bool = False) -> Optional[datetime]:
    now = crud_token.utcnow()
    if remember:
        if config.REMEMBER_TOKEN_EXPIRE_DAYS <= 0:
            return None
        return now + timedelta(days=config.REMEMBER_TOKEN_EXPIRE_DAYS)
    if config.TOKEN_EXPIRE_MINUTES <= 0:
        return None
    return now + timedelta(minutes=config.TOKEN_EXPIRE_MINUTES)


def register_errors(
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    password_confirmation: Optional[str],
) -> Dict[str, List[str]]:
    """
    Collect every violated registration rule, keyed by field.

    Returns an empty dict when the input is acceptable.
    """
    errors: Dict[str, List[str]] = {}

    if not name or not name.strip():
        errors["name"] = ["The name field is required."]
    elif len(name.strip()) > NAME_MAX_LENGTH:
        errors["name"] = [f"The name may not be greater than {NAME_MAX_LENGTH} characters."]

    if not email:
        errors["email"] = ["The email field is required."]
    else:
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            errors["email"] = ["The email must be a valid email address."]

    if password_confirmation is None:
        errors["password_confirmation"] = ["The password confirmation field is required."]

    if not password:
        errors["password"] = ["The password field is required."]
    else:
        violations = password_rule_violations(password, password_confirmation or "")
        if violations:
            errors["password"] = violations
    return errors


async def register(
    db: AsyncSession,
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    password_confirmation: Optional[str],
) -> Tuple[User, str]:
    errors = register_errors(name, email, password, password_confirmation)
    if errors:
        raise ValidationError(errors)

    # same normal form as the EmailStr used on login
    email = validate_email(email, check_deliverability=False).normalized
    if await crud_user.get_user_by_email(db, email) is not None:
        raise ConflictError("email", EMAIL_TAKEN)

    try:
        user = await crud_user.create_user(
            db, name=name.strip(), email=email, password_hash=get_password_hash(password)
        )
    except IntegrityError:
        # concurrent registration won the unique index
        await db.rollback()
        raise ConflictError("email", EMAIL_TAKEN)

    _, token = await crud_token.create_token(db, user, expires_at=token_expiry())
    logger.info("Registered user %s", user.id)
    return user, token


async def login(
    db: AsyncSession, email: str, password: str, remember: bool = False
) -> Tuple[User, str]:
    user = await crud_user.get_user_by_email(db, email)
    if user is None:
        raise ValidationError({"email": ["The selected email is invalid."]})

    if not verify_password(password, user.password):
        logger.warning("Failed login for user %s", user.id)
        raise InvalidCredentialsError()

    _, token = await crud_token.create_token(
        db, user, expires_at=token_expiry(remember)
    )
    logger.info("User %s logged in (remember=%s)", user.id, remember)
    return user, token


async def logout(db: AsyncSession, token: PersonalAccessToken) -> None:
    """Revoke the token used for the current request. Other sessions stay valid."""
    await crud_token.revoke_token(db, token)
    logger.info("User %s logged out (token %s revoked)", token.user_id, token.id)
