import logging
import re
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from survey_api.core.security import generate_token_secret, hash_token, token_matches
from survey_api.models import PersonalAccessToken, User

logger = logging.getLogger(__name__)

# ASCII digits only, short enough for a 64 bit primary key
TOKEN_ID_PATTERN = re.compile(r"[0-9]{1,18}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite gives back naive datetimes, everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_token_active(token: PersonalAccessToken, now: Optional[datetime] = None) -> bool:
    if token.revoked_at is not None:
        return False
    if token.expires_at is None:
        return True
    return _as_utc(token.expires_at) > (now or utcnow())


async def create_token(
    db: AsyncSession,
    user: User,
    name: str = "main",
    expires_at: Optional[datetime] = None,
) -> Tuple[PersonalAccessToken, str]:
    """
    Issue a new token for ``user``.

    Returns the stored row and the plain-text token (``"<id>|<secret>"``).
    The plain text is only available here; the database keeps the digest.
    """
    secret = generate_token_secret()
    db_token = PersonalAccessToken(
        user_id=user.id,
        name=name,
        token_hash=hash_token(secret),
        expires_at=expires_at,
    )
    db.add(db_token)
    await db.flush()
    return db_token, f"{db_token.id}|{secret}"


async def find_valid_token(
    db: AsyncSession, plain_text: str
) -> Optional[PersonalAccessToken]:
    if not plain_text:
        return None

    token_id, separator, secret = plain_text.partition("|")
    if separator:
        if not TOKEN_ID_PATTERN.fullmatch(token_id):
            return None
        db_token = await db.get(PersonalAccessToken, int(token_id))
        if db_token is None or not token_matches(secret, db_token.token_hash):
            return None
    else:
        result = await db.execute(
            select(PersonalAccessToken).where(
                PersonalAccessToken.token_hash == hash_token(plain_text)
            )
        )
        db_token = result.scalar_one_or_none()
        if db_token is None:
            return None

    now = utcnow()
    if not is_token_active(db_token, now):
        logger.info("Rejected inactive token %s", db_token.id)
        return None

    db_token.last_used_at = now
    await db.flush()
    return db_token


async def revoke_token(db: AsyncSession, db_token: PersonalAccessToken) -> None:
    db_token.revoked_at = utcnow()
    await db.flush()
