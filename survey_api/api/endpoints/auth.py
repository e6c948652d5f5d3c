from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.api.deps import CurrentSession, get_current_session, get_current_user
from survey_api.database import get_db_session
from survey_api.models import User
from survey_api.schemas import (
    AuthResponse,
    LoginRequest,
    LogoutResponse,
    RegisterRequest,
    UserOut,
)
from survey_api.services import auth

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=AuthResponse)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db_session)):
    user, token = await auth.register(
        db,
        name=data.name,
        email=data.email,
        password=data.password,
        password_confirmation=data.password_confirmation,
    )
    await db.commit()
    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db_session)):
    user, token = await auth.login(
        db, email=data.email, password=data.password, remember=data.remember
    )
    await db.commit()
    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    session: CurrentSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db_session),
):
    await auth.logout(db, session.token)
    await db.commit()
    return LogoutResponse(success=True)


@router.get("/user", response_model=UserOut)
async def read_current_user(user: User = Depends(get_current_user)):
    return user
