from datetime import date, datetime
from typing import List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


QuestionType = Literal["text", "select", "radio", "checkbox", "textarea"]
QUESTION_TYPES = get_args(QuestionType)
CHOICE_QUESTION_TYPES = ("select", "radio", "checkbox")


# --- Auth ---


class RegisterRequest(BaseModel):
    """Field rules are checked together in ``services.auth.register``."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    password_confirmation: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    remember: bool = False


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    user: UserOut
    token: str


class LogoutResponse(BaseModel):
    success: bool = True


# --- Surveys ---


class QuestionIn(BaseModel):
    """A question as sent by the editor. A client side ``id`` is ignored."""

    type: QuestionType
    text: str = Field(..., min_length=1)
    description: Optional[str] = None
    options: Optional[List[str]] = None
    required: bool = False

    @model_validator(mode="after")
    def check_options(self):
        if self.type in CHOICE_QUESTION_TYPES and not self.options:
            raise ValueError(f'options are required for "{self.type}" questions')
        return self


class SurveyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=1000)
    description: Optional[str] = None
    status: bool = False
    expire_date: Optional[date] = None
    image: Optional[str] = None  # data URI
    questions: List[QuestionIn] = []


class SurveyUpdate(BaseModel):
    """Partial update, only the fields present in the body are written."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    description: Optional[str] = None
    status: Optional[bool] = None
    expire_date: Optional[date] = None
    image: Optional[str] = None
    questions: Optional[List[QuestionIn]] = None

    @field_validator("title", "status", "questions")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"The {info.field_name} field may not be null.")
        return v


class QuestionOut(BaseModel):
    id: int
    type: str
    text: str
    description: Optional[str] = None
    options: Optional[List[str]] = None
    required: bool = False

    model_config = ConfigDict(from_attributes=True)


class SurveyOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: bool
    expire_date: Optional[date] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    questions: List[QuestionOut] = []


class SurveyEnvelope(BaseModel):
    data: SurveyOut


class PageMeta(BaseModel):
    current_page: int
    last_page: int
    per_page: int
    total: int


class SurveyPage(BaseModel):
    data: List[SurveyOut]
    meta: PageMeta
