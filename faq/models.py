# faq/models.py
# This file contains the Pydantic models used in the application.
# It defines question/answer records, the in-memory credentials kept by the
# security layer, and the request bodies validated by the routes.
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

MAX_QUESTION_LENGTH = 200


class QARecord(BaseModel):
    id: int
    question: str
    answer: str = ""
    asked_at: Optional[datetime] = None
    answered_at: Optional[datetime] = None
    validated: bool = False


class SessionToken(BaseModel):
    value: str
    expires_at: datetime


class IpCooldown(BaseModel):
    fingerprint: str  # hash of the address, never the address itself
    unlock_at: datetime


class BearerCredential(BaseModel):
    value: str
    expires_at: datetime


class QuestionForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    question: str = Field(alias="input-question", min_length=1, max_length=MAX_QUESTION_LENGTH)
    captcha_response: str = Field(default="", alias="g-recaptcha-response")


class LoginRequest(BaseModel):
    login: str
    password: str


class AnswerRequest(BaseModel):
    answer: str
    validated: bool = False
