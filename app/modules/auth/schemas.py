from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from app.core.validators import (
    CPF_LENGTH, MIN_PASSWORD_LENGTH, clean_cpf, is_valid_email, normalize_email,
)


def _require_text(value: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError("is required")
    return value


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: str
    cpf: str
    password: str = Field(alias="senha")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _require_text(value).strip()

    @field_validator("email")
    @classmethod
    def email_format(cls, value: str) -> str:
        _require_text(value)
        if not is_valid_email(value):
            raise ValueError("invalid email format")
        return normalize_email(value)

    @field_validator("cpf")
    @classmethod
    def cpf_digits(cls, value: str) -> str:
        _require_text(value)
        digits = clean_cpf(value)
        if len(digits) != CPF_LENGTH:
            raise ValueError(f"CPF must have {CPF_LENGTH} digits")
        return digits

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        _require_text(value)
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"password must have at least {MIN_PASSWORD_LENGTH} characters")
        return value


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str = Field(alias="senha")

    @field_validator("email", "password")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _require_text(value)


class RegisteredUser(BaseModel):
    id: str
    name: str
    email: str
    cpf: str
    active: bool
    created_at: Optional[datetime] = None


class UserPublic(BaseModel):
    id: str
    name: str
    email: str
    cpf: str
    last_login_at: Optional[datetime] = None


class SessionInfo(BaseModel):
    id: str
    expires_at: datetime


class TokenInfo(BaseModel):
    issued_at: datetime
    expires_at: datetime
    time_remaining: int  # seconds


class AuthContext(BaseModel):
    user: UserPublic
    session: SessionInfo
    token_info: TokenInfo


class LoginData(BaseModel):
    token: str
    user: UserPublic
    expires_in: int


class LogoutData(BaseModel):
    session_invalidated: bool
    timestamp: datetime


class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    data: RegisteredUser


class LoginResponse(BaseModel):
    success: bool = True
    message: str
    data: LoginData


class LogoutResponse(BaseModel):
    success: bool = True
    message: str
    data: LogoutData


class VerifyResponse(BaseModel):
    success: bool = True
    message: str
    data: AuthContext
