from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator
import re

from scorekings.schemas.common import CamelModel

class AuthBase(BaseModel):
    email: EmailStr
    password: str = Field(max_length=64)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, email):
        if isinstance(email, str):
            return email.strip().lower()
        return email

class SignupSchema(AuthBase):
    @field_validator("password")
    @classmethod
    def validate_password(cls, password: str):
        if len(password) < 4:
            raise ValueError("Password too short (min 4 characters)")
        if not re.search(r"[A-Z]", password):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[0-9]", password):
            raise ValueError("Password must contain at least one number")
        return password

class LoginSchema(AuthBase):
    """Existing accounts are checked against the stored hash only"""
    pass


class UserOut(CamelModel):
    id: UUID
    email: str
    balance: Decimal
    is_active: bool
    created_at: datetime


class LoginResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserOut
