import datetime as dt

from pydantic import BaseModel, EmailStr, Field, field_validator

from core.config import settings

class SignupRequest(BaseModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value):
        if not value.strip():
            raise ValueError("Name is required")
        return value.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value):
        return value.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value):
        if len(value) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
        return value

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value):
        return value.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value):
        if not value:
            raise ValueError("Password is required")
        return value

class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    created_at: dt.datetime = Field(alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True

class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse
