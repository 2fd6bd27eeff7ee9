"""Pydantic request/response schemas for gb_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    user_id: str
    name: str
    email: str


class SignupResponse(BaseModel):
    user_id: str
    name: str
    email: str
    created_at: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int = 1800
