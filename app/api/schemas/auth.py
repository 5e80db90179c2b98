from __future__ import annotations

from pydantic import BaseModel, Field


class CredentialsRequest(BaseModel):
    username: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=256)


class SignUpRequest(CredentialsRequest):
    email: str | None = Field(default=None, max_length=255)


class UsernameResponse(BaseModel):
    message: str
    username: str


class MessageResponse(BaseModel):
    message: str
