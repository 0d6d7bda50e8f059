"""Pydantic schemas for user endpoints."""

from pydantic import BaseModel


class UserCreateRequest(BaseModel):
    # None is accepted here; the field rules report it.
    username: str | None = None
    email: str | None = None
    password: str | None = None


class UserUpdateRequest(BaseModel):
    username: str | None = None
    image: str | None = None


class UserResponse(BaseModel):
    id: int
    username: str | None
    email: str
    image: str | None

    model_config = {"from_attributes": True}


class UserPageResponse(BaseModel):
    content: list[UserResponse]
    page: int
    size: int
    totalPages: int


class MessageResponse(BaseModel):
    message: str
