"""Authentication schemas."""

from pydantic import BaseModel, Field

from leazr.models.user import UserRole


class LoginRequest(BaseModel):
    """Login request body."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    success: bool
    message: str
    role: str = Field(default="")


class UserResponse(BaseModel):
    """Current user, as returned by /auth/me."""

    id: int
    username: str
    display_name: str
    role: UserRole

    model_config = {"from_attributes": True}
