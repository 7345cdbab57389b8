from pydantic import BaseModel, Field

from churchcms.schemas.user import UserOut


class LoginRequest(BaseModel):
    identifier: str = Field(..., min_length=1, description="Email or username")
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    must_change_password: bool = False
    user: UserOut


class PasswordChangeRequest(BaseModel):
    current_password: str | None = None
    new_password: str | None = None
