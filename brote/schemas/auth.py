"""Request/response schemas for auth endpoints and token claims."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class RegisterRequest(BaseModel):
    """Self-service registration of a local account."""

    username: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    real_name: str = Field(default="", max_length=255, alias="realName")
    password: str = Field(..., min_length=1, max_length=128)

    model_config = {"populate_by_name": True}


class TokenResponse(BaseModel):
    """Signed access token returned after login or registration."""

    access_token: str = Field(..., description="Signed session token")
    token_type: str = Field(default="bearer", description="Token type")


class TokenClaims(BaseModel):
    """Identity carried inside a session token. Never persisted."""

    user_id: int
    user_name: str = ""
    real_name: str = ""
    role: str
    exp: int


class RecoveryRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


class ChangePasswordRequest(BaseModel):
    """Exchange a recovery token for a new password."""

    token: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128, alias="newPassword")

    model_config = {"populate_by_name": True}


class MessageResponse(BaseModel):
    message: str
