from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

# Fields are optional so missing values reach the handler and get the
# ``{success: false, message}`` 400 response instead of a 422.


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {"name": "Ada", "email": "ada@example.com", "password": "hunter22"}
        }
    }


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    is_verified: bool = Field(False, alias="isVerified")

    model_config = {"populate_by_name": True}


class MessageResponse(BaseModel):
    success: bool
    message: str


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: UserOut


class VerifyResponse(BaseModel):
    success: bool = True
    user: UserOut
