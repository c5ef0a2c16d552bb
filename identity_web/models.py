"""API request/response models"""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator


def _number_as_text(value: Any) -> Any:
    # Employee codes and tokens may arrive as JSON numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class LoginRequest(BaseModel):
    code: Union[str, int] = Field(..., description="Employee code, e.g. emp001")
    password: Union[str, int]

    @field_validator("code", "password", mode="after")
    @classmethod
    def _as_text(cls, value: Any) -> str:
        return str(value)


class ChangePasswordRequest(BaseModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None

    @field_validator("old_password", "new_password", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        return _number_as_text(value)


class SessionUser(BaseModel):
    code: str
    name: str
    branch: str
    role: str


class LoginResponse(BaseModel):
    token: str
    user: SessionUser


class HandshakeResponse(BaseModel):
    handshakeToken: str


class ActionRequest(BaseModel):
    """Body of the JSON action endpoint used by peer applications"""
    action: str
    token: Optional[Union[str, int]] = None

    @field_validator("token", mode="after")
    @classmethod
    def _as_text(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)
