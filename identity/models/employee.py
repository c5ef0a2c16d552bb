"""Employee credential, session and handshake models"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class CredentialRecord(BaseModel):
    """One row of the Employees table, keyed by its column headers"""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    code: str = Field(default="", alias="Code")
    password: str = Field(default="", alias="Password")
    name: str = Field(default="", alias="Name")
    branch: str = Field(default="", alias="Branch")
    role: str = Field(default="", alias="Role")
    is_active: str = Field(default="", alias="IsActive")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        # Spreadsheet cells arrive as numbers, booleans or blanks
        return _as_text(value)

    @property
    def active(self) -> bool:
        return self.is_active.strip().lower() == "yes"

    def to_session(self) -> "Session":
        return Session(code=self.code, name=self.name, branch=self.branch, role=self.role)


class Session(BaseModel):
    """Authenticated identity attached to a session token"""

    model_config = ConfigDict(frozen=True)  # Immutable once issued

    code: str
    name: str
    branch: str
    role: str

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class HandshakeRecord(BaseModel):
    """Cached state of a cross-application handshake token"""

    model_config = ConfigDict(frozen=True)

    user: Session
    used: bool = False
