from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    """The (id, role) pair extracted from a verified bearer token."""
    model_config = ConfigDict(frozen=True)

    id: int
    role: str


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    password: str | None = None
    role: str | None = None  # employer / candidate
    company_name: str | None = Field(default=None, alias="companyName")


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class UserRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    password_hash: str
    role: str
    company_name: str | None = None
    created_at: datetime | None = None

    def public(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "companyName": self.company_name,
        }
