"""Pydantic models for auth domain."""

from datetime import datetime

from pydantic import BaseModel, Field


class User(BaseModel):
    """A registered user. Provisioned outside this system.

    email is stored as provisioned and matched by equality against the
    provider-verified claim, so it is not re-validated here.
    """

    id: int
    email: str

    model_config = {"from_attributes": True}


class LoginProcess(BaseModel):
    """An OIDC login awaiting the provider's redirect back."""

    state_token: str = Field(..., description="CSRF state round-tripped through the provider")
    nonce: str = Field(..., description="Bound into the ID token to prevent replay")
    created_at: datetime | None = None


class Session(BaseModel):
    """A server-held session. The token is a bare capability, no claims."""

    session_id: str = Field(..., min_length=32, max_length=32)
    user_id: int
    valid_until: datetime


class SessionData(BaseModel):
    """A live session joined with its user."""

    session_id: str
    user_id: int
    email: str


class PostLoginQuery(BaseModel):
    """Query parameters of the provider's redirect back to us."""

    code: str
    state: str
