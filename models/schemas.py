"""
Pydantic schemas for the identity provider exchange.
Keeps the JSON contracts explicit.
"""

from uuid import UUID

from pydantic import BaseModel, Field


class OAuth2Info(BaseModel):
    """Public OAuth2 client details the frontend needs to start a login."""

    client_id: str = ""
    auth_url: str = ""
    redirect_url: str = ""


class IdentityProfile(BaseModel):
    """Profile returned by the identity provider."""

    id: UUID = Field(alias="uuid")
    username: str
    display_name: str = ""
    email_address: str = Field(default="", alias="email")

    model_config = {"populate_by_name": True, "extra": "ignore"}
