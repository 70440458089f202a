"""
Access token entries: the row behind every bearer key.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import Field

from db.fields import EXCLUDED, Column, Record
from models.user import Role, User

TABLE = "access_tokens"


class AccessToken(Record):
    """
    Bearer token. Exactly one of owner_user and non_user_role is set: user
    tokens take their role from the linked user, others carry their own.
    """

    id: UUID | None = None
    key: str | None = None
    owner_user: UUID | None = None
    non_user_role: Role | None = None
    creation_time: datetime | None = None
    expiration_time: datetime | None = None
    is_static: Annotated[bool, Column("static")] = Field(default=False, alias="static")
    comment: str = ""
    # Linked user, loaded by the credential resolver. Never stored or serialized.
    user: Annotated[User | None, EXCLUDED] = Field(default=None, exclude=True)

    def validation_error(self) -> str:
        """User-safe reason the entry is invalid, or "" when it is consistent."""
        if not self.key:
            return "missing key"
        if (self.owner_user is None) == (self.non_user_role is None):
            return "exactly one of user ID and non-user role must be set"
        return ""

    @property
    def role(self) -> Role:
        """Effective role. INVALID for an inconsistent entry or an unloaded user."""
        if self.owner_user is not None:
            return self.user.role if self.user is not None and self.user.role else Role.INVALID
        if self.non_user_role is not None:
            return self.non_user_role
        return Role.INVALID

    @property
    def is_guest(self) -> bool:
        return self.role == Role.GUEST
