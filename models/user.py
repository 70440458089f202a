"""
User records and roles.
"""

from enum import Enum
from uuid import UUID

from db.fields import Record

TABLE = "users"


class Role(str, Enum):
    """Roles for users and tokens."""

    INVALID = ""
    GUEST = "guest"  # unauthenticated requests
    PARTICIPANT = "participant"  # logged-in users
    OPERATOR = "operator"
    ADMIN = "admin"
    TESTER = "tester"  # status scripts; non-user tokens only


# Roles that may act on behalf of other users.
STAFF_ROLES = frozenset({Role.OPERATOR, Role.ADMIN})


class User(Record):
    """A user as known from the identity provider, plus a local role."""

    id: UUID | None = None
    username: str | None = None
    display_name: str | None = None
    email_address: str | None = None
    role: Role | None = None
