"""
What a resource sees of a request, and what it hands back.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping
from urllib.parse import quote

from db.persistence import Outcome
from models.access_token import AccessToken
from models.user import Role


class Capability(str, Enum):
    """
    Optional operations a record type may provide. The value is the name of
    the async method implementing it: async def read(self, ctx) -> Result.
    """

    READ = "read"
    CREATE = "create"
    REPLACE = "replace"
    DELETE = "delete"


METHOD_CAPABILITIES: Mapping[str, Capability] = MappingProxyType({
    "GET": Capability.READ,
    "HEAD": Capability.READ,
    "POST": Capability.CREATE,
    "PUT": Capability.REPLACE,
    "DELETE": Capability.DELETE,
})


@dataclass(frozen=True)
class RequestContext:
    """Immutable per-request view: path captures, query, list hints, credential."""

    method: str
    prefix: str
    credential: AccessToken
    path_args: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    query_args: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    limit: int | None = None
    brief: bool = False

    @property
    def role(self) -> Role:
        return self.credential.role

    def has_role(self, *roles: Role) -> bool:
        return self.credential.role in roles

    def location(self, *parts: object) -> str:
        """Absolute path below this route's prefix, e.g. /api/track/t1/."""
        return self.prefix + "".join(f"{quote(str(p), safe='')}/" for p in parts)


@dataclass
class Result:
    """
    Outcome of a capability. code 0 means the method's default (200).
    error is internal: it forces a 500 and is only ever logged.
    """

    code: int = 0
    message: str = ""
    location: str | None = None
    error: BaseException | None = None

    @property
    def is_ok(self) -> bool:
        return self.error is None and 0 <= self.code < 400

    @classmethod
    def from_outcome(cls, outcome: Outcome, **kwargs) -> "Result":
        """500 for a failed outcome, otherwise kwargs as given."""
        if outcome.is_failed:
            return cls(code=500, error=outcome.error)
        return cls(**kwargs)


def bad_request(message: str) -> Result:
    return Result(code=400, message=message)


def forbidden(message: str = "Access denied") -> Result:
    return Result(code=403, message=message)


def not_found(message: str = "not found") -> Result:
    return Result(code=404, message=message)
