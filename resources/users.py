"""
Users: staff see everyone, participants only themselves, guests nobody.
"""

from pydantic import Field, RootModel

from api.context import RequestContext, Result, bad_request, forbidden, not_found
from db.session import get_database
from models.user import STAFF_ROLES, TABLE, User
from utils.validators import parse_uuid


class UserResource(User):
    """/user/{id}/"""

    async def read(self, ctx: RequestContext) -> Result:
        user_id = parse_uuid(ctx.path_args.get("id"))
        if user_id is None:
            return bad_request("missing or invalid user ID")
        own = ctx.credential.user is not None and ctx.credential.user.id == user_id
        if not own and not ctx.has_role(*STAFF_ROLES):
            return forbidden()
        outcome = await get_database().select(TABLE, self, ("id", "=", user_id))
        if outcome.is_failed:
            return Result.from_outcome(outcome)
        if not outcome.is_success:
            return not_found("user not found")
        return Result()


class UserList(RootModel[list[User]]):
    """/users/?username=..."""

    root: list[User] = Field(default_factory=list)

    async def read(self, ctx: RequestContext) -> Result:
        where = []
        if username := ctx.query_args.get("username"):
            where.append(("username", "=", username))
        if not ctx.has_role(*STAFF_ROLES):
            if ctx.credential.user is None:
                return Result()
            where.append(("id", "=", ctx.credential.user.id))
        outcome = await get_database().select_many(TABLE, self.root, User, *where, limit=ctx.limit)
        return Result.from_outcome(outcome)
