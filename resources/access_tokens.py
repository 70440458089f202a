"""
Access tokens. Keys are never shown here, only at login.

Admins see every token; users see and revoke their own.
"""

from pydantic import Field, RootModel

from api.context import RequestContext, Result, bad_request, forbidden, not_found
from db.session import get_database
from models.access_token import TABLE, AccessToken
from models.user import Role
from utils.validators import parse_bool, parse_uuid


def _ownership(ctx: RequestContext) -> tuple | None:
    """Predicate limiting tokens to the caller's, None for admins."""
    if ctx.has_role(Role.ADMIN):
        return None
    return ("owner_user", "=", ctx.credential.owner_user)


class AccessTokenResource(AccessToken):
    """/access_token/{id}/"""

    async def read(self, ctx: RequestContext) -> Result:
        token_id = parse_uuid(ctx.path_args.get("id"))
        if token_id is None:
            return bad_request("missing or invalid token ID")
        if not ctx.has_role(Role.ADMIN) and ctx.credential.owner_user is None:
            return forbidden()
        where = [("id", "=", token_id)]
        if owner := _ownership(ctx):
            where.append(owner)
        outcome = await get_database().select(TABLE, self, *where)
        if outcome.is_failed:
            return Result.from_outcome(outcome)
        if not outcome.is_success:
            return not_found("access token not found")
        self.key = None
        return Result()

    async def delete(self, ctx: RequestContext) -> Result:
        token_id = parse_uuid(ctx.path_args.get("id"))
        if token_id is None:
            return bad_request("missing or invalid token ID")
        if not ctx.has_role(Role.ADMIN) and ctx.credential.owner_user is None:
            return forbidden()
        db = get_database()
        target = AccessToken()
        where = [("id", "=", token_id)]
        if owner := _ownership(ctx):
            where.append(owner)
        outcome = await db.select(TABLE, target, *where)
        if outcome.is_failed:
            return Result.from_outcome(outcome)
        if not outcome.is_success:
            return not_found("access token not found")
        if target.is_static:
            return bad_request("static access tokens are managed by configuration")
        outcome = await db.delete(TABLE, ("id", "=", token_id))
        return Result.from_outcome(outcome, code=204)


class AccessTokenList(RootModel[list[AccessToken]]):
    """/access_tokens/?static=false"""

    root: list[AccessToken] = Field(default_factory=list)

    async def read(self, ctx: RequestContext) -> Result:
        if not ctx.has_role(Role.ADMIN) and ctx.credential.owner_user is None:
            return Result()
        where = []
        if owner := _ownership(ctx):
            where.append(owner)
        static = parse_bool(ctx.query_args.get("static"))
        if static is not None:
            where.append(("static", "=", static))
        outcome = await get_database().select_many(TABLE, self.root, AccessToken, *where, limit=ctx.limit)
        for token in self.root:
            token.key = None
        return Result.from_outcome(outcome)
