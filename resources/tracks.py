"""
Tracks: list and single-track resources.

Everyone may read tracks. Admins create and delete them, operators and
admins may replace them.
"""

from pydantic import Field, RootModel

from api.context import RequestContext, Result, bad_request, forbidden, not_found
from db.session import get_database
from models.track import TABLE, Track, TrackType
from models.user import Role, STAFF_ROLES


class TrackResource(Track):
    """/track/{id}/"""

    def validation_error(self) -> str:
        if not self.id:
            return "missing ID"
        if "/" in self.id:
            return "invalid ID"
        if self.type is None:
            return "missing or invalid type"
        if self.station_count_max is not None and self.station_count_max < 0:
            return "negative max station count"
        return ""

    async def read(self, ctx: RequestContext) -> Result:
        track_id = ctx.path_args.get("id")
        if not track_id:
            return bad_request("missing ID")
        outcome = await get_database().select(TABLE, self, ("id", "=", track_id))
        if outcome.is_failed:
            return Result.from_outcome(outcome)
        if not outcome.is_success:
            return not_found("track not found")
        return Result()

    async def create(self, ctx: RequestContext) -> Result:
        if not ctx.has_role(Role.ADMIN):
            return forbidden()
        if problem := self.validation_error():
            return bad_request(problem)
        db = get_database()
        outcome = await db.exists(TABLE, ("id", "=", self.id))
        if outcome.is_failed:
            return Result.from_outcome(outcome)
        if outcome.is_success:
            return Result(code=409, message="duplicate ID")
        outcome = await db.insert(TABLE, self)
        return Result.from_outcome(outcome, code=201, location=ctx.location(self.id))

    async def replace(self, ctx: RequestContext) -> Result:
        if not ctx.has_role(*STAFF_ROLES):
            return forbidden()
        track_id = ctx.path_args.get("id")
        if not track_id:
            return bad_request("missing ID")
        if self.id is None:
            self.id = track_id
        elif self.id != track_id:
            return bad_request("mismatched ID")
        if problem := self.validation_error():
            return bad_request(problem)
        db = get_database()
        outcome = await db.exists(TABLE, ("id", "=", track_id))
        if outcome.is_failed:
            return Result.from_outcome(outcome)
        if not outcome.is_success:
            return not_found("track not found")
        return Result.from_outcome(await db.update(TABLE, self, ("id", "=", track_id)))

    async def delete(self, ctx: RequestContext) -> Result:
        if not ctx.has_role(Role.ADMIN):
            return forbidden()
        track_id = ctx.path_args.get("id")
        if not track_id:
            return bad_request("missing ID")
        outcome = await get_database().delete(TABLE, ("id", "=", track_id))
        if outcome.is_failed:
            return Result.from_outcome(outcome)
        if not outcome.affected:
            return not_found("track not found")
        return Result(code=204)


class TrackList(RootModel[list[Track]]):
    """/tracks/?type=net&limit=10"""

    root: list[Track] = Field(default_factory=list)

    async def read(self, ctx: RequestContext) -> Result:
        where = []
        track_type = ctx.query_args.get("type")
        if track_type:
            try:
                where.append(("type", "=", TrackType(track_type)))
            except ValueError:
                return bad_request("invalid track type")
        outcome = await get_database().select_many(TABLE, self.root, Track, *where, limit=ctx.limit)
        return Result.from_outcome(outcome)
