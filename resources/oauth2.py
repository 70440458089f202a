"""
OAuth2 login against the external identity provider.

The client sends the user to auth_url, then posts the code it got back to
/oauth2/login/?code=... and receives the user and a fresh access token.
"""

from pydantic import BaseModel

from api.context import RequestContext, Result, bad_request
from core.errors import ApiError, IdentityProviderError, ValidationFailure
from db.session import get_database
from models.access_token import TABLE as TOKEN_TABLE, AccessToken
from models.schemas import OAuth2Info
from models.user import TABLE as USER_TABLE, Role, User
from services.credentials import create_user_token
from services.identity import get_identity_provider
from utils.logging import get_logger

logger = get_logger(__name__)


class OAuth2InfoResource(OAuth2Info):
    """/oauth2/info/"""

    async def read(self, ctx: RequestContext) -> Result:
        info = get_identity_provider().info()
        self.client_id = info.client_id
        self.auth_url = info.auth_url
        self.redirect_url = info.redirect_url
        return Result()


class LoginResource(BaseModel):
    """/oauth2/login/?code=...[&redirect-url=...]"""

    user: User | None = None
    token: AccessToken | None = None

    async def create(self, ctx: RequestContext) -> Result:
        code = ctx.query_args.get("code")
        if not code:
            return bad_request("No code provided")
        provider = get_identity_provider()
        try:
            redirect_url = provider.redirect_url_for(ctx.query_args.get("redirect-url"))
            access_token = await provider.exchange_code(code, redirect_url)
            profile = await provider.fetch_profile(access_token)
        except ValidationFailure as e:
            return bad_request(e.message)
        except IdentityProviderError as e:
            if e.http_status < 500:
                return bad_request(e.message)
            return Result(code=500, error=e)

        db = get_database()
        user = User()
        outcome = await db.select(USER_TABLE, user, ("id", "=", profile.id))
        if outcome.is_failed:
            return Result.from_outcome(outcome)
        user.id = profile.id
        user.username = profile.username
        user.display_name = profile.display_name
        user.email_address = profile.email_address
        if not user.role:
            user.role = Role.PARTICIPANT
        outcome = await db.upsert(USER_TABLE, user, ("id", "=", user.id))
        if outcome.is_failed:
            return Result.from_outcome(outcome)

        try:
            token = await create_user_token(db, user)
        except ApiError as e:
            return Result(code=500, error=e)
        logger.info("user_logged_in", extra={"user_id": str(user.id), "username": user.username})
        self.user = user
        self.token = token
        return Result()


class LogoutResource(BaseModel):
    """/oauth2/logout/ revokes the token used for the request."""

    async def create(self, ctx: RequestContext) -> Result:
        token = ctx.credential
        if token.owner_user is None:
            return bad_request("This access token type doesn't support logouts")
        outcome = await get_database().delete(TOKEN_TABLE, ("id", "=", token.id))
        if outcome.is_failed:
            return Result.from_outcome(outcome)
        logger.info("user_logged_out", extra={"user_id": str(token.owner_user)})
        return Result(message="logged out")
