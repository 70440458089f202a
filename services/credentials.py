"""
Credential resolution: bearer key -> access token entry -> effective role.

Every request gets exactly one credential. Without an Authorization header it
is a synthetic guest token; with one, it is an active token from the
database or the request is refused with 401. Anything inconsistent behind a
token (dangling user reference, owner/role invariant broken) fails closed.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from core.config import Settings, get_settings
from core.errors import AuthFailure, StatementFailure
from core.security import generate_token_key, is_safe_for_log, parse_bearer
from db.persistence import Database
from models.access_token import TABLE, AccessToken
from models.user import TABLE as USER_TABLE, Role, User
from utils.logging import get_logger

logger = get_logger(__name__)

GUEST_TOKEN_ID = UUID(int=0)
STATIC_TOKEN_YEARS = 1000


def make_guest_token() -> AccessToken:
    """Empty-ish guest token, such that all requests have a role."""
    now = datetime.now(UTC)
    return AccessToken(
        id=GUEST_TOKEN_ID,
        key="",
        non_user_role=Role.GUEST,
        creation_time=now,
        expiration_time=now,
        is_static=False,
        comment="Guest",
    )


class CredentialResolver:
    """Maps Authorization headers to access tokens."""

    def __init__(self, database: Database):
        self.database = database

    async def resolve(self, authorization: str | None) -> AccessToken:
        """Credential for a request. Raises AuthFailure for a bad or unknown key."""
        key = parse_bearer(authorization)
        if key is None:
            return make_guest_token()
        token = await self.load_by_key(key)
        if token is None:
            raise AuthFailure("Invalid access token specified (expired?)")
        return token

    async def load_by_key(self, key: str, now: datetime | None = None) -> AccessToken | None:
        """Active token for key with its user loaded, or None."""
        if not key:
            return None
        now = now or datetime.now(UTC)
        token = AccessToken()
        outcome = await self.database.select(
            TABLE,
            token,
            ("key", "=", key),
            ("creation_time", "<=", now),
            ("expiration_time", ">=", now),
        )
        if outcome.is_failed:
            logger.error("access_token_select_failed", extra={"error": str(outcome.error)})
            return None
        if not outcome.is_success:
            logger.debug("access_token_not_found", extra={"key": is_safe_for_log(key)})
            return None

        if problem := token.validation_error():
            logger.warning("access_token_inconsistent", extra={"token_id": str(token.id), "problem": problem})
            return None

        if token.owner_user is not None:
            user = User()
            user_outcome = await self.database.select(USER_TABLE, user, ("id", "=", token.owner_user))
            if not user_outcome.is_success:
                logger.warning(
                    "access_token_user_missing",
                    extra={
                        "token_id": str(token.id),
                        "user_id": str(token.owner_user),
                        "error": str(user_outcome.error) if user_outcome.error else None,
                    },
                )
                return None
            token.user = user
        return token

    async def sweep_expired(self, now: datetime | None = None) -> int:
        """Delete expired tokens. Best effort: failures are logged, never raised."""
        outcome = await self.database.delete(TABLE, ("expiration_time", "<", now or datetime.now(UTC)))
        if outcome.is_failed:
            logger.error("access_token_purge_failed", extra={"error": str(outcome.error)})
            return 0
        if outcome.affected:
            logger.info("access_tokens_purged", extra={"count": outcome.affected})
        return outcome.affected


async def create_user_token(database: Database, user: User, settings: Settings | None = None) -> AccessToken:
    """Issue and save a fresh token for user, starting now."""
    settings = settings or get_settings()
    now = datetime.now(UTC)
    token = AccessToken(
        id=uuid4(),
        key=generate_token_key(),
        owner_user=user.id,
        non_user_role=None,
        creation_time=now,
        expiration_time=now + timedelta(seconds=settings.ACCESS_TOKEN_LIFETIME_SECONDS),
        is_static=False,
        comment=f"OAuth2: {user.username}",
    )
    if problem := token.validation_error():
        raise StatementFailure(f"refusing to save access token: {problem}")
    outcome = await database.insert(TABLE, token)
    if outcome.is_failed:
        raise outcome.error or StatementFailure("access token insert failed")
    token.user = user
    return token


async def sync_static_tokens(database: Database, settings: Settings | None = None) -> int:
    """
    Replace every static token with the ones in configuration. Invalid entries
    are logged and skipped. Returns how many were saved.
    """
    settings = settings or get_settings()
    outcome = await database.delete(TABLE, ("static", "=", True))
    if outcome.is_failed:
        raise outcome.error

    now = datetime.now(UTC)
    saved = 0
    for token_id, config in settings.STATIC_ACCESS_TOKENS.items():
        try:
            role = Role(config.role)
        except ValueError:
            logger.warning("static_token_invalid", extra={"token_id": str(token_id), "problem": "unknown role"})
            continue
        token = AccessToken(
            id=token_id,
            key=config.key,
            owner_user=None,
            non_user_role=role,
            creation_time=now,
            expiration_time=now + timedelta(days=365 * STATIC_TOKEN_YEARS),
            is_static=True,
            comment=config.comment,
        )
        if problem := token.validation_error():
            logger.warning("static_token_invalid", extra={"token_id": str(token_id), "problem": problem})
            continue
        outcome = await database.insert(TABLE, token)
        if outcome.is_failed:
            raise outcome.error
        saved += 1
    logger.info("static_tokens_synced", extra={"count": saved})
    return saved
