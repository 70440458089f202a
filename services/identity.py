"""
OAuth2 identity provider client: authorization-code exchange and profile lookup.
Only the login resource talks to the provider; the dispatcher never does.
"""

from urllib.parse import urlsplit

import httpx
from pydantic import ValidationError

from core.config import Settings, get_settings
from core.errors import IdentityProviderError, ValidationFailure
from models.schemas import IdentityProfile, OAuth2Info
from utils.logging import get_logger

logger = get_logger(__name__)


class IdentityProvider:
    """
    Async client for the provider. Pass transport= in tests to stub the
    provider out (httpx.MockTransport).
    """

    def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings or get_settings()
        self._transport = transport

    def info(self) -> OAuth2Info:
        return OAuth2Info(
            client_id=self.settings.OAUTH2_CLIENT_ID,
            auth_url=self.settings.OAUTH2_AUTH_URL,
            redirect_url=self.settings.OAUTH2_REDIRECT_URL,
        )

    def redirect_url_for(self, requested: str | None) -> str:
        """
        Redirect URL to use for an exchange. Alternatives are only allowed
        when they point at localhost, for frontend development.
        """
        configured = self.settings.OAUTH2_REDIRECT_URL
        if not requested or requested == configured:
            return configured
        try:
            host = urlsplit(requested).hostname
        except ValueError:
            raise ValidationFailure("Invalid redirect URL provided") from None
        if host is None:
            raise ValidationFailure("Invalid redirect URL provided")
        if host != "localhost":
            raise ValidationFailure("Illegal redirect URL provided")
        return requested

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.IDP_TIMEOUT_SECONDS, transport=self._transport)

    async def exchange_code(self, code: str, redirect_url: str) -> str:
        """Trade an authorization code for the provider's access token."""
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_url,
            "client_id": self.settings.OAUTH2_CLIENT_ID,
            "client_secret": self.settings.OAUTH2_CLIENT_SECRET,
        }
        try:
            async with self._client() as client:
                response = await client.post(self.settings.OAUTH2_TOKEN_URL, data=form)
        except httpx.HTTPError as e:
            logger.warning("idp_token_exchange_error", extra={"error": str(e)})
            raise IdentityProviderError("token exchange failed") from e
        if response.is_error:
            logger.info("idp_token_exchange_refused", extra={"status": response.status_code})
            raise IdentityProviderError("IdP didn't accept the provided code", http_status=400)
        try:
            access_token = response.json()["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise IdentityProviderError("token response without access_token") from e
        return access_token

    async def fetch_profile(self, access_token: str) -> IdentityProfile:
        try:
            async with self._client() as client:
                response = await client.get(
                    self.settings.IDP_PROFILE_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logger.warning("idp_profile_error", extra={"error": str(e)})
            raise IdentityProviderError("profile request failed") from e
        if response.is_error:
            logger.warning("idp_profile_refused", extra={"status": response.status_code})
            raise IdentityProviderError(f"profile endpoint answered {response.status_code}")
        try:
            return IdentityProfile.model_validate_json(response.content)
        except ValidationError as e:
            raise IdentityProviderError("unreadable profile") from e


# Singleton, replaced in tests
_provider: IdentityProvider | None = None


def get_identity_provider() -> IdentityProvider:
    global _provider
    if _provider is None:
        _provider = IdentityProvider()
    return _provider


def set_identity_provider(provider: IdentityProvider | None) -> None:
    global _provider
    _provider = provider
