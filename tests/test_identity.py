"""
Identity provider client tests with a stubbed transport.
"""

import httpx
import pytest

from conftest import PROFILE_ID, idp_handler
from core.config import Settings
from core.errors import IdentityProviderError, ValidationFailure
from services.identity import IdentityProvider

@pytest.fixture
def provider(settings: Settings) -> IdentityProvider:
    return IdentityProvider(settings, transport=httpx.MockTransport(idp_handler))


def test_info(provider: IdentityProvider) -> None:
    info = provider.info()
    assert info.client_id == "techo-client"
    assert info.auth_url == "https://idp.example.com/authorize"


def test_redirect_url(provider: IdentityProvider) -> None:
    assert provider.redirect_url_for(None) == "https://techo.example.com/login/"
    assert provider.redirect_url_for("http://localhost:3000/login/") == "http://localhost:3000/login/"
    with pytest.raises(ValidationFailure, match="Illegal"):
        provider.redirect_url_for("https://evil.example.com/")
    with pytest.raises(ValidationFailure, match="Invalid"):
        provider.redirect_url_for("not a url")


async def test_code_exchange_and_profile(provider: IdentityProvider) -> None:
    access = await provider.exchange_code("good-code", provider.redirect_url_for(None))
    assert access == "idp-access"
    profile = await provider.fetch_profile(access)
    assert profile.id == PROFILE_ID
    assert profile.username == "alice"
    assert profile.email_address == "alice@example.com"


async def test_refused_code(provider: IdentityProvider) -> None:
    with pytest.raises(IdentityProviderError) as excinfo:
        await provider.exchange_code("bad-code", provider.redirect_url_for(None))
    assert excinfo.value.http_status == 400


async def test_profile_refused(provider: IdentityProvider) -> None:
    with pytest.raises(IdentityProviderError) as excinfo:
        await provider.fetch_profile("stolen")
    assert excinfo.value.http_status == 502
