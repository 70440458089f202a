"""
Services used by resources and the dispatcher: credentials and the identity provider.
"""

from services.credentials import CredentialResolver, make_guest_token
from services.identity import IdentityProvider

__all__ = ["CredentialResolver", "IdentityProvider", "make_guest_token"]
