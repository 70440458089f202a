"""
Record shapes persisted through the db façade.
"""

from models.access_token import AccessToken
from models.track import Track, TrackType
from models.user import Role, User

__all__ = ["AccessToken", "Role", "Track", "TrackType", "User"]
