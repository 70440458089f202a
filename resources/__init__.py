"""
Resource registration: which record answers under which path.
"""

from api.router import RouteTable
from resources.access_tokens import AccessTokenList, AccessTokenResource
from resources.oauth2 import LoginResource, LogoutResource, OAuth2InfoResource
from resources.tracks import TrackList, TrackResource
from resources.users import UserList, UserResource

# Collections answer on the bare prefix, single records on "{id}/" below it.
LIST_PATTERN = r"^$"
ITEM_PATTERN = r"^(?:(?P<id>[^/]+)/)?$"


def register_resources(table: RouteTable) -> RouteTable:
    table.add("/tracks/", LIST_PATTERN, TrackList)
    table.add("/track/", ITEM_PATTERN, TrackResource)
    table.add("/users/", LIST_PATTERN, UserList)
    table.add("/user/", ITEM_PATTERN, UserResource)
    table.add("/access_tokens/", LIST_PATTERN, AccessTokenList)
    table.add("/access_token/", ITEM_PATTERN, AccessTokenResource)
    table.add("/oauth2/info/", LIST_PATTERN, OAuth2InfoResource)
    table.add("/oauth2/login/", LIST_PATTERN, LoginResource)
    table.add("/oauth2/logout/", LIST_PATTERN, LogoutResource)
    return table
