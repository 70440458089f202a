"""
Route table tests: prefix selection, pattern order, freezing.
"""

import pytest

from api.context import Capability
from api.router import RouteTable
from models import Track
from resources import ITEM_PATTERN, LIST_PATTERN, register_resources
from resources.tracks import TrackList, TrackResource


def frozen(*routes: tuple[str, str, type], site_prefix: str = "") -> RouteTable:
    table = RouteTable(site_prefix=site_prefix)
    for prefix, pattern, factory in routes:
        table.add(prefix, pattern, factory)
    table.freeze()
    return table


def test_optional_id_pattern() -> None:
    table = frozen(("/track/", ITEM_PATTERN, TrackResource))
    root = table.match("/track/")
    assert root is not None and dict(root.path_args) == {}
    one = table.match("/track/abc/")
    assert one is not None and dict(one.path_args) == {"id": "abc"}
    assert table.match("/track/abc/def/") is None


def test_trailing_separator_is_optional() -> None:
    table = frozen(("/track/", ITEM_PATTERN, TrackResource))
    matched = table.match("/track/t1")
    assert matched is not None
    assert matched.path_args["id"] == "t1"


def test_longest_prefix_wins() -> None:
    table = frozen(("/", r"^.*$", Track), ("/track/", ITEM_PATTERN, TrackResource))
    assert table.match("/track/t1/").route.factory is TrackResource
    assert table.match("/other/").route.factory is Track


def test_no_fallback_to_shorter_prefix() -> None:
    table = frozen(("/", r"^.*$", Track), ("/track/", ITEM_PATTERN, TrackResource))
    assert table.match("/track/a/b/") is None


def test_first_registered_pattern_wins() -> None:
    table = frozen(("/x/", r"^(?P<a>.*)$", Track), ("/x/", r"^(?P<b>.*)$", TrackResource))
    matched = table.match("/x/abc/")
    assert matched.route.factory is Track
    assert "a" in matched.path_args


def test_site_prefix_applies_to_all_routes() -> None:
    table = frozen(("/tracks/", LIST_PATTERN, TrackList), site_prefix="/api")
    assert table.match("/tracks/") is None
    matched = table.match("/api/tracks/")
    assert matched is not None
    assert matched.prefix == "/api/tracks/"


def test_capabilities_resolved_at_registration() -> None:
    table = frozen(("/track/", ITEM_PATTERN, TrackResource), ("/tracks/", LIST_PATTERN, TrackList))
    item = table.match("/track/").route
    assert item.capabilities == frozenset(Capability)
    listing = table.match("/tracks/").route
    assert listing.supports(Capability.READ)
    assert not listing.supports(Capability.DELETE)


def test_plain_record_has_no_capabilities() -> None:
    table = frozen(("/raw/", LIST_PATTERN, Track))
    assert table.match("/raw/").route.capabilities == frozenset()


def test_frozen_table_rejects_additions() -> None:
    table = frozen(("/tracks/", LIST_PATTERN, TrackList))
    with pytest.raises(RuntimeError):
        table.add("/track/", ITEM_PATTERN, TrackResource)


def test_unfrozen_table_cannot_match() -> None:
    table = RouteTable()
    table.add("/tracks/", LIST_PATTERN, TrackList)
    with pytest.raises(RuntimeError):
        table.match("/tracks/")


def test_invalid_pattern_rejected() -> None:
    with pytest.raises(ValueError, match="invalid regexp"):
        RouteTable().add("/x/", r"^(unclosed$", Track)


def test_registered_resources() -> None:
    table = register_resources(RouteTable())
    table.freeze()
    prefixes = {prefix for prefix, _ in table.routes()}
    assert {"/tracks/", "/track/", "/users/", "/user/", "/access_tokens/", "/access_token/"} <= prefixes
    assert {"/oauth2/info/", "/oauth2/login/", "/oauth2/logout/"} <= prefixes
