"""
Route table: path prefix + suffix pattern -> record factory.

Built once at startup and frozen before the app serves; after that it is
read-only and shared by every request without locking.

    table = RouteTable(site_prefix="/api")
    table.add("/track/", r"^(?:(?P<id>[^/]+)/)?$", Track)
    table.freeze()
    table.match("/api/track/t1")   # -> RouteMatch(route, {"id": "t1"})
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping

from api.context import Capability
from utils.logging import get_logger

logger = get_logger(__name__)

Factory = Callable[[], Any]


@dataclass(frozen=True)
class Route:
    prefix: str
    pattern: re.Pattern[str]
    factory: Factory
    record_type: type
    capabilities: frozenset[Capability]

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities


@dataclass(frozen=True)
class RouteMatch:
    route: Route
    path_args: Mapping[str, str]
    prefix: str


def resolve_capabilities(record_type: type) -> frozenset[Capability]:
    """Capabilities a type provides, judged by which methods it defines."""
    return frozenset(c for c in Capability if callable(getattr(record_type, c.value, None)))


def normalize_prefix(prefix: str) -> str:
    """Prefixes always start and end with a separator."""
    prefix = "/" + prefix.strip("/")
    return prefix if prefix == "/" else prefix + "/"


def normalize_path(path: str) -> str:
    """Request paths always end with a separator."""
    if not path.startswith("/"):
        path = "/" + path
    return path if path.endswith("/") else path + "/"


def normalize_suffix(suffix: str) -> str:
    """Remaining path below a prefix, without leading separators."""
    return suffix.lstrip("/")


class RouteTable:
    """Build-then-freeze registry of routes grouped by prefix."""

    def __init__(self, site_prefix: str = ""):
        self.site_prefix = site_prefix.rstrip("/")
        self._routes: dict[str, list[Route]] = {}
        self._frozen: dict[str, tuple[Route, ...]] | None = None
        self._by_length: tuple[str, ...] = ()

    @property
    def frozen(self) -> bool:
        return self._frozen is not None

    def add(self, prefix: str, pattern: str, factory: Factory) -> Route:
        """
        Register factory (returning an empty record) under prefix. Routes
        under one prefix are tried in registration order.
        """
        if self.frozen:
            raise RuntimeError("route table is frozen")
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            logger.error("route_pattern_invalid", extra={"prefix": prefix, "pattern": pattern})
            raise ValueError(f"invalid regexp pattern for path: {pattern}") from e
        record_type = type(factory())
        route = Route(
            prefix=normalize_prefix(prefix),
            pattern=compiled,
            factory=factory,
            record_type=record_type,
            capabilities=resolve_capabilities(record_type),
        )
        self._routes.setdefault(route.prefix, []).append(route)
        return route

    def freeze(self) -> None:
        """Apply the site prefix and make the table read-only."""
        if self.frozen:
            return
        table: dict[str, tuple[Route, ...]] = {}
        for prefix, routes in self._routes.items():
            full = normalize_prefix(self.site_prefix + prefix)
            table[full] = tuple(routes)
            for route in routes:
                logger.info(
                    "route_added",
                    extra={
                        "prefix": full,
                        "pattern": route.pattern.pattern,
                        "record": route.record_type.__name__,
                        "capabilities": ",".join(sorted(c.value for c in route.capabilities)),
                    },
                )
        self._frozen = table
        self._by_length = tuple(sorted(table, key=len, reverse=True))

    def routes(self) -> list[tuple[str, Route]]:
        """(full prefix, route) pairs in prefix then registration order."""
        if self._frozen is None:
            raise RuntimeError("route table is not frozen")
        return [(prefix, route) for prefix, routes in self._frozen.items() for route in routes]

    def match(self, path: str) -> RouteMatch | None:
        """
        Longest prefix wins, then the first pattern under it that matches the
        rest of the path. No specificity ranking between patterns.
        """
        if self._frozen is None:
            raise RuntimeError("route table is not frozen")
        path = normalize_path(path)
        for prefix in self._by_length:
            if not path.startswith(prefix):
                continue
            suffix = normalize_suffix(path[len(prefix):])
            for route in self._frozen[prefix]:
                m = route.pattern.search(suffix)
                if m is None:
                    continue
                args = {k: v for k, v in m.groupdict().items() if v is not None}
                return RouteMatch(route, MappingProxyType(args), prefix)
            return None
        return None
