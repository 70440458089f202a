"""
Request dispatcher.

Each request walks ReceiveInput -> ResolveCredential -> MatchRoute ->
Decode&Authorize -> Invoke -> Encode&Respond. The first stage that fails
ends the request with its status (401, 404, 400, 405); everything after the
handler runs goes through the encoder, the only place where an internal
error becomes the generic 500.
"""

from dataclasses import dataclass
from http import HTTPStatus
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import Response

from api.context import METHOD_CAPABILITIES, RequestContext, Result
from api.encoder import Reply, encode
from api.router import RouteTable
from core.errors import (
    INTERNAL_ERROR_MESSAGE,
    ApiError,
    CapabilityNotImplemented,
    MalformedBody,
    RouteNotFound,
)
from db.persistence import Outcome
from db.session import get_database
from services.credentials import CredentialResolver
from utils.logging import get_logger
from utils.validators import parse_limit

logger = get_logger(__name__)

# Every method the catch-all route must hand over; unsupported ones get our own 405.
DISPATCHED_METHODS = ("GET", "HEAD", "POST", "PUT", "DELETE", "OPTIONS", "PATCH")
DECODED_METHODS = frozenset({"POST", "PUT"})
# Methods whose reply carries the record itself when the handler returns no message.
RECORD_METHODS = frozenset({"GET", "POST", "PUT"})


@dataclass(frozen=True)
class Input:
    method: str
    path: str
    query: MappingProxyType
    body: bytes
    pretty: bool


class Dispatcher:
    """Routes requests through a frozen RouteTable to record capabilities."""

    def __init__(self, table: RouteTable, resolver: CredentialResolver | None = None):
        if not table.frozen:
            raise RuntimeError("freeze the route table before dispatching")
        self.table = table
        self._resolver = resolver

    @property
    def resolver(self) -> CredentialResolver:
        return self._resolver or CredentialResolver(get_database())

    async def dispatch(self, request: Request) -> Response:
        """Starlette endpoint for every path the app does not handle itself."""
        inp = await self._receive(request)
        try:
            reply = await self._handle(inp, request.headers.get("Authorization"))
        except ApiError as e:
            if e.http_status >= 500:
                logger.error("request_failed", extra={"error": e.message, "path": inp.path})
            reply = Reply(e.http_status, e.to_response())
        except Exception:
            logger.exception("unhandled_exception", extra={"path": inp.path, "method": inp.method})
            reply = Reply(500, {"message": INTERNAL_ERROR_MESSAGE})
        return encode(reply, method=inp.method, pretty=inp.pretty)

    async def _receive(self, request: Request) -> Input:
        query: dict[str, str] = {}
        # First value wins for repeated keys.
        for key, value in request.query_params.multi_items():
            query.setdefault(key, value)
        return Input(
            method=request.method.upper(),
            path=request.url.path,
            query=MappingProxyType(query),
            body=await request.body(),
            pretty="pretty" in query,
        )

    async def _handle(self, inp: Input, authorization: str | None) -> Reply:
        resolver = self.resolver
        await resolver.sweep_expired()
        credential = await resolver.resolve(authorization)
        logger.debug(
            "credential",
            extra={"token_id": str(credential.id), "role": credential.role.value, "comment": credential.comment},
        )

        matched = self.table.match(inp.path)
        if matched is None:
            raise RouteNotFound()

        ctx = RequestContext(
            method=inp.method,
            prefix=matched.prefix,
            credential=credential,
            path_args=matched.path_args,
            query_args=inp.query,
            limit=parse_limit(inp.query.get("limit")),
            brief="brief" in inp.query,
        )

        if inp.method == "OPTIONS":
            return Reply(200)

        item = matched.route.factory()
        if inp.method in DECODED_METHODS and inp.body:
            item = self._decode(item, inp.body)

        capability = METHOD_CAPABILITIES.get(inp.method)
        if capability is None or not matched.route.supports(capability):
            raise CapabilityNotImplemented()

        result = await getattr(item, capability.value)(ctx)
        if isinstance(result, Outcome):
            result = Result.from_outcome(result)
        return self._shape(inp.method, item, result or Result())

    @staticmethod
    def _decode(item: Any, body: bytes) -> Any:
        if not isinstance(item, BaseModel):
            raise MalformedBody()
        try:
            return type(item).model_validate_json(body)
        except ValidationError as e:
            logger.info("malformed_body", extra={"errors": e.error_count()})
            raise MalformedBody() from None

    @staticmethod
    def _shape(method: str, item: Any, result: Result) -> Reply:
        if result.error is not None:
            logger.warning("internal_server_error", extra={"error": str(result.error)})
            return Reply(500, {"message": INTERNAL_ERROR_MESSAGE})

        code = result.code or 200
        message = {"message": result.message} if result.message else None
        if 200 <= code < 300:
            if code == 204:
                return Reply(204)
            if method in RECORD_METHODS and message is None:
                payload = item
            else:
                payload = message or {}
            return Reply(code, payload, result.location if code == 201 else None)
        if 300 <= code < 400:
            if not result.location:
                logger.error("redirect_without_location", extra={"status": code})
                return Reply(500, {"message": INTERNAL_ERROR_MESSAGE})
            return Reply(code, message or {"message": "redirect"}, result.location)
        if 400 <= code < 500:
            return Reply(code, message or {"message": _default_message(code)})
        return Reply(500, {"message": INTERNAL_ERROR_MESSAGE})


def _default_message(code: int) -> str:
    try:
        return HTTPStatus(code).phrase.lower()
    except ValueError:
        return "request failed"
