"""
Response encoder: JSON body, content-hash ETag, redirect and CORS headers.
The only place allowed to turn an encoding failure into a generic 500.
"""

import hashlib
import json
from dataclasses import dataclass
from typing import Any

from fastapi.encoders import jsonable_encoder
from starlette.responses import Response

from core.errors import INTERNAL_ERROR_MESSAGE
from utils.logging import get_logger

logger = get_logger(__name__)

CONTENT_TYPE = "application/json; charset=utf-8"
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Max-Age": "300",
}
BODYLESS_METHODS = frozenset({"HEAD", "OPTIONS"})

_GENERIC_500 = json.dumps({"message": INTERNAL_ERROR_MESSAGE}).encode("utf-8")


@dataclass
class Reply:
    """Structured outcome of a request, before encoding."""

    status: int
    payload: Any = None
    location: str | None = None


def serialize(payload: Any, pretty: bool = False) -> bytes:
    data = jsonable_encoder(payload)
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False, allow_nan=False).encode("utf-8")
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")


def etag(body: bytes) -> str:
    """Hex SHA-256 of the exact body bytes."""
    return hashlib.sha256(body).hexdigest()


def encode(reply: Reply, method: str = "GET", pretty: bool = False) -> Response:
    status = reply.status
    body = b""
    if reply.payload is not None and status != 204 and method not in BODYLESS_METHODS:
        try:
            body = serialize(reply.payload, pretty=pretty)
        except (TypeError, ValueError) as e:
            logger.error("response_encode_failed", extra={"error": str(e), "status": status})
            status, body = 500, _GENERIC_500

    headers = dict(CORS_HEADERS)
    headers["Content-Type"] = CONTENT_TYPE
    headers["ETag"] = etag(body)
    if reply.location and (300 <= status < 400 or status == 201):
        headers["Location"] = reply.location

    logger.debug("request_done", extra={"status": status, "location": reply.location})
    return Response(content=body, status_code=status, headers=headers)
