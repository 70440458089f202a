"""
Response encoder tests: ETag, headers, bodyless replies.
"""

import json

from api.encoder import CONTENT_TYPE, Reply, encode, etag
from models import Track, TrackType


def test_etag_is_hash_of_body() -> None:
    response = encode(Reply(200, {"message": "hi"}))
    assert response.headers["ETag"] == etag(response.body)
    assert len(response.headers["ETag"]) == 64


def test_equal_payloads_equal_etags() -> None:
    a = encode(Reply(200, Track(id="t1", type=TrackType.NET)))
    b = encode(Reply(200, {"id": "t1", "type": "net", "station_permanent": None, "station_count_max": None}))
    assert a.body == b.body
    assert a.headers["ETag"] == b.headers["ETag"]


def test_different_payloads_different_etags() -> None:
    a = encode(Reply(200, {"id": "t1"}))
    b = encode(Reply(200, {"id": "t2"}))
    assert a.headers["ETag"] != b.headers["ETag"]


def test_standard_headers() -> None:
    response = encode(Reply(200, []))
    assert response.headers["Content-Type"] == CONTENT_TYPE
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["Access-Control-Max-Age"] == "300"


def test_pretty_output() -> None:
    compact = encode(Reply(200, {"a": 1}))
    pretty = encode(Reply(200, {"a": 1}), pretty=True)
    assert compact.body == b'{"a":1}'
    assert b"\n" in pretty.body
    assert json.loads(pretty.body) == {"a": 1}


def test_bodyless_replies() -> None:
    for response in (
        encode(Reply(204, {"message": "ignored"})),
        encode(Reply(200, {"id": "t1"}), method="HEAD"),
        encode(Reply(200, None), method="OPTIONS"),
    ):
        assert response.body == b""
        assert response.headers["ETag"] == etag(b"")


def test_location_only_for_created_and_redirects() -> None:
    assert encode(Reply(201, {}, "/track/t1/")).headers["Location"] == "/track/t1/"
    assert encode(Reply(302, {"message": "moved"}, "/elsewhere/")).headers["Location"] == "/elsewhere/"
    assert "Location" not in encode(Reply(200, {}, "/track/t1/")).headers


def test_unserializable_payload_becomes_generic_500() -> None:
    response = encode(Reply(200, {"value": object()}))
    assert response.status_code == 500
    assert json.loads(response.body) == {"message": "internal server error"}


def test_non_finite_float_becomes_generic_500() -> None:
    response = encode(Reply(200, {"ratio": float("nan")}))
    assert response.status_code == 500
    assert json.loads(response.body) == {"message": "internal server error"}
    assert encode(Reply(200, {"ratio": float("inf")}), pretty=True).status_code == 500
