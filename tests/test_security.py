"""
Security tests: bearer parsing, key generation, log redaction.
"""

import base64

import pytest

from core.errors import AuthFailure
from core.security import generate_token_key, is_safe_for_log, parse_bearer


def test_no_header_means_no_key() -> None:
    assert parse_bearer(None) is None


def test_bearer_key_extracted() -> None:
    assert parse_bearer("Bearer abc123") == "abc123"
    assert parse_bearer("bearer abc123") == "abc123"
    assert parse_bearer("Bearer  abc123") == "abc123"
    assert parse_bearer(" Bearer\tabc123 ") == "abc123"


@pytest.mark.parametrize("header", ["", "Bearer", "Bearer ", "Basic abc", "Bearer a b", "abc123"])
def test_malformed_header_is_auth_failure(header: str) -> None:
    with pytest.raises(AuthFailure) as excinfo:
        parse_bearer(header)
    assert excinfo.value.http_status == 401


def test_generated_keys_are_random_and_long() -> None:
    keys = {generate_token_key() for _ in range(20)}
    assert len(keys) == 20
    assert all(len(base64.b64decode(k)) == 32 for k in keys)


def test_log_redaction() -> None:
    assert is_safe_for_log("abcdefgh") == "abcd…"
    assert is_safe_for_log("abc") == "(redacted)"
    assert is_safe_for_log(None) == ""
