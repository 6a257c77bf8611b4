"""
Unit tests for session cookie authentication
"""

import json
from urllib.parse import quote

import pytest
from starlette.requests import Request

from metafix.config import Config
from metafix.services.auth import (
    AuthInfo,
    AuthRequired,
    parse_auth_cookie,
    require_auth,
    sign_username,
)


def make_cookie(payload, times=1):
    value = json.dumps(payload)
    for _ in range(times):
        value = quote(value)
    return value


def make_request(cookie_header=None):
    headers = []
    if cookie_header is not None:
        headers.append((b"cookie", cookie_header.encode("latin-1")))
    return Request({"type": "http", "method": "POST", "path": "/", "headers": headers})


class TestParseAuthCookie:

    def test_plain_cookie(self):
        info = parse_auth_cookie(make_cookie({"username": "alice", "role": "owner", "timestamp": 1718000000000}))

        assert info == AuthInfo(username="alice", role="owner", signature=None, timestamp=1718000000000)

    def test_double_encoded_cookie(self):
        info = parse_auth_cookie(make_cookie({"username": "bob"}, times=2))

        assert info.username == "bob"

    def test_unencoded_json(self):
        assert parse_auth_cookie('{"username": "carol"}').username == "carol"

    @pytest.mark.parametrize("value", [
        None,
        "",
        "not-json",
        make_cookie(["alice"]),
        make_cookie({"role": "owner"}),
        make_cookie({"username": ""}),
        make_cookie({"username": 42}),
    ])
    def test_rejected(self, value):
        assert parse_auth_cookie(value) is None

    def test_non_integer_timestamp_dropped(self):
        info = parse_auth_cookie(make_cookie({"username": "alice", "timestamp": "yesterday"}))

        assert info.timestamp is None


class TestSignature:

    def test_valid_signature(self):
        signature = sign_username("alice", "s3cret")

        info = parse_auth_cookie(make_cookie({"username": "alice", "signature": signature}), secret="s3cret")

        assert info.signature == signature

    def test_wrong_signature(self):
        signature = sign_username("alice", "other")

        assert parse_auth_cookie(make_cookie({"username": "alice", "signature": signature}), secret="s3cret") is None

    def test_signature_for_other_user(self):
        signature = sign_username("alice", "s3cret")

        assert parse_auth_cookie(make_cookie({"username": "mallory", "signature": signature}), secret="s3cret") is None

    def test_missing_signature_with_secret(self):
        assert parse_auth_cookie(make_cookie({"username": "alice"}), secret="s3cret") is None

    def test_signature_ignored_without_secret(self):
        assert parse_auth_cookie(make_cookie({"username": "alice", "signature": "junk"})).username == "alice"

    def test_sign_username_is_hex_sha256(self):
        signature = sign_username("alice", "s3cret")

        assert len(signature) == 64
        int(signature, 16)


class TestRequireAuth:

    def test_no_cookie(self, monkeypatch):
        monkeypatch.setattr(Config, "AUTH_SECRET", "")

        with pytest.raises(AuthRequired) as exc_info:
            require_auth(make_request())
        assert exc_info.value.message == "Unauthorized"

    def test_valid_cookie(self, monkeypatch):
        monkeypatch.setattr(Config, "AUTH_SECRET", "")
        monkeypatch.setattr(Config, "AUTH_COOKIE_NAME", "auth")

        info = require_auth(make_request(f"auth={make_cookie({'username': 'alice'})}"))

        assert info.username == "alice"

    def test_cookie_name_is_configurable(self, monkeypatch):
        monkeypatch.setattr(Config, "AUTH_SECRET", "")
        monkeypatch.setattr(Config, "AUTH_COOKIE_NAME", "session")

        with pytest.raises(AuthRequired):
            require_auth(make_request(f"auth={make_cookie({'username': 'alice'})}"))

        assert require_auth(make_request(f"session={make_cookie({'username': 'alice'})}")).username == "alice"

    def test_secret_enforced(self, monkeypatch):
        monkeypatch.setattr(Config, "AUTH_SECRET", "s3cret")
        monkeypatch.setattr(Config, "AUTH_COOKIE_NAME", "auth")

        with pytest.raises(AuthRequired):
            require_auth(make_request(f"auth={make_cookie({'username': 'alice'})}"))

        signed = make_cookie({"username": "alice", "signature": sign_username("alice", "s3cret")})
        assert require_auth(make_request(f"auth={signed}")).username == "alice"
