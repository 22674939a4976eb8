"""
Tests for password hashing and JWT helpers.
"""

from datetime import timedelta
from types import SimpleNamespace

from leazr.auth.jwt import COOKIE_NAME, create_access_token, get_token_from_cookie, verify_token
from leazr.utils.password import hash_password, verify_password


class TestPassword:
    def test_hash_is_not_plain_text(self):
        hashed = hash_password("s3cret")
        assert hashed != "s3cret"
        assert hashed.startswith("$2")

    def test_verify(self):
        hashed = hash_password("s3cret")
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)


class TestJWT:
    def test_round_trip(self):
        token = create_access_token(7, "ambassador")
        assert verify_token(token) == {"user_id": 7, "role": "ambassador"}

    def test_expired_token(self):
        token = create_access_token(7, "admin", expires_delta=timedelta(seconds=-1))
        assert verify_token(token) is None

    def test_garbage_token(self):
        assert verify_token("not-a-jwt") is None

    def test_cookie_lookup(self):
        request = SimpleNamespace(cookies={COOKIE_NAME: "abc"})
        assert get_token_from_cookie(request) == "abc"
        assert get_token_from_cookie(SimpleNamespace(cookies={})) is None
