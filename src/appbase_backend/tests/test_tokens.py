from datetime import timedelta

import pytest
from jose import jwt

from appbase_backend.auth.tokens import decode_token, encode_token
from appbase_backend.errors import UnauthenticatedError
from appbase_backend.interface.auth import TokenClaims
from appbase_backend.settings import settings
from appbase_backend.utils import utc_now


@pytest.fixture
def claims():
    return TokenClaims(
        id="user-1",
        email="ada@example.com",
        name="Ada Lovelace",
        first_name="Ada",
        last_name="Lovelace",
        permissions=["content:edit", "user:list"],
        session_token="session-abc",
    )


class TestTokenEncoding:

    def test_decode_returns_same_claims(self, claims):
        decoded = decode_token(encode_token(claims))
        assert decoded == claims

    def test_payload_uses_camel_case(self, claims):
        payload = jwt.get_unverified_claims(encode_token(claims))

        assert payload["sub"] == "user-1"
        assert payload["sessionToken"] == "session-abc"
        assert payload["firstName"] == "Ada"
        assert payload["permissions"] == ["content:edit", "user:list"]
        assert "session_token" not in payload

    def test_expiry_follows_argument(self, claims):
        expires = utc_now() + timedelta(hours=1)
        payload = jwt.get_unverified_claims(encode_token(claims, expires=expires))
        assert payload["exp"] == int(expires.timestamp())


class TestTokenRejection:

    def test_expired_token(self, claims):
        token = encode_token(claims, expires=utc_now() - timedelta(minutes=1))
        with pytest.raises(UnauthenticatedError):
            decode_token(token)

    def test_wrong_secret(self, claims):
        token = encode_token(claims, secret="someone-else")
        with pytest.raises(UnauthenticatedError):
            decode_token(token)

    @pytest.mark.parametrize("token", ["", None, "garbage", "a.b.c"])
    def test_malformed(self, token):
        with pytest.raises(UnauthenticatedError):
            decode_token(token)

    def test_signed_but_missing_claims(self):
        token = jwt.encode({"sub": "user-1"}, settings.AUTH_SECRET, algorithm=settings.AUTH_ALGORITHM)
        with pytest.raises(UnauthenticatedError):
            decode_token(token)
