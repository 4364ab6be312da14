"""Unit tests for access token acquisition."""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests
from jose import jwt

from iform_client.adapters.iform.auth import (
    JWT_BEARER_GRANT,
    AccessToken,
    build_assertion,
    get_iform_access_token,
)

TOKEN_URL = "https://demo.iformbuilder.com/exzact/api/oauth/token"


class TestBuildAssertion:

    def test_claims(self):
        """Test that the assertion is signed with the secret and carries iss/aud/iat/exp."""
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        token = build_assertion("my-key", "my-secret", "demo", lifetime=600, now=now)
        claims = jwt.decode(token, "my-secret", algorithms=["HS256"], audience=TOKEN_URL,
                            options={"verify_exp": False, "verify_iat": False})
        assert claims["iss"] == "my-key"
        assert claims["aud"] == TOKEN_URL
        assert claims["exp"] - claims["iat"] == 600


class TestGetAccessToken:

    def test_posts_jwt_bearer_grant(self, make_response):
        """Test that the token endpoint receives the grant type and the assertion."""
        session = MagicMock()
        session.post.return_value = make_response(
            {"access_token": "abc", "token_type": "bearer", "expires_in": 3600}, url=TOKEN_URL
        )
        token = get_iform_access_token("demo", "key", "secret", session=session)

        assert token.access_token == "abc"
        assert str(token) == "abc"
        args, kwargs = session.post.call_args
        assert args[0] == TOKEN_URL
        assert kwargs["data"]["grant_type"] == JWT_BEARER_GRANT
        assert kwargs["data"]["assertion"]

    def test_http_error_propagates(self, make_response):
        """Test that a rejected token request raises HTTPError."""
        session = MagicMock()
        session.post.return_value = make_response({"error": "invalid_client"}, status=401, url=TOKEN_URL)
        with pytest.raises(requests.HTTPError):
            get_iform_access_token("demo", "key", "secret", session=session)

    def test_missing_access_token(self, make_response):
        """Test that a 200 response without a token is refused."""
        session = MagicMock()
        session.post.return_value = make_response({"error": "none"}, url=TOKEN_URL)
        with pytest.raises(ValueError, match="No access token"):
            get_iform_access_token("demo", "key", "secret", session=session)

    def test_missing_credentials(self):
        """Test that missing credentials fail before any request."""
        with patch("iform_client.adapters.iform.auth.get_iform_settings", return_value=None):
            with pytest.raises(ValueError):
                get_iform_access_token("demo", None, None)


class TestAccessToken:

    def test_expiry(self):
        """Test is_expired around the expiry time with leeway."""
        issued = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        token = AccessToken(access_token="t", expires_in=3600, issued_at=issued)
        assert token.expires_at == issued + timedelta(hours=1)
        assert token.is_expired(now=issued + timedelta(minutes=30)) is False
        assert token.is_expired(leeway=60, now=issued + timedelta(minutes=59, seconds=30)) is True
        assert token.is_expired(now=issued + timedelta(hours=2)) is True
