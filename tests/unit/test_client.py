"""Unit tests for the iFormBuilder HTTP client."""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from iform_client.adapters.iform.auth import AccessToken
from iform_client.adapters.iform.client import IFormAPIClient, paginate


class TestIFormAPIClient:
    """Request construction and response handling."""

    def test_profile_url(self, client):
        """Test that profile urls join parts under the v60 profiles root."""
        url = client.profile_url(123456, "pages", 42, "records")
        assert url == "https://demo.iformbuilder.com/exzact/api/v60/profiles/123456/pages/42/records"

    def test_bearer_header_sent(self, client, make_response, sent):
        """Test that every request carries the bearer token."""
        client.session.request.return_value = make_response({"id": 1})
        client.get(client.profile_url(1))
        call = client.session.request.call_args
        assert call.kwargs["headers"]["Authorization"] == "Bearer test-token"
        assert sent()[0] == "GET"

    def test_relative_path_resolved(self, client, make_response, sent):
        """Test that relative paths are resolved against the profiles root."""
        client.session.request.return_value = make_response([])
        client.get("123/pages")
        assert sent()[1] == "https://demo.iformbuilder.com/exzact/api/v60/profiles/123/pages"

    def test_http_error_raised(self, client, make_response):
        """Test that non-2xx responses raise HTTPError."""
        client.session.request.return_value = make_response({"error": "nope"}, status=404)
        with pytest.raises(requests.HTTPError):
            client.get(client.profile_url(1))

    def test_empty_body_returns_empty_dict(self, client, make_response):
        """Test that an empty 2xx body parses to {}."""
        client.session.request.return_value = make_response(None)
        assert client.delete(client.profile_url(1)) == {}

    def test_invalid_json_raises_value_error(self, client, make_response):
        """Test that a non-JSON body raises ValueError."""
        resp = make_response(None)
        resp._content = b"<html>oops</html>"
        client.session.request.return_value = resp
        with pytest.raises(ValueError, match="Invalid JSON"):
            client.get(client.profile_url(1))

    def test_requires_server_name(self):
        """Test that a client without any server name is refused."""
        with patch("iform_client.adapters.iform.client.get_iform_settings", return_value=None):
            with pytest.raises(ValueError):
                IFormAPIClient(access_token="x")


class TestTokenRefresh:
    """Access tokens are requested lazily and renewed once expired."""

    def test_expired_token_is_renewed(self, make_response):
        """Test that an expired AccessToken is replaced before the request."""
        old = AccessToken(access_token="old", expires_in=3600,
                          issued_at=datetime.now(timezone.utc) - timedelta(hours=2))
        c = IFormAPIClient(server_name="demo", access_token=old, client_key="k", client_secret="s")
        c.session = MagicMock()
        c.session.request.return_value = make_response([])
        with patch("iform_client.adapters.iform.client.get_iform_access_token",
                   return_value=AccessToken(access_token="new")) as fetch:
            c.get("1/pages")
        fetch.assert_called_once()
        assert c.session.request.call_args.kwargs["headers"]["Authorization"] == "Bearer new"

    def test_valid_token_is_kept(self, make_response):
        """Test that a fresh token is reused without hitting the token endpoint."""
        c = IFormAPIClient(server_name="demo", access_token=AccessToken(access_token="fresh"))
        c.session = MagicMock()
        c.session.request.return_value = make_response([])
        with patch("iform_client.adapters.iform.client.get_iform_access_token") as fetch:
            c.get("1/pages")
        fetch.assert_not_called()


class TestPaginate:
    """Offset pagination stops on a short page."""

    def test_stops_on_short_page(self):
        """Test that pages are requested until one is shorter than the limit."""
        pages = {0: [1, 2], 2: [3, 4], 4: [5]}
        calls = []

        def fetch(limit, offset):
            calls.append(offset)
            return pages[offset]

        assert paginate(fetch, limit=2) == [1, 2, 3, 4, 5]
        assert calls == [0, 2, 4]

    def test_exact_multiple_needs_empty_page(self):
        """Test that a full last page triggers one more (empty) request."""
        pages = {0: [1, 2], 2: []}
        assert paginate(lambda limit, offset: pages[offset], limit=2) == [1, 2]

    def test_rejects_non_positive_limit(self):
        """Test that a zero limit fails before any page is fetched."""
        fetch = MagicMock(return_value=[])
        with pytest.raises(ValueError, match="limit"):
            paginate(fetch, limit=0)
        fetch.assert_not_called()
