"""Shared fixtures: an API client whose session is a MagicMock returning canned responses."""
import json
from unittest.mock import MagicMock

import pytest
import requests

from iform_client.adapters.iform.client import IFormAPIClient

SERVER = "demo"
PROFILE_ID = 123456


@pytest.fixture
def make_response():
    """Factory for real requests.Response objects with a JSON body."""
    def _make(payload=None, status: int = 200, url: str = "https://demo.iformbuilder.com/exzact/api/v60/profiles/123456"):
        resp = requests.Response()
        resp.status_code = status
        resp.url = url
        resp.encoding = "utf-8"
        resp._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
        return resp
    return _make


@pytest.fixture
def client():
    """Client with a fixed bearer token and a mocked session."""
    c = IFormAPIClient(server_name=SERVER, access_token="test-token")
    c.session = MagicMock()
    return c


@pytest.fixture
def sent(client):
    """(method, url, params, json) of the i-th request sent by the client."""
    def _sent(i: int = 0):
        call = client.session.request.call_args_list[i]
        method, url = call.args
        return method, url, call.kwargs.get("params"), call.kwargs.get("json")
    return _sent
