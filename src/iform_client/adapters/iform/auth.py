"""
OAuth2 access tokens for the iFormBuilder API.

iFormBuilder uses the JWT bearer grant: the client key and secret sign a short
lived assertion (HS256) which is exchanged at the token endpoint for a bearer
access token, valid for one hour.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import certifi
import requests
from jose import jwt
from pydantic import BaseModel, Field

from iform_client.adapters.iform.endpoints import token_url
from iform_client.settings import get_settings, get_iform_settings

logger = logging.getLogger(__name__)

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccessToken(BaseModel):
    """Bearer token returned by the token endpoint."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = 3600
    issued_at: datetime = Field(default_factory=_utcnow)

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(seconds=self.expires_in)

    def is_expired(self, leeway: int = 60, now: Optional[datetime] = None) -> bool:
        """True once we are within ``leeway`` seconds of the expiry time."""
        now = now or _utcnow()
        return now >= self.expires_at - timedelta(seconds=leeway)

    def __str__(self) -> str:
        return self.access_token


def build_assertion(client_key: str,
                    client_secret: str,
                    server_name: str,
                    lifetime: int = 600,
                    now: Optional[datetime] = None) -> str:
    """Sign the JWT assertion exchanged for an access token."""
    now = now or _utcnow()
    iat = int(now.timestamp())
    claims = {
        "iss": client_key,
        "aud": token_url(server_name),
        "iat": iat,
        "exp": iat + lifetime,
    }
    return jwt.encode(claims, client_secret, algorithm="HS256")


def get_iform_access_token(server_name: Optional[str] = None,
                           client_key: Optional[str] = None,
                           client_secret: Optional[str] = None,
                           lifetime: Optional[int] = None,
                           session: Optional[requests.Session] = None) -> AccessToken:
    """
    Request an access token from the iFormBuilder token endpoint.

    Args:
        server_name: iFormBuilder server name (the subdomain)
        client_key: API client key
        client_secret: API client secret
        lifetime: Seconds the signed assertion is valid
        session: Optional session to send the request with

    Missing arguments are filled from the IFORM_* settings.

    Returns:
        AccessToken

    Raises:
        ValueError: If credentials are missing or no token comes back
        requests.HTTPError: For 4xx/5xx responses from the token endpoint
    """
    iform = get_iform_settings()
    if iform is not None:
        server_name = server_name or iform.server_name
        client_key = client_key or iform.client_key.get_secret_value()
        client_secret = client_secret or iform.client_secret.get_secret_value()
        lifetime = lifetime or iform.token_lifetime
    if not (server_name and client_key and client_secret):
        raise ValueError("server_name, client_key and client_secret are required to request a token")

    cfg = get_settings()
    assertion = build_assertion(client_key, client_secret, server_name, lifetime or 600)
    url = token_url(server_name)
    http = session or requests
    resp = http.post(
        url,
        data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
        timeout=cfg.request_timeout,
        verify=certifi.where() if cfg.verify_ssl else False,
    )
    try:
        resp.raise_for_status()
    except requests.HTTPError:
        logger.error(f"Token request failed with HTTP {resp.status_code} for {url}: {resp.text}")
        raise

    payload = resp.json()
    if not payload.get("access_token"):
        raise ValueError("No access token was returned")
    logger.debug(f"Obtained access token for server '{server_name}'")
    return AccessToken(**{k: v for k, v in payload.items() if k in ("access_token", "token_type", "expires_in")})
