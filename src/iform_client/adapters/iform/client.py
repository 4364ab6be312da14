import logging
from typing import Any, Callable, List, Optional, Union

import certifi  # Provides Mozilla's CA bundle for SSL certificate verification
import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from iform_client.adapters.iform.auth import AccessToken, get_iform_access_token
from iform_client.adapters.iform.endpoints import api_v60_url
from iform_client.settings import get_settings, get_iform_settings

logger = logging.getLogger(__name__)


class IFormAPIClient:
    def __init__(self,
                 server_name: Optional[str] = None,
                 access_token: Union[str, AccessToken, None] = None,
                 client_key: Optional[str] = None,
                 client_secret: Optional[str] = None,
                 total_retries: Optional[int] = None,
                 backoff_factor: Optional[float] = None,
                 status_forcelist: tuple = (429, 500, 502, 503, 504)):
        """
        Initializes a requests.Session with:
            - JSON accept header
            - HTTPAdapter for retries on connection errors and specified HTTP status codes

        The bearer token is attached per request. When no access_token is given
        one is requested with the client key and secret (arguments or IFORM_*
        settings), and requested again whenever it expires.
        """
        cfg = get_settings()
        iform = get_iform_settings()

        self.server_name = server_name or (iform.server_name if iform else None)
        if not self.server_name:
            raise ValueError("An iFormBuilder server_name is required")

        self._client_key = client_key
        self._client_secret = client_secret
        self._token: Union[str, AccessToken, None] = access_token
        self.timeout = cfg.request_timeout

        if cfg.verify_ssl is False:
            self.verify = False
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        else:
            self.verify = certifi.where()

        self.session = requests.Session()
        retries = cfg.total_retries if total_retries is None else total_retries
        # Configure retries. POST is left out: creating twice is worse than failing once.
        retry_strategy = Retry(
            total=retries,
            connect=retries,
            read=retries,
            backoff_factor=cfg.backoff_factor if backoff_factor is None else backoff_factor,
            status_forcelist=status_forcelist,
            allowed_methods=frozenset(["GET", "PUT", "DELETE"]),
            raise_on_status=False
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("https://", adapter)

        # Default headers
        self.session.headers.update({
            "Accept": "application/json",
        })

    @property
    def access_token(self) -> str:
        """Current bearer token, refreshed when it has expired."""
        if self._token is None or (isinstance(self._token, AccessToken) and self._token.is_expired()):
            logger.info(f"Requesting a new access token for server '{self.server_name}'")
            self._token = get_iform_access_token(
                server_name=self.server_name,
                client_key=self._client_key,
                client_secret=self._client_secret,
                session=self.session,
            )
        return str(self._token)

    def profile_url(self, profile_id: Union[int, str], *parts: Union[int, str]) -> str:
        """Builds {api}/profiles/{profile_id}/{parts...}"""
        url = f"{api_v60_url(self.server_name)}{profile_id}"
        for part in parts:
            url = f"{url}/{str(part).strip('/')}"
        return url

    def _handle_response(self, resp: requests.Response) -> Any:
        """
            Handle API response with proper error checking and JSON parsing.

            Args:
                resp: HTTP response object

            Returns:
                Parsed JSON data

            Raises:
                requests.HTTPError: For 4xx/5xx HTTP status codes
                ValueError: If response is not valid JSON
            """
        try:
            resp.raise_for_status()
        except requests.HTTPError:
            logger.error(f"HTTP {resp.status_code} error for {resp.url}: {resp.text}")
            raise

        # Check if response has content
        if not resp.content:
            logger.warning(f"Empty response received for {resp.url}")
            return {}

        try:
            return resp.json()
        except ValueError as e:
            logger.error(f"Invalid JSON response from {resp.url}: {resp.text[:200]}...")
            raise ValueError(f"Invalid JSON response: {e}")

    def request(self, method: str, url: str, params=None, json=None) -> Any:
        """
        Send one request to the API and return the parsed JSON body.

        ``url`` is either absolute or a path relative to the profiles root.
        """
        if not url.startswith("http"):
            url = f"{api_v60_url(self.server_name)}{url.lstrip('/')}"
        headers = {"Authorization": f"Bearer {self.access_token}"}
        logger.debug(f"{method} {url} params={params}")
        resp = self.session.request(method, url,
                                    params=params,
                                    json=json,
                                    headers=headers,
                                    timeout=self.timeout,
                                    verify=self.verify)
        return self._handle_response(resp)

    def get(self, url: str, params=None) -> Any:
        return self.request("GET", url, params=params)

    def post(self, url: str, json=None, params=None) -> Any:
        return self.request("POST", url, params=params, json=json)

    def put(self, url: str, json=None, params=None) -> Any:
        return self.request("PUT", url, params=params, json=json)

    def delete(self, url: str, json=None, params=None) -> Any:
        return self.request("DELETE", url, params=params, json=json)


def paginate(fetch: Callable[[int, int], List[Any]], limit: int = 100, offset: int = 0) -> List[Any]:
    """
    Offset pagination: call fetch(limit, offset) until a page comes back with
    fewer than ``limit`` items, and return everything collected.
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    items: List[Any] = []
    while True:
        chunk = fetch(limit, offset)
        items.extend(chunk)
        logger.debug(f"Fetched {len(chunk)} items at offset {offset}")
        # A short page means the end of the data
        if len(chunk) < limit:
            break
        offset += limit
    return items
