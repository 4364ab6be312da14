# URL construction for the iFormBuilder API
import os
from typing import Optional
from urllib.parse import urlencode

from iform_client.settings import get_iform_settings


def base_url(server_name: str) -> str:
    return f"https://{server_name}.iformbuilder.com"


def token_url(server_name: str) -> str:
    """OAuth2 token endpoint used for the JWT bearer grant."""
    return f"{base_url(server_name)}/exzact/api/oauth/token"


def api_v60_url(server_name: str) -> str:
    """Root of all profile-scoped v60 resources, with trailing slash."""
    return f"{base_url(server_name)}/exzact/api/v60/profiles/"


def data_feed_url(server_name: str,
                  parent_form_id: int,
                  profile_id: int,
                  parent_form_name: str,
                  since_id: int,
                  username: Optional[str] = None,
                  password: Optional[str] = None,
                  user_label: Optional[str] = None,
                  pw_label: Optional[str] = None) -> str:
    """
    Compose a url to download records through the data feed mechanism.

    The username and password end up embedded in the url, so prefer the API
    whenever possible. Credentials are taken, in order, from the explicit
    arguments, from the environment variables named by ``user_label`` and
    ``pw_label``, and finally from the IFORM_DATA_FEED_* settings.

    Returns a url that responds with JSON for all records submitted after
    ``since_id``.
    """
    if username is None and user_label:
        username = os.getenv(user_label)
    if password is None and pw_label:
        password = os.getenv(pw_label)

    if username is None or password is None:
        iform = get_iform_settings()
        if iform is not None:
            username = username if username is not None else iform.data_feed_user
            if password is None and iform.data_feed_password is not None:
                password = iform.data_feed_password.get_secret_value()

    if not username or not password:
        raise ValueError("Data feed url needs a username and password")

    query = urlencode({
        "PAGE_ID": parent_form_id,
        "TABLE_NAME": f"_data{profile_id}_{parent_form_name}",
        "SINCE_ID": since_id,
        "USERNAME": username,
        "PASSWORD": password,
    })
    return f"{base_url(server_name)}/exzact/dataScoringJSON.php?{query}"
