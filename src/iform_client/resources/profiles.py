import logging
from typing import Union

import pandas as pd

from iform_client.adapters.iform.client import IFormAPIClient, paginate
from iform_client.adapters.iform.endpoints import api_v60_url
from iform_client.resources.tables import single_row, to_table

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = ("id", "name")


def get_profiles(client: IFormAPIClient, limit: int = 100, offset: int = 0) -> pd.DataFrame:
    """First `limit` profiles visible to the API client: id, name."""
    url = api_v60_url(client.server_name).rstrip("/")
    profiles = client.get(url, params={"fields": "fields", "limit": limit, "offset": offset})
    return to_table(profiles, PROFILE_COLUMNS)


def get_all_profiles(client: IFormAPIClient) -> pd.DataFrame:
    """All profiles, retrieved in chunks of 100."""
    url = api_v60_url(client.server_name).rstrip("/")
    profiles = paginate(
        lambda limit, offset: client.get(url, params={"fields": "fields", "limit": limit, "offset": offset}),
        limit=100,
    )
    return to_table(profiles, PROFILE_COLUMNS)


def get_profile(client: IFormAPIClient, profile_id: Union[int, str]) -> pd.DataFrame:
    """All attributes of a single profile as a one-row frame."""
    profile = client.get(client.profile_url(profile_id))
    return single_row(profile)
