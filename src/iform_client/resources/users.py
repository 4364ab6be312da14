import logging
from typing import Optional, Union

import pandas as pd

from iform_client.adapters.iform.client import IFormAPIClient, paginate
from iform_client.resources.tables import single_row, to_table

logger = logging.getLogger(__name__)

USER_COLUMNS = ("id", "username")


def _list_users(client: IFormAPIClient, profile_id, limit: int, offset: int) -> list:
    return client.get(client.profile_url(profile_id, "users"),
                      params={"fields": "username", "limit": limit, "offset": offset})


def get_users(client: IFormAPIClient,
              profile_id: Union[int, str],
              limit: int = 100,
              offset: int = 0) -> pd.DataFrame:
    """Users of a profile: id, username."""
    return to_table(_list_users(client, profile_id, limit, offset), USER_COLUMNS)


def get_all_users(client: IFormAPIClient, profile_id: Union[int, str]) -> pd.DataFrame:
    """Every user of a profile, retrieved in chunks of 100."""
    users = paginate(lambda limit, offset: _list_users(client, profile_id, limit, offset), limit=100)
    return to_table(users, USER_COLUMNS)


def get_user(client: IFormAPIClient, profile_id: Union[int, str], user_id: int) -> pd.DataFrame:
    user = client.get(client.profile_url(profile_id, "users", user_id))
    return single_row(user)


def get_user_id(client: IFormAPIClient, profile_id: Union[int, str], username: str) -> Optional[int]:
    """Id of `username`, or None when the profile has no such user."""
    users = get_all_users(client, profile_id)
    matches = users.loc[users["username"] == username, "id"]
    if matches.empty:
        logger.warning(f"No user named '{username}' in profile {profile_id}")
        return None
    return int(matches.iloc[0])


def create_user(client: IFormAPIClient,
                profile_id: Union[int, str],
                username: str,
                password: str,
                email: str) -> int:
    """Create a user in the profile and return the new user id."""
    body = [{"username": username, "password": password, "email": email}]
    response = client.post(client.profile_url(profile_id, "users"), json=body)
    created = response[0] if isinstance(response, list) and response else response
    user_id = created.get("id") if isinstance(created, dict) else None
    if user_id is None:
        raise ValueError("No user id was returned")
    logger.info(f"Created user '{username}' with id {user_id}")
    return user_id


def delete_user(client: IFormAPIClient, profile_id: Union[int, str], user_id: int) -> int:
    response = client.delete(client.profile_url(profile_id, "users", user_id))
    return response.get("id", user_id)
