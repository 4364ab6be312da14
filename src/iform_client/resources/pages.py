"""
Pages are forms and subforms. Listing calls return a frame of id and name;
single page calls return the new or affected page id.
"""

import logging
from typing import Optional, Union

import pandas as pd

from iform_client.adapters.iform.client import IFormAPIClient, paginate
from iform_client.resources.tables import single_row, to_table

logger = logging.getLogger(__name__)

PAGE_COLUMNS = ("id", "name")
ELEMENT_COLUMNS = ("id", "name", "label", "data_type")


def _list_pages(client: IFormAPIClient, profile_id, limit: int, offset: int) -> list:
    return client.get(client.profile_url(profile_id, "pages"),
                      params={"fields": "fields", "limit": limit, "offset": offset})


def get_pages_list(client: IFormAPIClient,
                   profile_id: Union[int, str],
                   limit: int = 1000,
                   offset: int = 0) -> pd.DataFrame:
    """
    Listing of forms and subforms in a profile.

    Parameters:
    client (IFormAPIClient): Authenticated API client
    profile_id (int): The id number of your profile
    limit (int): The maximum number of pages to return (the API caps this at 100)
    offset (int): Skips the offset number of pages before beginning to return

    Returns:
    pd.DataFrame: id and name of each page
    """
    pages = _list_pages(client, profile_id, limit, offset)
    return to_table(pages, PAGE_COLUMNS)


def get_all_pages_list(client: IFormAPIClient, profile_id: Union[int, str]) -> pd.DataFrame:
    """Every page in a profile, retrieved in chunks of 100 (limit per api call)."""
    pages = paginate(lambda limit, offset: _list_pages(client, profile_id, limit, offset), limit=100)
    logger.info(f"Found {len(pages)} pages in profile {profile_id}")
    return to_table(pages, PAGE_COLUMNS)


def get_page_id(client: IFormAPIClient,
                profile_id: Union[int, str],
                page_name: str,
                limit: int = 1000,
                offset: int = 0) -> Optional[int]:
    """Id of the page called `page_name`, or None when no page has that name."""
    pages = get_pages_list(client, profile_id, limit=limit, offset=offset)
    matches = pages.loc[pages["name"] == page_name, "id"]
    if matches.empty:
        logger.warning(f"No page named '{page_name}' in profile {profile_id}")
        return None
    return int(matches.iloc[0])


def get_page(client: IFormAPIClient, profile_id: Union[int, str], page_id: int) -> pd.DataFrame:
    """All attributes of a single page as a one-row frame."""
    page = client.get(client.profile_url(profile_id, "pages", page_id))
    return single_row(page)


def create_page(client: IFormAPIClient,
                profile_id: Union[int, str],
                name: str,
                label: Optional[str] = None) -> int:
    """Create an empty page and return its id. `name` becomes the table name, `label` the display name."""
    body = {"name": name, "label": label or name}
    page_id = client.post(client.profile_url(profile_id, "pages"), json=body).get("id")
    if page_id is None:
        raise ValueError("No page id was returned")
    logger.info(f"Created page '{name}' with id {page_id}")
    return page_id


def rename_page(client: IFormAPIClient, profile_id: Union[int, str], page_id: int, label: str) -> int:
    """Change the label of a page. The page name (table name) cannot be changed."""
    response = client.put(client.profile_url(profile_id, "pages", page_id), json={"label": label})
    return response.get("id", page_id)


def delete_page(client: IFormAPIClient, profile_id: Union[int, str], page_id: int) -> int:
    """Delete a page with all of its records. USE WITH CAUTION!"""
    response = client.delete(client.profile_url(profile_id, "pages", page_id))
    logger.info(f"Deleted page {page_id}")
    return response.get("id", page_id)


def get_page_elements(client: IFormAPIClient,
                      profile_id: Union[int, str],
                      page_id: int,
                      limit: int = 100,
                      offset: int = 0) -> pd.DataFrame:
    """Elements (fields) of a page: id, name, label, data_type."""
    elements = client.get(client.profile_url(profile_id, "pages", page_id, "elements"),
                          params={"fields": "name,label,data_type", "limit": limit, "offset": offset})
    return to_table(elements, ELEMENT_COLUMNS)
