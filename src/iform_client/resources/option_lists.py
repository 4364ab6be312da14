"""
Option lists and their option elements.

Deleting options and option lists should be done with consideration for
existing data referencing the list. As an alternative, options can be
disabled by setting their condition value to 'False'.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from iform_client.adapters.iform.client import IFormAPIClient, paginate
from iform_client.resources.tables import frame_to_json_records, ids_from, to_table

logger = logging.getLogger(__name__)

OPTION_LIST_COLUMNS = ("id", "name")
OPTION_ELEMENTS: tuple[str, ...] = ("sort_order", "label", "key_value", "condition_value")
CORE_ELEMENT_COLUMNS: tuple[str, ...] = ("id",) + OPTION_ELEMENTS

OptionValues = Union[pd.DataFrame, str, Iterable[Dict[str, Any]]]


def _list_option_lists(client: IFormAPIClient, profile_id, limit: int, offset: int) -> list:
    return client.get(client.profile_url(profile_id, "optionlists"),
                      params={"fields": "fields", "limit": limit, "offset": offset})


def _options_url(client: IFormAPIClient, profile_id, optionlist_id) -> str:
    return client.profile_url(profile_id, "optionlists", optionlist_id, "options")


def _as_records(values: OptionValues) -> List[Dict[str, Any]]:
    if isinstance(values, pd.DataFrame):
        return frame_to_json_records(values)
    if isinstance(values, str):
        values = json.loads(values)
    if isinstance(values, dict):
        return [values]
    return [dict(v) for v in values]


def get_option_lists(client: IFormAPIClient,
                     profile_id: Union[int, str],
                     limit: int = 100,
                     offset: int = 0) -> pd.DataFrame:
    """First `limit` option lists in a profile (the API caps calls at 100): id, name."""
    option_lists = _list_option_lists(client, profile_id, limit, offset)
    return to_table(option_lists, OPTION_LIST_COLUMNS)


def get_all_option_lists(client: IFormAPIClient, profile_id: Union[int, str]) -> pd.DataFrame:
    """All option lists in a profile, retrieved in chunks of 100."""
    option_lists = paginate(lambda limit, offset: _list_option_lists(client, profile_id, limit, offset),
                            limit=100)
    logger.info(f"Found {len(option_lists)} option lists in profile {profile_id}")
    return to_table(option_lists, OPTION_LIST_COLUMNS)


def get_option_list_id(client: IFormAPIClient,
                       profile_id: Union[int, str],
                       option_list_name: str,
                       limit: int = 1000,
                       offset: int = 0) -> Optional[int]:
    """Id of the option list called `option_list_name`, or None."""
    option_lists = get_option_lists(client, profile_id, limit=limit, offset=offset)
    matches = option_lists.loc[option_lists["name"] == option_list_name, "id"]
    if matches.empty:
        logger.warning(f"No option list named '{option_list_name}' in profile {profile_id}")
        return None
    return int(matches.iloc[0])


def create_new_option_list(client: IFormAPIClient,
                           profile_id: Union[int, str],
                           option_list_name: str) -> int:
    """Create an empty option list and return its id."""
    response = client.post(client.profile_url(profile_id, "optionlists"), json={"name": option_list_name})
    list_id = response.get("id") if isinstance(response, dict) else None
    if list_id is None:
        raise ValueError("No optionlist id was returned")
    logger.info(f"Created option list '{option_list_name}' with id {list_id}")
    return list_id


def delete_option_list(client: IFormAPIClient,
                       profile_id: Union[int, str],
                       option_list_id: int) -> int:
    """Delete an option list from a profile and return its id."""
    response = client.delete(client.profile_url(profile_id, "optionlists", option_list_id))
    return response.get("id", option_list_id)


def validate_options(option_values: OptionValues) -> List[Dict[str, Any]]:
    """
    Check options before they are posted.

    Accepts a DataFrame, a list of dicts or a JSON string. Names can only be
    sort_order, label, key_value or condition_value, and no two options may be
    identical once sort_order is ignored (the API refuses to post duplicates).

    Returns:
        The options as a list of dicts

    Raises:
        ValueError: On unknown names or duplicated options
    """
    options = _as_records(option_values)
    unknown = sorted({k for option in options for k in option.keys()} - set(OPTION_ELEMENTS))
    if unknown:
        raise ValueError(
            f"Unrecognized option list names: {unknown}. "
            f"Names can only consist of: {', '.join(OPTION_ELEMENTS)}"
        )
    seen = set()
    for option in options:
        key = tuple(sorted((k, str(v)) for k, v in option.items() if k != "sort_order"))
        if key in seen:
            raise ValueError(f"There are duplicated items in the option list: {dict(key)}")
        seen.add(key)
    return options


def add_options_to_list(client: IFormAPIClient,
                        profile_id: Union[int, str],
                        optionlist_id: int,
                        option_values: OptionValues) -> List[int]:
    """
    Append options to an existing option list. Make sure all key_values are
    unique, otherwise new options will not be posted.

    Returns the new option element ids, one per option.
    """
    options = validate_options(option_values)
    response = client.post(_options_url(client, profile_id, optionlist_id), json=options)
    ids = ids_from(response)
    logger.info(f"Added {len(ids)} options to option list {optionlist_id}")
    return ids


def delete_options_in_list(client: IFormAPIClient,
                           profile_id: Union[int, str],
                           optionlist_id: int,
                           id_values: Union[OptionValues, Iterable[int]],
                           fields: str = "fields",
                           limit: int = 1000,
                           offset: int = 0) -> List[int]:
    """
    Delete option elements given their ids. Sort order is reassigned by the
    API after the elements are removed.
    """
    if isinstance(id_values, (pd.DataFrame, str)):
        records = _as_records(id_values)
        if any(v.get("id") is None for v in records):
            raise ValueError("Every option to delete needs an id")
        body = [{"id": v["id"]} for v in records]
    else:
        body = [v if isinstance(v, dict) else {"id": int(v)} for v in id_values]
    response = client.delete(_options_url(client, profile_id, optionlist_id), json=body,
                             params={"fields": fields, "limit": limit, "offset": offset})
    return ids_from(response)


def get_option_list_element_ids(client: IFormAPIClient,
                                profile_id: Union[int, str],
                                optionlist_id: int,
                                element: str,
                                limit: int = 1000,
                                offset: int = 0) -> pd.DataFrame:
    """
    Ids of the options in a list together with one element, e.g. key_value.

    Returns:
        DataFrame with columns id and `element`, sorted by id
    """
    if element not in OPTION_ELEMENTS:
        raise ValueError(
            f"Unrecognized element value: '{element}'. Element must be one of: {', '.join(OPTION_ELEMENTS)}"
        )
    options = client.get(_options_url(client, profile_id, optionlist_id),
                         params={"fields": f"id:<,{element}", "limit": limit, "offset": offset})
    return to_table(options, ("id", element))


def _list_core_elements(client: IFormAPIClient, profile_id, optionlist_id, limit: int, offset: int) -> list:
    return client.get(_options_url(client, profile_id, optionlist_id),
                      params={"fields": "sort_order,label,key_value,condition_value",
                              "limit": limit, "offset": offset})


def get_core_option_list_elements(client: IFormAPIClient,
                                  profile_id: Union[int, str],
                                  optionlist_id: int,
                                  limit: int = 1000,
                                  offset: int = 0) -> pd.DataFrame:
    """id, sort_order, label, key_value and condition_value of the options in a list."""
    options = _list_core_elements(client, profile_id, optionlist_id, limit, offset)
    return to_table(options, CORE_ELEMENT_COLUMNS)


def get_all_option_list_elements(client: IFormAPIClient,
                                 profile_id: Union[int, str],
                                 optionlist_id: int,
                                 limit: int = 1000) -> pd.DataFrame:
    """Core elements of every option in a list, paging until a short page."""
    options = paginate(
        lambda lim, off: _list_core_elements(client, profile_id, optionlist_id, lim, off),
        limit=limit,
    )
    return to_table(options, CORE_ELEMENT_COLUMNS)


def update_options_in_list(client: IFormAPIClient,
                           profile_id: Union[int, str],
                           optionlist_id: int,
                           option_values: OptionValues,
                           fields: str = "fields",
                           limit: int = 1000,
                           offset: int = 0) -> List[int]:
    """
    Update existing options. Each option must carry its id; the other
    elements given are overwritten with the new values.

    Returns the ids of the updated options.
    """
    options = _as_records(option_values)
    missing_id = [o for o in options if o.get("id") is None]
    if missing_id:
        raise ValueError(f"{len(missing_id)} options have no id to update")
    response = client.put(_options_url(client, profile_id, optionlist_id), json=options,
                          params={"fields": fields, "limit": limit, "offset": offset})
    return ids_from(response)


def copy_option_list(client: IFormAPIClient,
                     profile_id: Union[int, str],
                     source_id: int,
                     new_name: str) -> int:
    """Create `new_name` with the same options as option list `source_id`. Returns the new list id."""
    source = get_all_option_list_elements(client, profile_id, source_id)
    new_id = create_new_option_list(client, profile_id, new_name)
    if not source.empty:
        add_options_to_list(client, profile_id, new_id, source.drop(columns="id"))
    logger.info(f"Copied {len(source)} options from option list {source_id} to {new_id}")
    return new_id
