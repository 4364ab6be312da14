"""
Records of a single page (form or subform).

Field strings follow the iFormBuilder syntax, e.g. ``id:<(>"100"),observers``
which sorts by id ascending and keeps ids greater than 100. Only request
fields from one page at a time: when a requested field does not exist the API
silently returns the id column alone.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from iform_client.adapters.iform.client import IFormAPIClient
from iform_client.resources.tables import apply_dtypes, frame_to_json_records, ids_from, records_to_table, single_row

logger = logging.getLogger(__name__)

MAX_RECORDS_PER_CALL = 1000
DELETE_CHUNK = 100


def since_id_fields(since_id: int, field_string: str) -> str:
    """Field string selecting records with an id greater than since_id, in ascending id order."""
    since = f'id:<(>"{since_id}")'
    field_string = (field_string or "").strip().strip(",")
    if not field_string or field_string == "id":
        return since
    return f"{since},{field_string}"


def get_page_record_list(client: IFormAPIClient,
                         profile_id: Union[int, str],
                         page_id: int,
                         limit: int = 1000,
                         offset: int = 0) -> List[int]:
    """Ids of the records in a page."""
    records = client.get(client.profile_url(profile_id, "pages", page_id, "records"),
                         params={"fields": "fields", "limit": limit, "offset": offset})
    return [record["id"] for record in records]


def get_page_record(client: IFormAPIClient,
                    profile_id: Union[int, str],
                    page_id: int,
                    record_id: int) -> pd.DataFrame:
    """A single record as a one-row frame. Null values become missing values."""
    record = client.get(client.profile_url(profile_id, "pages", page_id, "records", record_id))
    return single_row(record)


def get_selected_page_records(client: IFormAPIClient,
                              profile_id: Union[int, str],
                              page_id: int,
                              fields: str = "fields",
                              limit: int = 100,
                              offset: int = 0,
                              dtypes: Optional[Mapping[str, Any]] = None) -> pd.DataFrame:
    """
    Records of a page for a selected set of fields (columns).

    This is the primary way to retrieve data. The record id is always the
    first column; archive it and pass the last id through ``since_id_fields``
    to pull only newly submitted records next time.

    Parameters:
    client (IFormAPIClient): Authenticated API client
    profile_id (int): The id number of your profile
    page_id (int): The id of the form or subform
    fields (str): Field string of the columns (and conditions) to return
    limit (int): The maximum number of records to return (at most 1000)
    offset (int): Skips the offset number of records before beginning to return
    dtypes (dict): Optional column types to apply to the result

    Returns:
    pd.DataFrame: One row per record
    """
    records = client.get(client.profile_url(profile_id, "pages", page_id, "records"),
                         params={"fields": fields, "limit": limit, "offset": offset})
    return records_to_table(records, dtypes)


def get_all_records(client: IFormAPIClient,
                    profile_id: Union[int, str],
                    page_id: int,
                    field_string: str,
                    since_id: int = 0,
                    limit: int = MAX_RECORDS_PER_CALL,
                    dtypes: Optional[Mapping[str, Any]] = None) -> pd.DataFrame:
    """
    All records with an id greater than `since_id`, past the 1000 records per
    call limit.

    Each request asks for records newer than the largest id collected so far,
    so no record is requested twice. The loop stops on the first request that
    returns fewer than `limit` records.
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    limit = min(limit, MAX_RECORDS_PER_CALL)
    chunks: List[pd.DataFrame] = []
    while True:
        chunk = get_selected_page_records(client, profile_id, page_id,
                                          fields=since_id_fields(since_id, field_string),
                                          limit=limit)
        if not chunk.empty:
            chunks.append(chunk)
            since_id = int(chunk["id"].max())
        logger.debug(f"Fetched {len(chunk)} records from page {page_id}, next since_id={since_id}")
        if len(chunk) < limit:
            break

    if not chunks:
        return records_to_table([], dtypes)
    all_records = pd.concat(chunks, ignore_index=True)
    logger.info(f"Retrieved {len(all_records)} records from page {page_id}")
    return apply_dtypes(all_records, dtypes)


def create_records(client: IFormAPIClient,
                   profile_id: Union[int, str],
                   page_id: int,
                   records: Union[pd.DataFrame, Iterable[Dict[str, Any]]]) -> List[int]:
    """Submit new records to a page. Returns the new record ids."""
    if isinstance(records, pd.DataFrame):
        records = frame_to_json_records(records)
    body = [{"fields": [{"element_name": k, "value": v} for k, v in record.items()]}
            for record in records]
    response = client.post(client.profile_url(profile_id, "pages", page_id, "records"), json=body)
    ids = ids_from(response)
    logger.info(f"Created {len(ids)} records in page {page_id}")
    return ids


def update_record(client: IFormAPIClient,
                  profile_id: Union[int, str],
                  page_id: int,
                  record_id: int,
                  values: Mapping[str, Any]) -> int:
    """Overwrite field values of one record. Returns the record id."""
    body = {"fields": [{"element_name": k, "value": v} for k, v in values.items()]}
    response = client.put(client.profile_url(profile_id, "pages", page_id, "records", record_id), json=body)
    return response.get("id", record_id)


def delete_record(client: IFormAPIClient,
                  profile_id: Union[int, str],
                  page_id: int,
                  record_id: int) -> int:
    """Delete a single record and return its id."""
    response = client.delete(client.profile_url(profile_id, "pages", page_id, "records", record_id))
    return response.get("id", record_id)


def delete_multiple_records(client: IFormAPIClient,
                            profile_id: Union[int, str],
                            page_id: int,
                            record_ids: Iterable[int]) -> List[int]:
    """
    Delete a list of records. The API deletes at most 100 per call, so the
    request is repeated with an increasing offset until a short page comes back.
    """
    body = [{"id": int(record_id)} for record_id in record_ids]
    if not body:
        return []
    url = client.profile_url(profile_id, "pages", page_id, "records")
    deleted: List[int] = []
    offset = 0
    while True:
        response = client.delete(url, json=body,
                                 params={"fields": "", "limit": DELETE_CHUNK, "offset": offset})
        ids = ids_from(response)
        deleted.extend(ids)
        if len(ids) < DELETE_CHUNK:
            break
        offset += DELETE_CHUNK
    logger.info(f"Deleted {len(deleted)} records from page {page_id}")
    return deleted


def truncate_form(client: IFormAPIClient, profile_id: Union[int, str], page_id: int) -> List[int]:
    """Remove all records from a page, leaving the page structure. USE WITH CAUTION!"""
    records = get_all_records(client, profile_id, page_id, field_string="id", since_id=0)
    if records.empty:
        logger.info(f"Page {page_id} has no records to delete")
        return []
    return delete_multiple_records(client, profile_id, page_id, records["id"].tolist())
