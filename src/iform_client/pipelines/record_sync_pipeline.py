from pathlib import Path
from typing import Any, Mapping, Optional, Union
import logging

import pandas as pd

from iform_client.adapters.iform.client import IFormAPIClient
from iform_client.io.readers import read_csv, read_parquet
from iform_client.io.writers import atomic_write_csv, atomic_write_parquet
from iform_client.resources.pages import get_page_id
from iform_client.resources.records import get_all_records
from iform_client.resources.tables import apply_dtypes
from iform_client.settings import get_settings

logger = logging.getLogger(__name__)


def _read_archive(path: Path, dtypes: Optional[Mapping[str, Any]] = None) -> Optional[pd.DataFrame]:
    if not Path(path).exists():
        return None
    if path.suffix != ".csv":
        return apply_dtypes(read_parquet(path), dtypes)
    # csv loses types, keep values as written (leading zeros in codes) and only re-type the id
    archive = read_csv(path, dtype=object)
    if "id" in archive.columns:
        archive["id"] = archive["id"].astype("int64")
    return apply_dtypes(archive, dtypes)


def _write_archive(df: pd.DataFrame, path: Path) -> None:
    if path.suffix == ".csv":
        atomic_write_csv(df, path)
    else:
        atomic_write_parquet(df, path)


def last_synced_id(path: Path) -> int:
    """Largest record id already archived in `path`, 0 when there is no archive yet."""
    archive = _read_archive(Path(path))
    if archive is None or archive.empty or "id" not in archive.columns:
        return 0
    return int(archive["id"].max())


def run_record_sync_pipeline(client: IFormAPIClient,
                             profile_id: Union[int, str],
                             field_string: str,
                             page_id: Optional[int] = None,
                             page_name: Optional[str] = None,
                             out_file: Optional[Path] = None,
                             since_id: Optional[int] = None,
                             dtypes: Optional[Mapping[str, Any]] = None) -> tuple[pd.DataFrame, Path]:
    """
    Incrementally sync the records of a page into a local archive.

    Only records newer than the last archived id (or `since_id` when given)
    are requested. New records are appended to the archive, which is written
    atomically as parquet, or csv when the file name ends in .csv.

    Parameters:
    client (IFormAPIClient): Authenticated API client
    profile_id (int): The id number of your profile
    field_string (str): Fields (columns) to sync, e.g. "observers, stream"
    page_id (int): Id of the page, looked up from page_name when omitted
    page_name (str): Name of the page
    out_file (Path): Archive to update, defaults to processed_dir/<page>_records.parquet
    since_id (int): Override the starting id
    dtypes (dict): Optional column types

    Returns:
    tuple[pd.DataFrame, Path]: The full archive and its path
    """
    if page_id is None:
        if page_name is None:
            raise ValueError("Either page_id or page_name is required")
        page_id = get_page_id(client, profile_id, page_name)
        if page_id is None:
            raise ValueError(f"Page '{page_name}' not found in profile {profile_id}")
    if out_file is None:
        out_file = get_settings().processed_dir / f"{page_name or page_id}_records.parquet"
    out_file = Path(out_file)

    archive = _read_archive(out_file, dtypes)
    if since_id is None:
        since_id = last_synced_id(out_file) if archive is not None else 0
    logger.info(f"Syncing page {page_id} records with id > {since_id} into {out_file}")

    new_records = get_all_records(client, profile_id, page_id,
                                  field_string=field_string, since_id=since_id, dtypes=dtypes)
    logger.info(f"Fetched {len(new_records)} new records")

    if archive is not None and not archive.empty:
        combined = pd.concat([archive, new_records], ignore_index=True)
        combined = combined.drop_duplicates(subset="id", keep="last").sort_values("id", ignore_index=True)
    else:
        combined = new_records

    _write_archive(combined, out_file)
    logger.info(f"Archive now holds {len(combined)} records")

    return combined, out_file
