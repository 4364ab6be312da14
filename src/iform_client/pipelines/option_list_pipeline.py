from pathlib import Path
from typing import List, Optional, Union
import logging

import pandas as pd

from iform_client.adapters.iform.client import IFormAPIClient
from iform_client.io.readers import read_csv
from iform_client.io.writers import atomic_write_csv
from iform_client.resources import option_lists
from iform_client.settings import get_settings

logger = logging.getLogger(__name__)


def run_option_list_export_pipeline(client: IFormAPIClient,
                                    profile_id: Union[int, str],
                                    option_list_name: str,
                                    out_file: Optional[Path] = None) -> tuple[pd.DataFrame, Path]:
    """Write the core elements of every option in a named list to csv."""
    list_id = option_lists.get_option_list_id(client, profile_id, option_list_name)
    if list_id is None:
        raise ValueError(f"Option list '{option_list_name}' not found in profile {profile_id}")
    if out_file is None:
        out_file = get_settings().processed_dir / f"{option_list_name}.csv"
    out_file = Path(out_file)

    elements = option_lists.get_all_option_list_elements(client, profile_id, list_id)
    atomic_write_csv(elements, out_file)
    logger.info(f"Wrote {len(elements)} options of '{option_list_name}' to {out_file}")

    return elements, out_file


def run_option_list_upload_pipeline(client: IFormAPIClient,
                                    profile_id: Union[int, str],
                                    option_list_name: str,
                                    csv_file: Path) -> tuple[int, List[int]]:
    """
    Create a new option list from a csv of options.

    The csv columns must be among sort_order, label, key_value and
    condition_value. Options are validated before anything is created.

    Returns:
    tuple[int, list[int]]: The new option list id and the new option ids
    """
    # key_value must stay text, e.g. "01" is not 1
    options_df = read_csv(Path(csv_file), dtype={"key_value": str, "label": str})
    options = option_lists.validate_options(options_df)
    logger.info(f"Loaded {len(options)} options from {csv_file}")

    list_id = option_lists.create_new_option_list(client, profile_id, option_list_name)
    option_ids = option_lists.add_options_to_list(client, profile_id, list_id, options)

    return list_id, option_ids
