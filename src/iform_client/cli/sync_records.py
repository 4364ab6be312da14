import argparse
from pathlib import Path
import logging

from iform_client.adapters.iform.client import IFormAPIClient
from iform_client.pipelines import record_sync_pipeline
from iform_client.settings import get_settings, get_iform_settings
from iform_client import logging_setup

logger = logging.getLogger(__name__)

def main():
    p = argparse.ArgumentParser(description="Incrementally download the records of an iFormBuilder page")
    p.add_argument("--profile_id", type=int, help="Profile id (defaults to IFORM_PROFILE_ID)")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--page_id", type=int, help="Id of the form or subform")
    group.add_argument("--page_name", help="Name of the form or subform")
    p.add_argument("--fields", required=True, help='Fields to download, e.g. "observers, stream"')
    p.add_argument("--out", help="Archive file (.parquet or .csv) to create or update")
    p.add_argument("--since_id", type=int, help="Only download records with a larger id")
    p.add_argument("--server_name", help="iFormBuilder server name (defaults to IFORM_SERVER_NAME)")
    p.add_argument("--log_level", default=get_settings().log_level, help="Logging level (DEBUG, INFO, WARNING, ERROR), defaults to APP_LOG_LEVEL")

    a = p.parse_args()

    # Initialize logging
    logging_setup.setup_logging(a.log_level)

    profile_id = a.profile_id
    if profile_id is None:
        iform = get_iform_settings()
        profile_id = iform.profile_id if iform else None
    if profile_id is None:
        p.error("--profile_id is required when IFORM_PROFILE_ID is not set")

    client = IFormAPIClient(server_name=a.server_name)
    records, out_file = record_sync_pipeline.run_record_sync_pipeline(
        client,
        profile_id,
        field_string=a.fields,
        page_id=a.page_id,
        page_name=a.page_name,
        out_file=Path(a.out) if a.out else None,
        since_id=a.since_id,
    )
    logger.info(f"Wrote {len(records)} records to {out_file}")

if __name__ == "__main__":
    main()
