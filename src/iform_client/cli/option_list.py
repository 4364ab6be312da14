import argparse
from pathlib import Path
import logging

from iform_client.adapters.iform.client import IFormAPIClient
from iform_client.pipelines import option_list_pipeline
from iform_client.settings import get_settings, get_iform_settings
from iform_client import logging_setup

logger = logging.getLogger(__name__)

def main():
    p = argparse.ArgumentParser(description="Export or upload iFormBuilder option lists")
    p.add_argument("--profile_id", type=int, help="Profile id (defaults to IFORM_PROFILE_ID)")
    p.add_argument("--server_name", help="iFormBuilder server name (defaults to IFORM_SERVER_NAME)")
    p.add_argument("--log_level", default=get_settings().log_level, help="Logging level (DEBUG, INFO, WARNING, ERROR), defaults to APP_LOG_LEVEL")
    sub = p.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Write an option list to csv")
    export.add_argument("name", help="Option list name")
    export.add_argument("--out", help="Output csv path")

    upload = sub.add_parser("upload", help="Create a new option list from a csv")
    upload.add_argument("name", help="Name of the new option list")
    upload.add_argument("--csv", required=True, help="csv with sort_order, label, key_value, condition_value columns")

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

    if a.command == "export":
        _, out_file = option_list_pipeline.run_option_list_export_pipeline(
            client, profile_id, a.name, out_file=Path(a.out) if a.out else None
        )
        logger.info(f"Wrote {out_file}")
    else:
        list_id, option_ids = option_list_pipeline.run_option_list_upload_pipeline(
            client, profile_id, a.name, csv_file=Path(a.csv)
        )
        logger.info(f"Created option list {list_id} with {len(option_ids)} options")

if __name__ == "__main__":
    main()
