"""Bulk Operations Entry Point

Command-line admin tool for bulk record updates and exports. Mutations are
dry runs unless ``--execute`` is given together with ``--confirm`` naming
the target collection; live runs authenticate against the hosted store.

Example:
    python -m modules.bulk_operations.main soft-delete --collection equipment \
        --ids-file ids.txt --user-id u-42 --execute --confirm equipment
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from opsconsole.config import ConfigLoader
from opsconsole.exceptions import OpsBaseException
from opsconsole.utils import setup_logging
from .processor import BulkJob, BulkOperationsProcessor, EXPORT_ACTIONS, MUTATING_ACTIONS

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Ops Console bulk operations - batched record updates and exports"
    )
    parser.add_argument("action", choices=MUTATING_ACTIONS + EXPORT_ACTIONS,
                        help="Operation to run")
    parser.add_argument("--collection", required=True, help="Target collection (e.g. projects, equipment)")
    parser.add_argument("--ids", nargs="*", default=[], help="Record ids")
    parser.add_argument("--ids-file", help="File with one record id per line")
    parser.add_argument("--status", help="New status (status action)")
    parser.add_argument("--user-id", help="Acting user id recorded on the records")
    parser.add_argument("--assignee-id", help="Assignee id (assign action)")
    parser.add_argument("--assignee-name", help="Assignee display name (assign action)")
    parser.add_argument("--field", dest="fields", action="append", default=[],
                        help="CSV column as 'path' or 'path:Label'; repeat for each column")
    parser.add_argument("--filename", help="Export base filename (default: collection name)")
    parser.add_argument(
        "--environment",
        choices=["development", "production"],
        default="development",
        help="Environment to run against (default: development)"
    )
    parser.add_argument("--config-dir", default="config", help="Configuration directory (default: config)")
    parser.add_argument("--execute", action="store_true",
                        help="Apply mutations to the live store instead of a dry run")
    parser.add_argument("--confirm", metavar="COLLECTION",
                        help="Repeat the collection name to confirm a live mutation")
    parser.add_argument("--dry-run", action="store_true",
                        help="Exports only: render without writing a file")
    return parser


def load_ids(inline_ids: List[str], ids_file: Optional[str]) -> List[str]:
    ids = [key.strip() for key in inline_ids if key.strip()]
    if ids_file:
        lines = Path(ids_file).read_text(encoding="utf-8").splitlines()
        ids.extend(line.strip() for line in lines if line.strip() and not line.startswith("#"))
    return ids


def main(args: Optional[list] = None) -> int:
    """Main entry point for the bulk operations tool.
    
    Args:
        args: Command line arguments (defaults to sys.argv)
        
    Returns:
        Exit code (0 for success, 1 for partial or total failure, 2 for usage errors)
    """
    parser = build_parser()
    parsed_args = parser.parse_args(args)
    
    is_mutation = parsed_args.action in MUTATING_ACTIONS
    if is_mutation and parsed_args.execute and parsed_args.confirm != parsed_args.collection:
        print(f"Refusing live {parsed_args.action}: pass --confirm {parsed_args.collection} to proceed")
        return EXIT_USAGE
    dry_run = not parsed_args.execute if is_mutation else parsed_args.dry_run
    
    config_loader = ConfigLoader(parsed_args.config_dir)
    try:
        env_config = config_loader.load_environment_config(parsed_args.environment)
        logging_config = env_config.get("logging", {})
        setup_logging(parsed_args.environment,
                      logging_config.get("level", "INFO"),
                      logging_config.get("log_dir"))
        ids = load_ids(parsed_args.ids, parsed_args.ids_file)
        job = BulkJob(
            action=parsed_args.action,
            collection=parsed_args.collection,
            ids=ids,
            status=parsed_args.status,
            user_id=parsed_args.user_id,
            assignee_id=parsed_args.assignee_id,
            assignee_name=parsed_args.assignee_name,
            export_fields=parsed_args.fields,
            filename=parsed_args.filename,
        )
    except (OpsBaseException, ValidationError, OSError) as e:
        print(f"Error: {e}")
        return EXIT_USAGE
    
    processor = BulkOperationsProcessor(config_loader, job, parsed_args.environment)
    if not processor.validate_configuration():
        print(f"Error: configuration for '{job.collection}' in {parsed_args.environment} is invalid")
        return EXIT_USAGE
    
    result = processor.process(dry_run=dry_run)
    
    mode = "DRY RUN" if dry_run else "LIVE"
    if job.is_mutation:
        print(f"[{mode}] {job.action} on {job.collection}: "
              f"{result.records_processed - result.records_failed} succeeded, {result.records_failed} failed")
    else:
        print(f"[{mode}] {job.action} on {job.collection}: {result.records_processed} records"
              + (f" -> {result.metadata['output']}" if result.metadata.get("output") else ""))
    for error in result.errors:
        print(f"  - {error}")
    
    return EXIT_OK if result.success else EXIT_FAILURES


if __name__ == "__main__":
    sys.exit(main())
