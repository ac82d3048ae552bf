from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from .catalog import RecordTypeCatalog
from .errors import ReplaceError
from .models import ReplaceConfig
from .pipeline import run_replace
from .settings import LOG_LEVELS, load_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rtupdate",
        description="Replace record type names in a CSV file with record type ids",
    )
    parser.add_argument("-o", "--sobject", required=True, help="object type to query record types for")
    parser.add_argument("-r", "--rtname", required=True, help="column holding the record type developer name")
    parser.add_argument("-f", "--file", required=True, help="CSV file to update in place")
    parser.add_argument("--env-file", help="dotenv file with SF_INSTANCE_URL and SF_ACCESS_TOKEN")
    parser.add_argument("--dry-run", action="store_true", help="resolve and count, but do not write")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="logging level (default: RTUPDATE_LOG_LEVEL or INFO)",
    )
    parser.add_argument("--json", action="store_true", help="print the run summary as JSON")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.env_file)
    except ReplaceError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    logging.basicConfig(
        level=args.log_level or settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ReplaceConfig(object_type=args.sobject, lookup_column=args.rtname, file_path=args.file)
    except ValidationError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    try:
        with RecordTypeCatalog.from_settings(settings) as catalog:
            summary = run_replace(config, catalog, dry_run=args.dry_run)
    except ReplaceError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if args.json:
        print(summary.model_dump_json(indent=2))
    else:
        print(summary.describe())
    return 0


if __name__ == "__main__":
    sys.exit(main())
