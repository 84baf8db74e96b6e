#!/usr/bin/env python3
"""Backfill owner records for properties created before the ownership model."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.config import SessionLocal, settings  # noqa: E402
from backend.core.logging import configure_logging  # noqa: E402
from backend.services.ownership_migration import (  # noqa: E402
    check_migration_status,
    migrate_properties_to_ownership_model,
)


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--status", action="store_true", help="Only report how many properties need migration.")
    args = parser.parse_args()

    configure_logging(settings.log_level, settings.log_format)
    with SessionLocal() as session:
        status = check_migration_status(session)
        if not status.success:
            print(f"Could not read migration status: {status.error}")
            return 1
        print(
            f"Properties: {status.total_properties} total, "
            f"{status.already_migrated} migrated, {status.needs_migration} pending."
        )
        if args.status or status.needs_migration == 0:
            return 0

        result = migrate_properties_to_ownership_model(session)
    if not result.success:
        print(f"Migration failed: {result.error}")
        return 1
    print(
        f"Migrated {result.migrated_count} properties, skipped {result.skipped_count}, "
        f"across {result.total_users} users."
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
