#!/usr/bin/env python3
"""Print storage usage for the configured backend.

Reads the same CRYPTOHUB_* variables as the application (see cryptohub.config).

Usage:
    CRYPTOHUB_DATABASE_URL=sqlite:///cryptohub.db python scripts/storage_report.py
    python scripts/storage_report.py --database-url sqlite:///cryptohub.db --purge-expired
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import Optional, Sequence

from cryptohub.config import StoreConfig, build_backend
from cryptohub.storage import PersistentStore, StorageError, format_bytes

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print storage usage per logical key.")
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy URL (overrides CRYPTOHUB_DATABASE_URL)",
    )
    parser.add_argument(
        "--purge-expired",
        action="store_true",
        help="Delete expired and undecodable records before reporting",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=20,
        help="Number of largest keys to list (default: 20)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = StoreConfig.from_env()
    if args.database_url:
        config = replace(config, database_url=args.database_url)

    if not config.database_url:
        print("No database configured: set CRYPTOHUB_DATABASE_URL or pass --database-url")
        return 1

    store = PersistentStore(
        build_backend(config),
        prefix=config.prefix,
        version=config.schema_version,
    )

    if not store.is_available():
        print("Storage backend is not available")
        return 1

    try:
        if args.purge_expired:
            purged = store.clear_expired()
            print(f"Purged {purged} expired record(s)")

        usage = store.get_size()
    except StorageError as e:
        logger.error(f"Storage report failed: {e}")
        return 1

    print(f"prefix={config.prefix} version={config.schema_version}")
    print(f"items={usage.item_count} total={usage.total_size_formatted}")
    if config.quota_bytes is not None:
        print(f"quota={format_bytes(config.quota_bytes)}")

    for item in usage.items[: args.top]:
        print(f"  {item.key:<40} {format_bytes(item.size):>10}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
