#!/usr/bin/env python3
"""
Load sample data into the configured store.

Usage:
    python scripts/seed.py            # add sample properties and leads
    python scripts/seed.py --clear    # empty all collections first

Prints bearer tokens for the sample agent and admin so the API can be
exercised right away.
"""

import argparse
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.api.deps import create_access_token  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.core.logging import setup_logging  # noqa: E402
from app.db.database import create_store  # noqa: E402
from app.db.seed import SEED_ADMIN, SEED_AGENT, seed  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the real estate database with sample data")
    parser.add_argument("--clear", action="store_true", help="delete existing documents first")
    args = parser.parse_args()

    setup_logging(debug=settings.debug)
    store = create_store(settings)
    try:
        if not store.ping():
            print(f"Store not reachable ({settings.store_backend})", file=sys.stderr)
            return 1
        counts = seed(store, wipe=args.clear)
    finally:
        store.close()

    print(f"Created {counts['properties']} properties and {counts['leads']} leads")
    for actor in (SEED_AGENT, SEED_ADMIN):
        token = create_access_token(actor.id, actor.role, name=actor.name, email=actor.email)
        print(f"{actor.role:>6} token: {token}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
