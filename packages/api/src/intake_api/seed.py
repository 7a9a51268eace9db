# This project was developed with assistance from AI tools.
"""CLI entrypoint for reference data seeding.

Usage:
    python -m intake_api.seed           # Insert missing document types
    python -m intake_api.seed --list    # Show the fixture names without touching the DB
"""

import argparse
import asyncio
import json

from intake_db import SessionLocal

from .services.seed.fixtures import DOCUMENT_TYPES
from .services.seed.seeder import seed_document_types


async def main() -> None:
    """Run reference data seeding."""
    async with SessionLocal() as session:
        result = await seed_document_types(session)
        print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed loan intake reference data")
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the document types that would be seeded and exit",
    )
    args = parser.parse_args()
    if args.list:
        for fixture in DOCUMENT_TYPES:
            print(f"{fixture['category'].value:<28} {fixture['name']}")
    else:
        asyncio.run(main())
