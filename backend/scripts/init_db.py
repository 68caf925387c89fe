#!/usr/bin/env python3
""" Initialize the database, create all tables and seed the default keyword policy. """
import asyncio
import sys
from pathlib import Path

# Add the parent directory to the Python path
sys.path.append(str(Path(__file__).parent.parent))

from app.db.base import SessionLocal, init_db  # noqa: E402
from app.policies.keywords import DEFAULT_KEYWORDS, KeywordPolicyStore  # noqa: E402


async def seed() -> int:
    db = SessionLocal()
    try:
        return await KeywordPolicyStore(db).seed_defaults_if_empty(DEFAULT_KEYWORDS)
    finally:
        db.close()


if __name__ == "__main__":
    print("Initializing database...")
    init_db()
    inserted = asyncio.run(seed())
    print(f"Seeded {inserted} default banned keywords")
    print("Database initialization complete!")
