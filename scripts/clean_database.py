"""Delete every row from the SubletConnect tables (children first).

Usage: python -m scripts.clean_database [--yes]
"""
import argparse
import asyncio

from sqlalchemy import delete

from subletconnect.database import async_session_factory, engine
from subletconnect.models import Account, Listing, Match, Message, SavedListing, Swipe

# Dependents before the rows they reference.
TABLES_IN_DELETE_ORDER = [Message, Match, SavedListing, Swipe, Listing, Account]


async def clean() -> dict[str, int]:
    counts: dict[str, int] = {}
    async with async_session_factory() as session:
        for model in TABLES_IN_DELETE_ORDER:
            result = await session.execute(delete(model))
            counts[model.__tablename__] = result.rowcount or 0
            print(f"  Cleared {model.__tablename__}: {counts[model.__tablename__]} rows")
        await session.commit()
    await engine.dispose()
    print("Done cleaning database.")
    return counts


def main():
    parser = argparse.ArgumentParser(description="SubletConnect database cleanup")
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args()

    if not args.yes:
        answer = input("This deletes ALL SubletConnect data. Type 'yes' to continue: ")
        if answer.strip().lower() != "yes":
            print("Aborted.")
            return

    asyncio.run(clean())


if __name__ == "__main__":
    main()
