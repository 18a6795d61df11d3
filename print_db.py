"""Print the coffee records stored in the project's SQLite database.

Shows each record's status, the attributes it was created with, and either
the fortune text or the stored error details. Uses the same `DATABASE_DIR`
setting as the application.

Run: set the `DATABASE_DIR` environment variable and run
      `python print_db.py [--limit N] [--status STATUS]`.
"""
import argparse
import asyncio
import json
from typing import Optional

from dotenv import load_dotenv

from dal.coffee_dal import CoffeeDAL
from models.coffee_record import CoffeeRecord, RecordStatus
from utils.config import Settings
from utils.database_init import AsyncDatabaseInitializer


def _format_result(record: CoffeeRecord) -> str:
    """Return a printable summary of the record's result field."""
    if record.result is None:
        return "-"
    if isinstance(record.result, dict):
        return json.dumps(record.result, ensure_ascii=False)
    text = str(record.result).strip().replace("\n", " ")
    return text if len(text) <= 200 else text[:197] + "..."


def _print_record(record: CoffeeRecord) -> None:
    print(f"{record.id} [{record.status.value}] created_at={record.created_at}")
    attrs = {
        "userName": record.user_name,
        "userBirthday": record.user_birthday,
        "userRelationStatus": record.user_relation_status,
        "userEmploymentStatus": record.user_employment_status,
    }
    entries = [f"{key}={val!r}" for key, val in attrs.items() if val]
    if entries:
        print("  " + "; ".join(entries))
    if record.photo_paths:
        print(f"  photos: {', '.join(record.photo_paths)}")
    print(f"  result: {_format_result(record)}")
    if record.ai:
        print(f"  ai: source={record.ai.get('source')} processedAt={record.ai.get('processedAt')}")
    print()


async def main(limit: int, status: Optional[str]) -> None:
    """Print up to `limit` records, optionally filtered by status."""
    settings = Settings.from_env()
    dal = CoffeeDAL(AsyncDatabaseInitializer(settings.database_dir))
    wanted = RecordStatus(status) if status else None
    for record in await dal.list_records(limit=limit):
        if wanted is None or record.status is wanted:
            _print_record(record)


if __name__ == "__main__":
    load_dotenv()
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--limit", type=int, default=100)
    parser.add_argument("--status", choices=[s.value for s in RecordStatus])
    args = parser.parse_args()
    asyncio.run(main(args.limit, args.status))
