"""Async Data Access Layer for the coffee table.

Provides CoffeeDAL with the reads and conditional writes used by the record
processor and the HTTP controllers, on top of
`utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import json
import time
import uuid
from typing import Any, Dict, List, Optional, Sequence

from models.coffee_record import CoffeeRecord, RecordStatus
from utils.database_init import AsyncDatabaseInitializer


class CoffeeDAL:
    """Data access layer for coffee records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).

    Status transitions made by the processor are conditional on the record
    not carrying a result yet, so a record that already reached a terminal
    state is never overwritten.
    """

    _COLUMNS = (
        "id",
        "user_name",
        "user_birthday",
        "user_relation_status",
        "user_employment_status",
        "photo_paths",
        "status",
        "result",
        "ai",
        "created_at",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_record(self, record: CoffeeRecord) -> str:
        """Insert a new coffee row and return its id.

        Args:
            record: CoffeeRecord to insert. A new hex id is generated when
                `record.id` is None.

        Returns:
            The primary key of the created row.
        """
        record_id = record.id or uuid.uuid4().hex
        created_at = record.created_at or int(time.time())

        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO coffee ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record_id,
                    record.user_name,
                    record.user_birthday,
                    record.user_relation_status,
                    record.user_employment_status,
                    json.dumps(list(record.photo_paths or [])),
                    record.status.value,
                    self._dump_json(record.result),
                    self._dump_json(record.ai),
                    created_at,
                ),
            )
            await conn.commit()
        return record_id

    async def get_record(self, record_id: str) -> Optional[CoffeeRecord]:
        """Return the CoffeeRecord for `record_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM coffee WHERE id = ?",
                (record_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_records(self, limit: int = 100, offset: int = 0) -> List[CoffeeRecord]:
        """List coffee rows, newest first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM coffee ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def mark_processing(self, record_id: str) -> bool:
        """Set status to processing while the record has no result. Returns True if changed."""
        return await self._update_without_result(
            record_id, {"status": RecordStatus.PROCESSING.value}
        )

    async def complete_record(self, record_id: str, result_text: str, ai: Dict[str, Any]) -> bool:
        """Write the AI text, metadata and completed status in one statement.

        Returns False when the record is missing or already carries a result.
        """
        return await self._update_without_result(
            record_id,
            {
                "result": json.dumps(result_text),
                "ai": json.dumps(ai),
                "status": RecordStatus.COMPLETED.value,
            },
        )

    async def fail_record(self, record_id: str, error_payload: Dict[str, Any]) -> bool:
        """Write the error payload and error status in one statement.

        Returns False when the record is missing or already carries a result.
        """
        return await self._update_without_result(
            record_id,
            {
                "result": json.dumps(error_payload),
                "status": RecordStatus.ERROR.value,
            },
        )

    async def _update_without_result(self, record_id: str, values: Dict[str, Any]) -> bool:
        assignments = ", ".join(f"{col} = ?" for col in values)
        params = [*values.values(), record_id]
        sql = f"UPDATE coffee SET {assignments} WHERE id = ? AND result IS NULL"

        async with self._db.connection() as conn:
            await conn.execute(sql, tuple(params))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    @staticmethod
    def _dump_json(value: Any) -> Optional[str]:
        return json.dumps(value) if value is not None else None

    @staticmethod
    def _load_json(value: Optional[str]) -> Any:
        if value is None:
            return None
        return json.loads(value)

    @classmethod
    def _row_to_record(cls, row: Sequence[Any]) -> CoffeeRecord:
        """Convert a DB row tuple into a CoffeeRecord."""
        return CoffeeRecord(
            id=row[0],
            user_name=row[1],
            user_birthday=row[2],
            user_relation_status=row[3],
            user_employment_status=row[4],
            photo_paths=cls._load_json(row[5]) or [],
            status=RecordStatus(row[6]),
            result=cls._load_json(row[7]),
            ai=cls._load_json(row[8]),
            created_at=row[9],
        )
