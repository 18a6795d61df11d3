"""Controllers for creating and inspecting coffee records."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request

from dal.coffee_dal import CoffeeDAL
from models.coffee_record import CoffeeCreatedEvent, CoffeeRecord, RecordStatus
from services.record_trigger import RecordTrigger


async def create_coffee(
    request: Request,
    *,
    user_name: Optional[str] = None,
    user_birthday: Optional[str] = None,
    user_relation_status: Optional[str] = None,
    user_employment_status: Optional[str] = None,
    photo_paths: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Insert a pending coffee record and fire its creation event.

    Args:
        request: FastAPI Request (used to access app.state for shared services).
        user_name: Optional user name.
        user_birthday: Optional birthdate string.
        user_relation_status: Optional relationship status.
        user_employment_status: Optional employment status.
        photo_paths: Bucket paths of previously uploaded cup photos.

    Returns:
        A dict with the new record `id` and its `status`.
    """
    dal = CoffeeDAL(request.app.state.db_initializer)
    trigger: RecordTrigger = request.app.state.record_trigger

    record = CoffeeRecord(
        id=None,
        user_name=user_name,
        user_birthday=user_birthday,
        user_relation_status=user_relation_status,
        user_employment_status=user_employment_status,
        photo_paths=[p for p in (photo_paths or []) if p],
        status=RecordStatus.PENDING,
    )
    record.id = await dal.create_record(record)
    trigger.fire(CoffeeCreatedEvent(record_id=record.id, data=record))

    return {"id": record.id, "status": record.status.value}


async def get_coffee(request: Request, record_id: str) -> Dict[str, Any]:
    """Return one coffee record as a document.

    Raises:
        HTTPException(404) if the record does not exist.
    """
    dal = CoffeeDAL(request.app.state.db_initializer)
    record = await dal.get_record(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Coffee record not found")
    return record.to_document()


async def list_coffee(request: Request, limit: int = 50, offset: int = 0) -> Dict[str, Any]:
    """Return a page of coffee records, newest first."""
    dal = CoffeeDAL(request.app.state.db_initializer)
    records = await dal.list_records(limit=limit, offset=offset)
    return {"items": [r.to_document() for r in records], "limit": limit, "offset": offset}
