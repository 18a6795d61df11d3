"""FastAPI routes for coffee records."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from controllers.coffee_controller import create_coffee, get_coffee, list_coffee

router = APIRouter(prefix="/coffee", tags=["coffee"])


class CoffeePayload(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	user_name: Optional[str] = Field(None, alias="userName")
	user_birthday: Optional[str] = Field(None, alias="userBirthday")
	user_relation_status: Optional[str] = Field(None, alias="userRelationStatus")
	user_employment_status: Optional[str] = Field(None, alias="userEmploymentStatus")
	photo_paths: List[str] = Field(default_factory=list, alias="photoPaths")


@router.post("", status_code=201)
async def create_coffee_route(request: Request, payload: CoffeePayload):
	try:
		return await create_coffee(
			request,
			user_name=payload.user_name,
			user_birthday=payload.user_birthday,
			user_relation_status=payload.user_relation_status,
			user_employment_status=payload.user_employment_status,
			photo_paths=payload.photo_paths,
		)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("")
async def list_coffee_route(
	request: Request,
	limit: int = Query(50, ge=1, le=500),
	offset: int = Query(0, ge=0),
):
	try:
		return await list_coffee(request, limit=limit, offset=offset)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{record_id}")
async def get_coffee_route(request: Request, record_id: str):
	"""Return the coffee record, including its status and result once processed."""
	try:
		return await get_coffee(request, record_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
