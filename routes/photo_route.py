from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from controllers.photo_controller import upload_photo

router = APIRouter(prefix="/photos", tags=["photos"])


@router.post("", status_code=201)
async def upload_photo_route(request: Request, file: UploadFile = File(...), folder: Optional[str] = Form(None)):
	"""Store a cup photo and return the bucket path to reference from a coffee record."""
	try:
		return await upload_photo(request, file, folder)
	except HTTPException:
		raise
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
