from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, UploadFile

from services.photo_store import PhotoStore


async def upload_photo(request: Request, file: UploadFile, folder: Optional[str] = None) -> Dict[str, Any]:
    """Store an uploaded cup photo in the bucket as JPEG.

    Returns:
        A dict containing the bucket `path` to reference from a coffee record.

    Raises:
        HTTPException(400) if the upload is empty or not an image.
    """
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Uploaded photo is empty.")

    store = PhotoStore(request.app.state.bucket)
    try:
        path = await store.save_photo(raw, filename=file.filename, folder=folder)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {"path": path, "mime_type": "image/jpeg"}
