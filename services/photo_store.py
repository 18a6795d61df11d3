"""Helpers for storing uploaded cup photos in the bucket.

Every photo is re-encoded to JPEG before it is stored, since the processing
pipeline declares `image/jpeg` for all assets.
"""

from __future__ import annotations

import asyncio
import io
import uuid
from pathlib import PurePosixPath
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from services.storage_bucket import StorageBucket

PHOTO_PREFIX = "coffee"


class PhotoStore:
    """Convert uploads to JPEG and write them under `<prefix>/<folder>/`.

    Args:
        bucket: Target storage bucket.
        max_size: Optional bounding box; larger photos are downscaled preserving aspect ratio.
        quality: JPEG quality used for re-encoding.
    """

    def __init__(
        self,
        bucket: StorageBucket,
        max_size: Optional[Tuple[int, int]] = (2048, 2048),
        quality: int = 90,
    ) -> None:
        self.bucket = bucket
        self.max_size = max_size
        self.quality = quality

    def to_jpeg(self, data: bytes) -> bytes:
        """Return `data` re-encoded as an RGB JPEG.

        Raises:
            ValueError: If the bytes are empty or not a supported image format.
        """
        if not data:
            raise ValueError("Image bytes are required for saving.")
        try:
            src = Image.open(io.BytesIO(data))
            src.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Uploaded bytes are not a supported image format") from exc

        if src.mode in ("RGBA", "LA", "P"):
            # Flatten transparency against white
            rgba = src.convert("RGBA")
            src = Image.new("RGB", rgba.size, (255, 255, 255))
            src.paste(rgba, mask=rgba.split()[3])
        elif src.mode != "RGB":
            src = src.convert("RGB")

        if self.max_size:
            src.thumbnail(self.max_size, Image.LANCZOS)

        out_io = io.BytesIO()
        src.save(out_io, format="JPEG", quality=self.quality, optimize=True)
        return out_io.getvalue()

    async def save_photo(self, data: bytes, filename: Optional[str] = None, folder: Optional[str] = None) -> str:
        """Store an uploaded photo and return its bucket path.

        Args:
            data: Raw uploaded image bytes in any format Pillow can read.
            filename: Original filename; only its stem is kept.
            folder: Optional sub-folder below the photo prefix (e.g. a user id).
        """
        jpeg_bytes = await asyncio.to_thread(self.to_jpeg, data)

        stem = PurePosixPath(filename).stem if filename else ""
        stem = "".join(ch for ch in stem if ch.isalnum() or ch in "-_")[:40]
        object_name = f"{uuid.uuid4().hex}_{stem}.jpg" if stem else f"{uuid.uuid4().hex}.jpg"

        parts = [PHOTO_PREFIX]
        if folder:
            parts.append(folder.strip("/"))
        parts.append(object_name)
        return await self.bucket.upload("/".join(parts), jpeg_bytes)
