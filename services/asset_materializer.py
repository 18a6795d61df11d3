"""Turn bucket photo paths into files registered with the AI service.

Each reference is handled independently: download to a uniquely named temp
file, upload it through the OpenAI Files API, and keep the returned file id.
A failure for one reference is logged and recorded in its `AssetOutcome`; it
never aborts the other references or the record.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path, PurePosixPath
from typing import List, Sequence

from openai import AsyncOpenAI

from models.coffee_record import AssetOutcome, MaterializationResult, MaterializedAsset
from services.cleanup import CleanupCoordinator
from services.storage_bucket import StorageBucket
from utils.config import ASSET_MIME_TYPE

LOGGER = logging.getLogger(__name__)

UPLOAD_PURPOSE = "vision"


class AssetMaterializer:
    """Stage and register the photos of one record."""

    def __init__(
        self,
        bucket: StorageBucket,
        client: AsyncOpenAI,
        temp_dir: Path | str,
        *,
        mime_type: str = ASSET_MIME_TYPE,
    ) -> None:
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.bucket = bucket
        self.client = client
        self.temp_dir = Path(temp_dir)
        self.mime_type = mime_type

    def staging_path(self, invocation_id: str, index: int, reference: str) -> Path:
        """Return the temp location for one reference of one invocation."""
        base_name = PurePosixPath(reference).name or "photo"
        millis = int(time.time() * 1000)
        return self.temp_dir / f"temp_{invocation_id}_{index}_{millis}_{base_name}"

    async def materialize(
        self,
        references: Sequence[str],
        *,
        invocation_id: str,
        cleanup: CleanupCoordinator,
    ) -> MaterializationResult:
        """Materialize every reference concurrently, preserving input order.

        Args:
            references: Bucket paths of the record's photos (may be empty).
            invocation_id: Identifier of the current handler invocation, used
                to namespace temp file names.
            cleanup: Coordinator that takes ownership of staged files and
                uploaded file ids as soon as they exist.
        """
        if not references:
            return MaterializationResult()

        os.makedirs(self.temp_dir, exist_ok=True)
        outcomes: List[AssetOutcome] = await asyncio.gather(
            *(
                self._materialize_one(reference, index, invocation_id, cleanup)
                for index, reference in enumerate(references)
            )
        )
        result = MaterializationResult(outcomes=list(outcomes))
        if result.skipped:
            LOGGER.warning(
                "Skipped %d of %d photos for invocation %s",
                result.skipped,
                len(references),
                invocation_id,
            )
        return result

    async def _materialize_one(
        self,
        reference: str,
        index: int,
        invocation_id: str,
        cleanup: CleanupCoordinator,
    ) -> AssetOutcome:
        try:
            staged = self.staging_path(invocation_id, index, reference)
            await self.bucket.download(reference, staged, on_open=cleanup.track_local)
            LOGGER.info("Downloaded file from storage: %s to %s", reference, staged)

            uploaded = await self.client.files.create(file=staged, purpose=UPLOAD_PURPOSE)
            file_id = getattr(uploaded, "id", None)
            if not file_id:
                raise RuntimeError(f"Upload of {reference} returned no file id.")
            cleanup.track_remote(file_id)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.warning("Failed to process photo %s: %s", reference, exc)
            return AssetOutcome(reference=reference, error=exc)

        return AssetOutcome(
            reference=reference,
            asset=MaterializedAsset(
                reference=reference,
                local_path=str(staged),
                file_id=file_id,
                mime_type=self.mime_type,
            ),
        )
