"""Per-record handler that drives a coffee record to a terminal state.

Lifecycle: pending -> processing -> completed | error. A record that already
carries a result is skipped without any write or external call. Every other
invocation ends with exactly one terminal write (or an exception when the
datastore itself fails), and staged photos are always released.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from openai import AsyncOpenAI

from dal.coffee_dal import CoffeeDAL
from models.coffee_record import CoffeeCreatedEvent, CoffeeRecord, RecordStatus
from services.asset_materializer import AssetMaterializer
from services.attributes import normalize_attributes
from services.cleanup import CleanupCoordinator
from services.openai.fortune_prompts import build_fortune_prompt
from services.openai.fortune_reader import FortuneReader
from services.storage_bucket import StorageBucket
from utils.config import ConfigurationError, Settings

LOGGER = logging.getLogger(__name__)

ERROR_CATEGORY = "Failed to process with Gemini AI"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(moment: datetime) -> str:
    """Render a timestamp as ISO-8601 with millisecond precision and a `Z` suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CoffeeProcessor:
    """Process coffee creation events with injected service handles.

    Args:
        dal: Datastore access for status and result writes.
        bucket: Object storage holding the cup photos.
        client: Async OpenAI client; may be None when no API key is configured.
        settings: Resolved configuration (API key, model, temp dir).
        clock: Returns the current time; drives age derivation and `processedAt`.
    """

    def __init__(
        self,
        dal: CoffeeDAL,
        bucket: StorageBucket,
        client: Optional[AsyncOpenAI],
        settings: Settings,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.dal = dal
        self.bucket = bucket
        self.client = client
        self.settings = settings
        self.clock = clock

    async def handle(self, event: CoffeeCreatedEvent) -> Optional[RecordStatus]:
        """Handle one creation event.

        Returns:
            The terminal status written, or None when the event was skipped.

        Raises:
            Exception: Only when a datastore write fails.
        """
        record = event.data
        record_id = event.record_id

        if record is None:
            LOGGER.error("No data associated with the event for record %s", record_id)
            return None

        if record.has_result:
            LOGGER.info("Document %s already has a result, skipping", record_id)
            return None

        invocation_id = uuid.uuid4().hex
        cleanup = CleanupCoordinator(self.client)
        LOGGER.info("Processing coffee document %s (invocation %s)", record_id, invocation_id)

        try:
            if not await self.dal.mark_processing(record_id):
                LOGGER.info("Document %s is missing or already has a result, skipping", record_id)
                return None

            try:
                text, ai = await self._read_fortune(record, invocation_id, cleanup)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                LOGGER.error("Error processing coffee document %s: %s", record_id, exc)
                written = await self.dal.fail_record(record_id, self._error_payload(exc))
                return self._terminal(record_id, RecordStatus.ERROR, written)

            written = await self.dal.complete_record(record_id, text, ai)
            if written:
                LOGGER.info("Successfully updated document %s with the fortune result", record_id)
            return self._terminal(record_id, RecordStatus.COMPLETED, written)
        finally:
            await cleanup.release()

    async def _read_fortune(
        self,
        record: CoffeeRecord,
        invocation_id: str,
        cleanup: CleanupCoordinator,
    ) -> Tuple[str, Dict[str, Any]]:
        self.settings.require_api_key()
        if self.client is None:
            raise ConfigurationError("AI client is not initialized")

        attributes = normalize_attributes(record, today=self.clock().date())

        materializer = AssetMaterializer(self.bucket, self.client, self.settings.temp_dir)
        materialized = await materializer.materialize(
            record.photo_paths, invocation_id=invocation_id, cleanup=cleanup
        )

        prompt_text = build_fortune_prompt(attributes)
        reader = FortuneReader(self.client, model=self.settings.ai_model)
        text = await reader.read_fortune(materialized.assets, prompt_text)
        LOGGER.info("Fortune response received for document %s", record.id)

        ai = {
            "promptText": prompt_text,
            "processedAt": isoformat(self.clock()),
            "source": self.settings.ai_model,
            "skippedAssets": materialized.skipped,
        }
        return text, ai

    def _error_payload(self, exc: BaseException) -> Dict[str, Any]:
        return {
            "error": ERROR_CATEGORY,
            "errorDetails": str(exc) or exc.__class__.__name__,
            "processedAt": isoformat(self.clock()),
            "source": self.settings.ai_model,
        }

    @staticmethod
    def _terminal(record_id: str, status: RecordStatus, written: bool) -> Optional[RecordStatus]:
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal status")
        if not written:
            LOGGER.warning(
                "Document %s received a result from another invocation; discarding %s outcome",
                record_id,
                status.value,
            )
            return None
        return status
