"""Release transient resources created while processing one record."""

from __future__ import annotations

import logging
from typing import List, Optional

import aiofiles.os
from openai import AsyncOpenAI

LOGGER = logging.getLogger(__name__)


class CleanupCoordinator:
    """Track staged files and remote uploads, and release them once.

    Paths and file ids are registered at the moment they are created, so a
    failure or cancellation at any later point still releases them when
    `release()` runs from a `finally` block.
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None) -> None:
        self.client = client
        self.local_paths: List[str] = []
        self.remote_file_ids: List[str] = []
        self._released = False

    def track_local(self, path: str) -> str:
        self.local_paths.append(str(path))
        return str(path)

    def track_remote(self, file_id: str) -> str:
        self.remote_file_ids.append(file_id)
        return file_id

    @property
    def released(self) -> bool:
        return self._released

    async def release(self) -> int:
        """Delete every tracked file and remote upload.

        Each failure is logged and the remaining deletions continue. Calling
        this more than once is a no-op.

        Returns:
            Number of deletions attempted.
        """
        if self._released:
            return 0
        self._released = True

        attempts = 0
        for path in self.local_paths:
            attempts += 1
            try:
                await aiofiles.os.remove(path)
                LOGGER.info("Cleaned up temporary file: %s", path)
            except FileNotFoundError:
                LOGGER.debug("Temporary file already absent: %s", path)
            except OSError as exc:
                LOGGER.warning("Failed to clean up temp file %s: %s", path, exc)

        for file_id in self.remote_file_ids:
            if self.client is None:
                break
            attempts += 1
            try:
                await self.client.files.delete(file_id)
                LOGGER.info("Deleted uploaded file from AI service: %s", file_id)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                LOGGER.warning("Failed to delete uploaded file %s: %s", file_id, exc)

        return attempts
