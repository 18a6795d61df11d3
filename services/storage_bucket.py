"""Directory-backed object storage bucket.

Objects are addressed by bucket-relative paths such as
`coffee/<user>/cup_1.jpg`. Reads and writes go through `aiofiles` so the
event loop is never blocked on disk IO.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Callable, Optional

import aiofiles
import aiofiles.os


class StorageBucket:
    """Resolve, read and write objects below a root directory."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).expanduser().resolve()

    def resolve(self, object_path: str) -> Path:
        """Map an object path to a file below the bucket root.

        Raises:
            ValueError: If the path is empty, absolute, or escapes the bucket.
        """
        if not object_path or not str(object_path).strip():
            raise ValueError("Object path must not be empty.")
        relative = PurePosixPath(str(object_path).strip().lstrip("/"))
        if ".." in relative.parts:
            raise ValueError(f"Object path escapes the bucket: {object_path!r}")
        resolved = (self.root / relative).resolve()
        if self.root not in resolved.parents:
            raise ValueError(f"Object path escapes the bucket: {object_path!r}")
        return resolved

    async def download(
        self,
        object_path: str,
        destination: Path | str,
        on_open: Optional[Callable[[Path], object]] = None,
    ) -> Path:
        """Copy the object at `object_path` to `destination` and return the destination.

        `on_open` is called with the destination path as soon as the destination
        file has been created, before any bytes are written.

        Raises:
            FileNotFoundError: If the object does not exist.
            ValueError: If the object path is invalid.
        """
        source = self.resolve(object_path)
        if not await aiofiles.os.path.isfile(source):
            raise FileNotFoundError(f"Object not found in bucket: {object_path}")

        destination = Path(destination)
        async with aiofiles.open(source, "rb") as src:
            async with aiofiles.open(destination, "wb") as dst:
                if on_open is not None:
                    on_open(destination)
                while True:
                    chunk = await src.read(1024 * 1024)
                    if not chunk:
                        break
                    await dst.write(chunk)
        return destination

    async def upload(self, object_path: str, data: bytes) -> str:
        """Write `data` to `object_path`, creating parent folders, and return the object path."""
        if not data:
            raise ValueError("Object data must not be empty.")
        target = self.resolve(object_path)
        await aiofiles.os.makedirs(target.parent, exist_ok=True)
        async with aiofiles.open(target, "wb") as f:
            await f.write(data)
        return target.relative_to(self.root).as_posix()
