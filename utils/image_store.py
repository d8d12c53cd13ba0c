# utils/image_store.py
import asyncio
import logging
import random
from pathlib import Path
from typing import List, Optional

from utils.recency import DEFAULT_HISTORY_SIZE, RecencyBuffer, select_image
from utils.uploads import (
    ACCEPTED_EXTENSIONS,
    UploadSaveError,
    build_upload_name,
    validate_upload,
)

logger = logging.getLogger("image_store")


class ImageStore:
    """
    Owns the image folder and the recency buffer that keeps /yoshito from
    repeating itself. Listing and writing run in the default executor.
    """

    def __init__(self, image_dir, history_size: int = DEFAULT_HISTORY_SIZE, rng=random):
        self.image_dir = Path(image_dir)
        self.history = RecencyBuffer(history_size)
        self.rng = rng
        self._lock = asyncio.Lock()

    def list_images(self) -> List[str]:
        return sorted(
            p.name for p in self.image_dir.iterdir()
            if p.is_file() and p.suffix.lower() in ACCEPTED_EXTENSIONS
        )

    def path_for(self, filename: str) -> Path:
        return self.image_dir / filename

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def pick(self) -> Optional[str]:
        """
        Choose an image not sent recently and record it. Returns None when every
        image is in the history; the history is cleared in that case so the next
        call succeeds.
        """
        async with self._lock:
            images = await self._run(self.list_images)
            chosen = select_image(images, self.history, rng=self.rng)
            if chosen is None:
                logger.info("No unused images left (%d on disk), resetting history.", len(images))
                self.history.clear()
                return None
            self.history.append(chosen)
            logger.debug("Picked %s (history %d/%d)", chosen, len(self.history), self.history.capacity)
            return chosen

    def _write(self, path: Path, data: bytes):
        try:
            path.write_bytes(data)
        except OSError:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove partial file %s: %s", path, e)
            raise

    async def ingest(self, data: bytes, original_name: str, caption: str = "") -> str:
        """Validate, write the upload under a unique name and remember it."""
        validate_upload(original_name, caption)
        filename = build_upload_name(original_name)
        path = self.path_for(filename)
        try:
            await self._run(self._write, path, data)
        except OSError as e:
            raise UploadSaveError(f"could not write {path}: {e}") from e

        async with self._lock:
            self.history.append(filename)
        logger.info("Saved upload %s (%d bytes)", filename, len(data))
        return filename
