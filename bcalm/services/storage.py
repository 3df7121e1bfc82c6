# bcalm/services/storage.py
"""
Local disk storage for uploaded CVs.

Files land under settings.UPLOAD_DIR with a random name that keeps the
original extension. The analysis worker fetches them back through
GET /api/v1/analysis/files/{jobId}, so nothing here is publicly addressable.
"""
import logging
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from bcalm.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class LocalFileStorage:
    def __init__(self, settings: Optional[Settings] = None):
        cfg = settings or default_settings
        self.root = Path(cfg.UPLOAD_DIR)

    def _ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    async def save(self, content: bytes, original_name: str) -> str:
        """Write bytes to a fresh file and return its path as a string."""
        self._ensure_root()
        ext = Path(original_name).suffix.lower()
        path = self.root / f"{uuid.uuid4().hex}{ext}"
        async with aiofiles.open(path, "wb") as out:
            await out.write(content)
        logger.info("Stored upload %s (%d bytes) at %s", original_name, len(content), path)
        return str(path)

    async def exists(self, path: Optional[str]) -> bool:
        if not path:
            return False
        return await aiofiles.os.path.isfile(path)

    async def delete(self, path: Optional[str]) -> bool:
        if not path or not await self.exists(path):
            return False
        await aiofiles.os.remove(path)
        return True
