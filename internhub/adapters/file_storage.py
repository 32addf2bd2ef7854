"""Local-disk file storage for uploads (submissions, payment proofs, certificates).

Files are never served directly; endpoints hand them out after an ownership
check.
"""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Optional

from internhub.common import timekeeper
from internhub.common.errors import NotFoundError, ValidationError
from internhub.core.config import get_settings

logger = logging.getLogger("storage")

_SAFE_NAME = re.compile(r"[^A-Za-z0-9._-]+")
_SAFE_CATEGORY = re.compile(r"^[a-z0-9_/-]+$")


def _safe_filename(filename: Optional[str]) -> str:
    if not filename:
        return "upload.bin"
    name = Path(filename).name
    name = _SAFE_NAME.sub("_", name).strip("._")
    return name or "upload.bin"


class LocalFileStorage:
    """Writes bytes under ``root/<category>/`` and returns a stable URL path."""

    def __init__(self, root: str | Path | None = None, base_url: str | None = None) -> None:
        settings = get_settings()
        self.root = Path(root or settings.upload_dir)
        self.base_url = (base_url or settings.upload_base_url).rstrip("/")

    def store_file(self, data: bytes, category: str, filename: Optional[str] = None) -> str:
        if not data:
            raise ValidationError("File is empty")
        if not _SAFE_CATEGORY.match(category) or ".." in category:
            raise ValueError(f"invalid storage category: {category!r}")

        stamp = int(timekeeper.now().timestamp() * 1000)
        name = f"{stamp}_{uuid.uuid4().hex[:8]}_{_safe_filename(filename)}"
        target_dir = self.root / category
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / name).write_bytes(data)

        url = f"{self.base_url}/{category}/{name}"
        logger.info("storage.stored category=%s bytes=%d url=%s", category, len(data), url)
        return url

    def resolve(self, url: str) -> Path:
        """Map a URL returned by ``store_file`` back to an existing file on disk."""
        prefix = f"{self.base_url}/"
        if not url or not url.startswith(prefix):
            raise ValueError(f"url not managed by this storage: {url}")
        root = self.root.resolve()
        path = (root / url[len(prefix):]).resolve()
        if root not in path.parents:
            raise ValueError(f"url escapes the storage root: {url}")
        if not path.is_file():
            raise NotFoundError("Stored file is missing", {"url": url})
        return path


file_storage = LocalFileStorage()
