from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import BinaryIO, Optional, Union

from werkzeug.utils import secure_filename

from ..core.exceptions import ValidationError
from .base import FileStorage, StoredFile

logger = logging.getLogger(__name__)


class LocalFileStorage(FileStorage):
    """Stores files under an upload folder; Flask serves them from ``public_url``."""

    def __init__(self, root: Union[str, Path], *, public_url: str = "/uploads"):
        self._root = Path(root).resolve()
        self._public_url = public_url.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def _normalize(self, path: str) -> str:
        parts = [secure_filename(p) for p in str(path).replace("\\", "/").split("/") if p not in ("", ".", "..")]
        parts = [p for p in parts if p]
        if not parts:
            raise ValidationError("Invalid file path")
        return "/".join(parts)

    def resolve(self, path: str) -> Path:
        target = (self._root / self._normalize(path)).resolve()
        if self._root not in target.parents:
            raise ValidationError("Invalid file path")
        return target

    def save(self, path: str, stream: BinaryIO, content_type: Optional[str] = None) -> StoredFile:
        rel = self._normalize(path)
        target = self.resolve(rel)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as fh:
            shutil.copyfileobj(stream, fh)
        size = target.stat().st_size
        logger.info("Stored %s (%s bytes, %s)", rel, size, content_type or "unknown type")
        return StoredFile(path=rel, url=self.url_for(rel), size=size, name=target.name)

    def delete(self, path: str) -> bool:
        target = self.resolve(path)
        if not target.exists():
            return False
        target.unlink()
        logger.info("Deleted stored file %s", path)
        return True

    def url_for(self, path: str) -> str:
        return f"{self._public_url}/{self._normalize(path)}"
