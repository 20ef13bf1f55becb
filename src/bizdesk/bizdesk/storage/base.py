from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Optional, Protocol


@dataclass(frozen=True)
class StoredFile:
    path: str
    url: str
    size: int
    name: str


@dataclass(frozen=True)
class UploadedFile:
    """A file received from a request, detached from the web framework."""

    stream: BinaryIO
    filename: str
    content_type: Optional[str]


class FileStorage(Protocol):
    """Binary object storage keyed by a relative path (e.g. ``policies/123-handbook.pdf``)."""

    def save(self, path: str, stream: BinaryIO, content_type: Optional[str] = None) -> StoredFile:
        raise NotImplementedError

    def delete(self, path: str) -> bool:
        """Remove a stored object; returns False when it did not exist."""

        raise NotImplementedError

    def url_for(self, path: str) -> str:
        raise NotImplementedError
