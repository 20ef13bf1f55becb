from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PolicyCategory
from ..core.labels import label_for


@dataclass(frozen=True)
class Policy:
    """A company policy document (PDF) with its catalogue metadata."""

    policy_id: int
    title: str
    description: str
    category: PolicyCategory
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_url: Optional[str] = None
    storage_path: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.policy_id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "category_label": label_for(self.category),
            "file_name": self.file_name,
            "file_size": self.file_size,
            "file_url": self.file_url,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
