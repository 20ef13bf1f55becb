from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_enum, require_min_length
from ..core.constants import MAX_POLICY_FILE_BYTES, POLICY_FILE_PREFIX
from ..core.enums import PolicyCategory, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..storage.base import FileStorage, StoredFile, UploadedFile
from .model import Policy
from .repository import PolicyRepository

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

DEFAULT_POLICIES = (
    (
        "Remote Work Policy & Guidelines",
        "Comprehensive guidelines for remote work arrangements, including expectations, communication "
        "protocols, and best practices for maintaining productivity while working remotely.",
        PolicyCategory.REMOTE_WORK,
    ),
    (
        "Leave Policy",
        "Complete leave management policy covering sick leave, casual leave, annual leave, and other "
        "time-off arrangements with detailed procedures and requirements.",
        PolicyCategory.LEAVE,
    ),
    (
        "Laptop Policy",
        "Equipment and IT policy for company-issued laptops, including usage guidelines, security "
        "requirements, and maintenance procedures.",
        PolicyCategory.EQUIPMENT,
    ),
    (
        "Employment Policy",
        "Core employment policies covering terms of employment, workplace conduct, and general "
        "employment guidelines for all employees.",
        PolicyCategory.EMPLOYMENT,
    ),
    (
        "Extra Work Day Allowance",
        "Policy for compensation and allowances when working additional days beyond regular schedule, "
        "including overtime and weekend work.",
        PolicyCategory.COMPENSATION,
    ),
    (
        "Compensatory Leave Policy",
        "Guidelines for compensatory leave arrangements, including when and how compensatory time off "
        "is granted and utilized.",
        PolicyCategory.LEAVE,
    ),
)


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("You don't have permission to do this")


class PolicyService:
    def __init__(self, policies: PolicyRepository, storage: FileStorage):
        self._policies = policies
        self._storage = storage

    def get_policy(self, policy_id: int, *, current_role: Role = Role.USER) -> Policy:
        policy = self._policies.get_by_id(int(policy_id))
        if not policy or (not policy.is_active and current_role != Role.ADMIN):
            raise NotFoundError("Policy not found")
        return policy

    def list_policies(
        self,
        *,
        current_role: Role,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Policy]:
        """Every policy for administrators; active ones for everybody else."""
        policies = list(self._policies.list_all())
        if current_role != Role.ADMIN:
            policies = [p for p in policies if p.is_active]
        if category and category != "all":
            wanted = require_enum(category, PolicyCategory, "category")
            policies = [p for p in policies if p.category == wanted]
        term = (search or "").strip().lower()
        if term:
            policies = [p for p in policies if term in p.title.lower() or term in p.description.lower()]
        return policies

    @staticmethod
    def _clean_fields(data: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        if not partial or "title" in data:
            fields["title"] = require_min_length((data.get("title") or "").strip(), "Title", 3)
        if not partial or "description" in data:
            fields["description"] = require_min_length((data.get("description") or "").strip(), "Description", 10)
        if not partial or "category" in data:
            fields["category"] = require_enum(data.get("category"), PolicyCategory, "category")
        if "is_active" in data:
            fields["is_active"] = bool(data.get("is_active"))
        return fields

    def _store_pdf(self, upload: UploadedFile, now: Optional[datetime]) -> StoredFile:
        if (upload.content_type or "").split(";")[0].strip() != PDF_CONTENT_TYPE:
            raise ValidationError("Only PDF files are allowed")
        data = upload.stream.read(MAX_POLICY_FILE_BYTES + 1)
        if len(data) > MAX_POLICY_FILE_BYTES:
            raise ValidationError("File size must be less than 10MB")
        if not data.startswith(b"%PDF"):
            raise ValidationError("Only PDF files are allowed")

        timestamp = int((now or now_local()).timestamp() * 1000)
        path = f"{POLICY_FILE_PREFIX}/{timestamp}-{upload.filename or 'policy.pdf'}"
        return self._storage.save(path, io.BytesIO(data), PDF_CONTENT_TYPE)

    @staticmethod
    def _file_fields(stored: StoredFile, upload: UploadedFile) -> dict[str, Any]:
        return {
            "file_name": upload.filename or stored.name,
            "file_size": stored.size,
            "file_url": stored.url,
            "storage_path": stored.path,
        }

    def add_policy(
        self,
        *,
        current_role: Role,
        data: Mapping[str, Any],
        upload: Optional[UploadedFile],
        now: Optional[datetime] = None,
    ) -> Policy:
        _require_admin(current_role)
        fields = self._clean_fields(data, partial=False)
        if upload is None:
            raise ValidationError("Please select a PDF file")

        stored = self._store_pdf(upload, now)
        fields.update(self._file_fields(stored, upload))
        policy_id = self._policies.create(Policy(policy_id=0, **fields))
        logger.info("Policy %s added: %s", policy_id, fields["title"])
        return self.get_policy(policy_id, current_role=current_role)

    def update_policy(
        self,
        *,
        current_role: Role,
        policy_id: int,
        data: Mapping[str, Any],
        upload: Optional[UploadedFile] = None,
        now: Optional[datetime] = None,
    ) -> Policy:
        _require_admin(current_role)
        policy = self.get_policy(policy_id, current_role=current_role)
        fields = self._clean_fields(data, partial=True)

        stored = None
        if upload is not None:
            stored = self._store_pdf(upload, now)
            fields.update(self._file_fields(stored, upload))

        if fields:
            try:
                self._policies.update_fields(policy.policy_id, fields)
            except Exception:
                if stored is not None and stored.path != policy.storage_path:
                    self._storage.delete(stored.path)
                raise
        if stored is not None and policy.storage_path and policy.storage_path != stored.path:
            self._storage.delete(policy.storage_path)
        return self.get_policy(policy.policy_id, current_role=current_role)

    def delete_policy(self, *, current_role: Role, policy_id: int) -> None:
        _require_admin(current_role)
        policy = self.get_policy(policy_id, current_role=current_role)
        self._policies.delete_by_id(policy.policy_id)
        if policy.storage_path:
            self._storage.delete(policy.storage_path)
        logger.info("Policy %s deleted", policy.policy_id)

    def populate_default_policies(self, *, current_role: Role) -> int:
        """Seed the standard policy catalogue when no policy exists yet; returns how many were added."""
        _require_admin(current_role)
        if self._policies.count() > 0:
            return 0

        for title, description, category in DEFAULT_POLICIES:
            file_name = f"{title}.pdf"
            path = f"{POLICY_FILE_PREFIX}/{file_name}"
            self._policies.create(
                Policy(
                    policy_id=0,
                    title=title,
                    description=description,
                    category=category,
                    file_name=file_name,
                    file_url=self._storage.url_for(path),
                    storage_path=path,
                )
            )
        logger.info("Populated %s default policies", len(DEFAULT_POLICIES))
        return len(DEFAULT_POLICIES)
