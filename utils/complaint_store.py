"""Storage adapter for wards, categories, complaints, and complaint photos.

Records live in the relational database bound to Flask-SQLAlchemy; photos are
written to per-bucket folders below ``COMPLAINT_UPLOAD_FOLDER`` and exposed
through a public URL. Every operation is independent: nothing here opens a
transaction that spans more than one call.
"""
from __future__ import annotations

import os
from typing import Dict, List, Optional

from flask import current_app, url_for
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload
from werkzeug.utils import secure_filename

from extensions import db
from models import Complaint, ProblemCategory, Ward

UPDATABLE_COMPLAINT_FIELDS = frozenset({"status", "verification_status", "verification_notes"})


class StoreError(Exception):
    """Raised when a store operation cannot be completed."""


class ComplaintStore:
    def __init__(self, upload_root: str, public_base_url: str = "") -> None:
        self.upload_root = upload_root
        self.public_base_url = (public_base_url or "").rstrip("/")

    @classmethod
    def from_config(cls, config) -> "ComplaintStore":
        return cls(
            upload_root=config.get("COMPLAINT_UPLOAD_FOLDER"),
            public_base_url=config.get("ATTACHMENT_PUBLIC_BASE_URL", ""),
        )

    # Reference data

    def list_wards(self) -> List[Ward]:
        return Ward.query.order_by(Ward.ward_number).all()

    def get_ward(self, ward_id: Optional[str]) -> Optional[Ward]:
        if not ward_id:
            return None
        return db.session.get(Ward, ward_id)

    def list_categories(self) -> List[ProblemCategory]:
        return ProblemCategory.query.order_by(ProblemCategory.category_key).all()

    # Complaints

    def recent_complaints(self, ward_id: Optional[str] = None, limit: int = 20) -> List[Complaint]:
        query = Complaint.query.options(joinedload(Complaint.ward), joinedload(Complaint.category))
        if ward_id:
            query = query.filter(Complaint.ward_id == ward_id)
        return query.order_by(Complaint.created_at.desc()).limit(limit).all()

    def insert_complaint(self, record: Dict) -> Complaint:
        try:
            if db.session.get(Ward, record.get("ward_id")) is None:
                raise StoreError(f"Ward {record.get('ward_id')} does not exist")
            if db.session.get(ProblemCategory, record.get("category_id")) is None:
                raise StoreError(f"Category {record.get('category_id')} does not exist")
            complaint = Complaint(**record)
            db.session.add(complaint)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError("Complaint insert failed") from exc
        except TypeError as exc:
            raise StoreError(f"Invalid complaint record: {exc}") from exc
        return complaint

    def update_complaint(self, complaint_id: str, fields: Dict) -> None:
        unknown = set(fields) - UPDATABLE_COMPLAINT_FIELDS
        if unknown:
            raise StoreError(f"Fields not updatable: {', '.join(sorted(unknown))}")
        try:
            updated = (
                Complaint.query.filter(Complaint.id == complaint_id)
                .update(dict(fields), synchronize_session="fetch")
            )
            if not updated:
                db.session.rollback()
                raise StoreError(f"Complaint {complaint_id} not found")
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError("Complaint update failed") from exc

    # Attachments

    def _object_path(self, bucket: str, name: str) -> str:
        safe_bucket = secure_filename(bucket)
        safe_name = secure_filename(name)
        if not self.upload_root or not safe_bucket or not safe_name:
            raise StoreError("Invalid attachment location")
        return os.path.join(self.upload_root, safe_bucket, safe_name)

    def store_attachment(self, bucket: str, name: str, data: bytes) -> str:
        path = self._object_path(bucket, name)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            # "x" keeps an existing object from being overwritten.
            with open(path, "xb") as handle:
                handle.write(data)
        except OSError as exc:
            raise StoreError(f"Attachment upload failed: {exc}") from exc
        current_app.logger.info("attachment_stored", extra={"bucket": bucket, "object_name": name, "size": len(data)})
        return path

    def get_public_url(self, bucket: str, name: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{bucket}/{name}"
        return url_for("complaints.attachment", bucket=bucket, name=name, _external=True)

    def attachment_path(self, bucket: str, name: str) -> Optional[str]:
        path = self._object_path(bucket, name)
        return path if os.path.isfile(path) else None


def get_store() -> ComplaintStore:
    return current_app.extensions["complaint_store"]
