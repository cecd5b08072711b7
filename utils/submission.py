"""Complaint submission workflow: validate, store the photo, create, classify."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from flask import current_app

from utils.complaint_store import ComplaintStore, StoreError
from utils.image_utils import Attachment, attachment_object_name
from utils.verification import VerificationOutcome, classify

DEFAULT_ATTACHMENT_BUCKET = "complaint-images"


class SubmissionError(Exception):
    """Base class for complaint submission failures."""


class ValidationError(SubmissionError):
    """A required field or the photo is missing; nothing was written."""


class PersistenceError(SubmissionError):
    """A store write failed during submission."""


class AttachmentPersistenceError(PersistenceError):
    """The photo could not be stored; recovered with the inline preview data."""


class RecordPersistenceError(PersistenceError):
    """The complaint record could not be created; the submission failed."""


class ClassificationUpdateError(SubmissionError):
    """The verification outcome could not be written back; the complaint stays unclassified."""


@dataclass(frozen=True)
class ComplaintInput:
    category_id: str
    citizen_name: str
    citizen_phone: str
    location_details: str
    problem_description: str
    citizen_email: Optional[str] = None

    def missing_fields(self) -> list[str]:
        required = ("category_id", "citizen_name", "citizen_phone", "location_details", "problem_description")
        return [name for name in required if not getattr(self, name)]


@dataclass(frozen=True)
class SubmissionResult:
    complaint_id: str
    image_url: str
    used_inline_fallback: bool
    # None when the outcome could not be written back.
    verification: Optional[VerificationOutcome]


def validate_submission(form: ComplaintInput, attachment: Optional[Attachment]) -> None:
    missing = form.missing_fields()
    if not attachment:
        missing.append("attachment")
    if missing:
        raise ValidationError(f"Submission incomplete, missing: {', '.join(missing)}")


def _upload_photo(store: ComplaintStore, bucket: str, object_name: str, data: bytes) -> None:
    try:
        store.store_attachment(bucket, object_name, data)
    except StoreError as exc:
        raise AttachmentPersistenceError(str(exc)) from exc


def _write_verification(store: ComplaintStore, complaint_id: str, outcome: VerificationOutcome) -> None:
    try:
        store.update_complaint(complaint_id, outcome.as_fields())
    except StoreError as exc:
        raise ClassificationUpdateError(str(exc)) from exc


def _resolve_image_url(store: ComplaintStore, bucket: str, attachment: Attachment) -> tuple[str, bool]:
    object_name = attachment_object_name(attachment.filename, int(time.time() * 1000))
    try:
        _upload_photo(store, bucket, object_name, attachment.data)
    except AttachmentPersistenceError as exc:
        # Degraded mode: keep the submission, persist the inline preview instead of a link.
        current_app.logger.warning(
            "Attachment upload failed, using inline image data",
            extra={"bucket": bucket, "object_name": object_name, "error": str(exc)},
        )
        return attachment.preview_data_url, True
    return store.get_public_url(bucket, object_name), False


def apply_verification(store: ComplaintStore, complaint_id: str, description: str) -> Optional[VerificationOutcome]:
    """Classify a description and write the outcome back; failures are logged, not raised."""
    outcome = classify(description)
    try:
        _write_verification(store, complaint_id, outcome)
    except ClassificationUpdateError as exc:
        current_app.logger.warning(
            "Verification update failed, complaint left unclassified",
            extra={"complaint_id": complaint_id, "error": str(exc)},
        )
        return None
    return outcome


def submit_complaint(
    store: ComplaintStore,
    ward_id: Optional[str],
    form: ComplaintInput,
    attachment: Optional[Attachment],
    bucket: str = DEFAULT_ATTACHMENT_BUCKET,
) -> SubmissionResult:
    """Run one complaint submission end to end.

    Raises ValidationError before any store call when a required field or the
    photo is missing, and RecordPersistenceError when the complaint row cannot
    be created. A failed photo upload falls back to the inline data URL; a
    failed verification write-back leaves the complaint pending. A photo that
    was stored before a failed insert is not removed.
    """
    validate_submission(form, attachment)

    image_url, used_fallback = _resolve_image_url(store, bucket, attachment)

    record = {
        "ward_id": ward_id,
        "category_id": form.category_id,
        "citizen_name": form.citizen_name,
        "citizen_phone": form.citizen_phone,
        "citizen_email": form.citizen_email or None,
        "location_details": form.location_details,
        "problem_description": form.problem_description,
        "image_url": image_url,
    }
    try:
        complaint = store.insert_complaint(record)
    except StoreError as exc:
        current_app.logger.error(
            "Complaint insert failed",
            extra={"ward_id": ward_id, "category_id": form.category_id, "error": str(exc)},
        )
        raise RecordPersistenceError("Unable to save complaint") from exc

    complaint_id = str(complaint.id)
    verification = apply_verification(store, complaint_id, form.problem_description)

    current_app.logger.info(
        "complaint_submitted",
        extra={
            "complaint_id": complaint_id,
            "ward_id": ward_id,
            "inline_image": used_fallback,
            "verification_status": verification.status if verification else None,
        },
    )
    return SubmissionResult(
        complaint_id=complaint_id,
        image_url=image_url,
        used_inline_fallback=used_fallback,
        verification=verification,
    )
