"""Core data models for wards, problem categories, and citizen complaints."""
import uuid
from datetime import datetime

from extensions import db


def generate_uuid() -> str:
	return str(uuid.uuid4())


SUPPORTED_LOCALES: tuple[str, ...] = (
	"en",
	"hi",
	"kn",
)

COMPLAINT_STATUSES: tuple[str, ...] = (
	"pending",
	"verified",
	"in_progress",
	"resolved",
	"rejected",
)

VERIFICATION_STATUSES: tuple[str, ...] = (
	"pending",
	"legitimate",
	"suspicious",
	"spam",
)

DEFAULT_PROBLEM_CATEGORIES: tuple[tuple[str, str, str, str], ...] = (
	("drainage", "Drainage / Sewage", "नाली / सीवेज", "ಚರಂಡಿ / ಒಳಚರಂಡಿ"),
	("garbage", "Garbage Collection", "कचरा संग्रहण", "ಕಸ ಸಂಗ್ರಹಣೆ"),
	("pothole", "Potholes / Road Damage", "गड्ढे / सड़क क्षति", "ಗುಂಡಿಗಳು / ರಸ್ತೆ ಹಾನಿ"),
	("streetlight", "Streetlight Not Working", "स्ट्रीटलाइट खराब", "ಬೀದಿ ದೀಪ ಕೆಲಸ ಮಾಡುತ್ತಿಲ್ಲ"),
	("water", "Water Supply", "जल आपूर्ति", "ನೀರು ಸರಬರಾಜು"),
	("other", "Other", "अन्य", "ಇತರೆ"),
)


def _localized(record, prefix: str, lang: str | None) -> str:
	locale = (lang or "en").lower()
	value = getattr(record, f"{prefix}_{locale}", None) if locale in SUPPORTED_LOCALES else None
	return value or getattr(record, f"{prefix}_en")


class Ward(db.Model):
	__tablename__ = "wards"

	id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
	ward_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
	ward_name_en = db.Column(db.String(150), nullable=False)
	ward_name_hi = db.Column(db.String(150), nullable=False)
	ward_name_kn = db.Column(db.String(150), nullable=False)
	councillor_name = db.Column(db.String(150), nullable=False)
	councillor_party = db.Column(db.String(100), nullable=False)
	councillor_phone = db.Column(db.String(30), nullable=False)
	city = db.Column(db.String(100), nullable=False, index=True)
	created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

	complaints = db.relationship("Complaint", back_populates="ward", lazy="dynamic")

	def display_name(self, lang: str | None = None) -> str:
		return _localized(self, "ward_name", lang)


class ProblemCategory(db.Model):
	__tablename__ = "problem_categories"

	id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
	category_key = db.Column(db.String(50), unique=True, nullable=False, index=True)
	name_en = db.Column(db.String(150), nullable=False)
	name_hi = db.Column(db.String(150), nullable=False)
	name_kn = db.Column(db.String(150), nullable=False)
	created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

	complaints = db.relationship("Complaint", back_populates="category", lazy="dynamic")

	def display_name(self, lang: str | None = None) -> str:
		return _localized(self, "name", lang)

	@staticmethod
	def ensure_defaults() -> int:
		"""Insert the built-in categories that are missing; returns how many were added."""
		existing = {key for (key,) in db.session.query(ProblemCategory.category_key).all()}
		added = 0
		for key, name_en, name_hi, name_kn in DEFAULT_PROBLEM_CATEGORIES:
			if key in existing:
				continue
			db.session.add(ProblemCategory(category_key=key, name_en=name_en, name_hi=name_hi, name_kn=name_kn))
			added += 1
		if added:
			db.session.commit()
		return added


class Complaint(db.Model):
	__tablename__ = "complaints"

	id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
	ward_id = db.Column(db.String(36), db.ForeignKey("wards.id"), nullable=False, index=True)
	category_id = db.Column(db.String(36), db.ForeignKey("problem_categories.id"), nullable=False, index=True)
	citizen_name = db.Column(db.String(150), nullable=False)
	citizen_phone = db.Column(db.String(30), nullable=False)
	citizen_email = db.Column(db.String(255), nullable=True)
	location_details = db.Column(db.String(500), nullable=False)
	problem_description = db.Column(db.Text, nullable=False)
	# Either a public URL or an inline data: URL when attachment storage failed.
	image_url = db.Column(db.Text, nullable=False)
	status = db.Column(db.String(20), nullable=False, default="pending", index=True)
	verification_status = db.Column(db.String(20), nullable=False, default="pending", index=True)
	verification_notes = db.Column(db.Text, nullable=True)
	created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
	updated_at = db.Column(
		db.DateTime,
		default=datetime.utcnow,
		onupdate=datetime.utcnow,
		nullable=False,
	)

	__table_args__ = (
		db.CheckConstraint(
			"status IN ('pending','verified','in_progress','resolved','rejected')",
			name="ck_complaint_status_valid",
		),
		db.CheckConstraint(
			"verification_status IN ('pending','legitimate','suspicious','spam')",
			name="ck_complaint_verification_status_valid",
		),
		db.Index("ix_complaints_ward_created", "ward_id", "created_at"),
	)

	ward = db.relationship("Ward", back_populates="complaints")
	category = db.relationship("ProblemCategory", back_populates="complaints")
	updates = db.relationship(
		"ComplaintUpdate",
		back_populates="complaint",
		order_by="ComplaintUpdate.created_at",
		cascade="all, delete-orphan",
	)

	@property
	def has_inline_image(self) -> bool:
		return (self.image_url or "").startswith("data:")


class ComplaintUpdate(db.Model):
	__tablename__ = "complaint_updates"

	id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
	complaint_id = db.Column(db.String(36), db.ForeignKey("complaints.id"), nullable=False, index=True)
	update_text = db.Column(db.Text, nullable=False)
	updated_by = db.Column(db.String(150), nullable=False)
	created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

	complaint = db.relationship("Complaint", back_populates="updates")
