"""Test configuration and fixtures."""
import io

import pytest
from PIL import Image

from app import create_app
from extensions import db
from models import ProblemCategory, Ward
from utils.complaint_store import ComplaintStore, StoreError
from utils.image_utils import Attachment


class RecordingStore(ComplaintStore):
    """ComplaintStore that records every write and can be told to fail some of them."""

    def __init__(self, upload_root: str, fail_on=(), public_base_url: str = "") -> None:
        super().__init__(upload_root, public_base_url=public_base_url)
        self.fail_on = set(fail_on)
        self.calls: list[str] = []

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise StoreError(f"{operation} unavailable")

    def store_attachment(self, bucket, name, data):
        self._record("store_attachment")
        return super().store_attachment(bucket, name, data)

    def insert_complaint(self, record):
        self._record("insert_complaint")
        return super().insert_complaint(record)

    def update_complaint(self, complaint_id, fields):
        self._record("update_complaint")
        return super().update_complaint(complaint_id, fields)


def make_ward(number: str, name: str = "Shivajinagar") -> Ward:
    ward = Ward(
        ward_number=number,
        ward_name_en=name,
        ward_name_hi=f"{name} (हिंदी)",
        ward_name_kn=f"{name} (ಕನ್ನಡ)",
        councillor_name="R. Kumar",
        councillor_party="Independent",
        councillor_phone="+91-8000000000",
        city="Bengaluru",
    )
    db.session.add(ward)
    db.session.commit()
    return ward


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Create an application bound to a throwaway SQLite database and upload folder."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("ATTACHMENT_PUBLIC_BASE_URL", raising=False)
    monkeypatch.setenv("SQLITE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("COMPLAINT_UPLOAD_FOLDER", str(tmp_path / "uploads"))
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    application = create_app("testing")
    with application.app_context():
        yield application
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def request_ctx(app):
    """Request context so public attachment URLs can be built."""
    with app.test_request_context():
        yield


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ward_id(app) -> str:
    return make_ward("001").id


@pytest.fixture
def category_id(app) -> str:
    return ProblemCategory.query.filter_by(category_key="pothole").one().id


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), "red").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def attachment(png_bytes) -> Attachment:
    return Attachment(filename="pothole.png", content_type="image/png", data=png_bytes)


@pytest.fixture
def make_store(app):
    def factory(fail_on=(), public_base_url: str = "") -> RecordingStore:
        return RecordingStore(app.config["COMPLAINT_UPLOAD_FOLDER"], fail_on=fail_on, public_base_url=public_base_url)

    return factory


@pytest.fixture
def ward_factory(app):
    return make_ward
