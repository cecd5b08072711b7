"""HTTP tests for ward selection, complaint filing, and listing."""
import io
import os

import pytest

from extensions import db
from models import Complaint
from utils.verification import TOO_SHORT_NOTE


def _complaint_form(category_id, png_bytes, **overrides):
    data = {
        "category_id": category_id,
        "citizen_name": "Asha",
        "citizen_phone": "+91-9999999999",
        "citizen_email": "",
        "location_details": "Main Rd",
        "problem_description": "Large pothole near bus stop causing accidents",
        "image": (io.BytesIO(png_bytes), "pothole.png"),
    }
    data.update(overrides)
    return data


@pytest.fixture
def selected_client(client, ward_id):
    client.post("/ward", data={"ward_id": ward_id})
    return client


class TestHome:
    def test_lists_wards(self, client, ward_id):
        response = client.get("/")

        assert response.status_code == 200
        assert b"001 - Shivajinagar" in response.data

    def test_selecting_ward_shows_councillor(self, client, ward_id):
        response = client.post("/ward", data={"ward_id": ward_id}, follow_redirects=True)

        assert response.status_code == 200
        assert b"R. Kumar" in response.data
        assert b"/complaints/new" in response.data

    def test_unknown_ward_is_ignored(self, client, ward_id):
        response = client.post("/ward", data={"ward_id": "bogus"}, follow_redirects=True)

        assert b"R. Kumar" not in response.data

    def test_security_headers_are_set(self, client):
        response = client.get("/")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "img-src 'self' data:" in response.headers["Content-Security-Policy"]

    def test_language_choice_is_remembered(self, client, ward_id):
        response = client.get("/?lang=hi")

        assert "अपना वार्ड चुनें".encode() in response.data
        assert any(cookie.startswith("ward_locale=hi") for cookie in response.headers.getlist("Set-Cookie"))
        assert "अपना वार्ड चुनें".encode() in client.get("/").data

    def test_unsupported_language_keeps_saved_choice(self, client, ward_id):
        client.get("/?lang=hi")

        response = client.get("/?lang=xx")

        assert "अपना वार्ड चुनें".encode() in response.data

    def test_favicon_is_not_routed(self, client):
        assert client.get("/favicon.ico").status_code == 404


class TestComplaintForm:
    def test_requires_selected_ward(self, client):
        response = client.get("/complaints/new")

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/")

    def test_renders_categories(self, selected_client):
        response = selected_client.get("/complaints/new")

        assert response.status_code == 200
        assert b"Potholes / Road Damage" in response.data

    def test_categories_are_localized(self, selected_client):
        response = selected_client.get("/complaints/new?lang=kn")

        assert "ಗುಂಡಿಗಳು / ರಸ್ತೆ ಹಾನಿ".encode() in response.data


class TestComplaintSubmission:
    def test_successful_submission_hands_off_after_delay(self, app, selected_client, category_id, png_bytes):
        response = selected_client.post(
            "/complaints/new",
            data=_complaint_form(category_id, png_bytes),
            content_type="multipart/form-data",
        )

        assert response.status_code == 201
        assert response.headers["Refresh"] == "2; url=/complaints/?r=1"
        assert b"Complaint submitted successfully" in response.data
        complaint = Complaint.query.one()
        assert complaint.verification_status == "legitimate"
        assert complaint.image_url.startswith("http://localhost/complaints/attachments/complaint-images/")

    def test_stored_photo_is_served(self, selected_client, category_id, png_bytes):
        selected_client.post(
            "/complaints/new",
            data=_complaint_form(category_id, png_bytes),
            content_type="multipart/form-data",
        )
        path = Complaint.query.one().image_url.replace("http://localhost", "")

        response = selected_client.get(path)

        assert response.status_code == 200
        assert response.mimetype == "image/png"
        assert response.data == png_bytes

    def test_short_description_is_flagged(self, selected_client, category_id, png_bytes):
        selected_client.post(
            "/complaints/new",
            data=_complaint_form(category_id, png_bytes, problem_description="bad"),
            content_type="multipart/form-data",
        )

        complaint = Complaint.query.one()
        assert complaint.verification_status == "suspicious"
        assert complaint.verification_notes == TOO_SHORT_NOTE

    def test_long_description_is_accepted(self, selected_client, category_id, png_bytes):
        description = "Large pothole near the bus stop is causing accidents every evening. " * 35

        response = selected_client.post(
            "/complaints/new",
            data=_complaint_form(category_id, png_bytes, problem_description=description),
            content_type="multipart/form-data",
        )

        assert response.status_code == 201
        complaint = Complaint.query.one()
        assert complaint.problem_description == description
        assert complaint.verification_status == "legitimate"

    def test_overlong_name_gets_field_message(self, selected_client, category_id, png_bytes):
        response = selected_client.post(
            "/complaints/new",
            data=_complaint_form(category_id, png_bytes, citizen_name="A" * 151),
            content_type="multipart/form-data",
        )

        assert response.status_code == 400
        assert b"Your name is too long." in response.data
        assert b"Something went wrong" not in response.data
        assert Complaint.query.count() == 0

    def test_oversized_request_gets_generic_error(self, app, selected_client, category_id):
        app.config["MAX_CONTENT_LENGTH"] = 1024

        response = selected_client.post(
            "/complaints/new",
            data=_complaint_form(category_id, b"\x89PNG" + b"0" * 4096),
            content_type="multipart/form-data",
        )

        assert response.status_code == 413
        assert b"Something went wrong" in response.data
        assert Complaint.query.count() == 0

    def test_missing_field_shows_required_message(self, selected_client, category_id, png_bytes):
        response = selected_client.post(
            "/complaints/new",
            data=_complaint_form(category_id, png_bytes, citizen_name=""),
            content_type="multipart/form-data",
        )

        assert response.status_code == 400
        assert b"Please fill in all required fields" in response.data
        assert Complaint.query.count() == 0

    def test_missing_photo_shows_required_message(self, selected_client, category_id, png_bytes):
        data = _complaint_form(category_id, png_bytes)
        data.pop("image")

        response = selected_client.post("/complaints/new", data=data, content_type="multipart/form-data")

        assert response.status_code == 400
        assert b"Please fill in all required fields" in response.data

    def test_non_image_upload_gets_generic_error(self, selected_client, category_id, png_bytes):
        data = _complaint_form(category_id, png_bytes, image=(io.BytesIO(b"not an image"), "notes.png"))

        response = selected_client.post("/complaints/new", data=data, content_type="multipart/form-data")

        assert response.status_code == 400
        assert b"Something went wrong" in response.data
        assert Complaint.query.count() == 0

    def test_upload_failure_still_submits(self, app, selected_client, category_id, png_bytes):
        # A file where the bucket folder should be makes every upload fail.
        bucket_path = os.path.join(app.config["COMPLAINT_UPLOAD_FOLDER"], "complaint-images")
        with open(bucket_path, "w") as handle:
            handle.write("blocked")

        response = selected_client.post(
            "/complaints/new",
            data=_complaint_form(category_id, png_bytes),
            content_type="multipart/form-data",
        )

        assert response.status_code == 201
        assert Complaint.query.one().image_url.startswith("data:image/png;base64,")


class TestComplaintList:
    def test_shows_complaints_of_selected_ward(self, selected_client, category_id, png_bytes, ward_factory):
        selected_client.post(
            "/complaints/new",
            data=_complaint_form(category_id, png_bytes, location_details="Near KR Market"),
            content_type="multipart/form-data",
        )
        other = ward_factory("002", "Jayanagar")
        selected_client.post("/ward", data={"ward_id": other.id})

        response = selected_client.get("/complaints/")

        assert response.status_code == 200
        assert b"Near KR Market" not in response.data
        assert b"No complaints found." in response.data

    def test_lists_localized_badges(self, selected_client, category_id, png_bytes):
        selected_client.post(
            "/complaints/new",
            data=_complaint_form(category_id, png_bytes),
            content_type="multipart/form-data",
        )

        response = selected_client.get("/complaints/?lang=hi")

        assert "वैध".encode() in response.data
        assert "लंबित".encode() in response.data
        assert b"Main Rd" in response.data

    def test_lists_all_wards_without_selection(self, client, ward_id, category_id):
        db.session.add(
            Complaint(
                ward_id=ward_id,
                category_id=category_id,
                citizen_name="Ravi",
                citizen_phone="+91-9000000000",
                location_details="5th Cross",
                problem_description="Streetlight broken for two weeks",
                image_url="data:image/png;base64,AAAA",
            )
        )
        db.session.commit()

        response = client.get("/complaints/")

        assert b"5th Cross" in response.data
        assert b"All wards" in response.data


class TestAttachments:
    def test_unknown_attachment_is_404(self, client):
        assert client.get("/complaints/attachments/complaint-images/missing.png").status_code == 404
