"""Complaint filing, recent-complaint listing, and photo serving blueprint."""
import os

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    g,
    make_response,
    redirect,
    render_template,
    send_file,
    session,
    url_for,
)
from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField
from wtforms import SelectField, StringField, SubmitField, TextAreaField
from wtforms.validators import Length, Optional

from utils.app_state import load_state, save_state, transition
from utils.complaint_store import StoreError, get_store
from utils.i18n import translate
from utils.image_utils import ALLOWED_IMAGE_EXTENSIONS, read_attachment
from utils.submission import ComplaintInput, SubmissionError, ValidationError, submit_complaint

complaints_bp = Blueprint("complaints", __name__, url_prefix="/complaints")


class ComplaintForm(FlaskForm):
    # Presence checks run in the submission workflow so every missing field maps to one message.
    # Length caps follow the column widths of the complaints table.
    category_id = SelectField("Problem type", choices=[], validate_choice=False)
    citizen_name = StringField("Your name", validators=[Length(max=150)])
    citizen_phone = StringField("Phone number", validators=[Length(max=30)])
    citizen_email = StringField("Email", validators=[Optional(), Length(max=255)])
    location_details = StringField("Location details", validators=[Length(max=500)])
    problem_description = TextAreaField("Problem description")
    image = FileField(
        "Upload photo",
        validators=[FileAllowed(list(ALLOWED_IMAGE_EXTENSIONS), "Images only")],
    )
    submit = SubmitField("Submit complaint")

    def to_input(self) -> ComplaintInput:
        return ComplaintInput(
            category_id=self.category_id.data or "",
            citizen_name=self.citizen_name.data or "",
            citizen_phone=self.citizen_phone.data or "",
            citizen_email=self.citizen_email.data or None,
            location_details=self.location_details.data or "",
            problem_description=self.problem_description.data or "",
        )


# Translation keys of the labels used in per-field error messages.
FIELD_LABEL_KEYS = {
    "citizen_name": "your_name",
    "citizen_phone": "phone_number",
    "citizen_email": "email",
    "location_details": "location",
}


def _flash_form_errors(form: ComplaintForm) -> None:
    labelled = [name for name in form.errors if name in FIELD_LABEL_KEYS]
    for name in labelled:
        flash(translate("field_too_long").format(field=translate(FIELD_LABEL_KEYS[name])), "danger")
    if len(labelled) < len(form.errors):
        flash(translate("error_message"), "danger")


def _category_choices(lang: str) -> list[tuple[str, str]]:
    categories = get_store().list_categories()
    return [("", translate("problem_type", lang))] + [(c.id, c.display_name(lang)) for c in categories]


def _render_form(form: ComplaintForm, ward, status: int = 200):
    return (
        render_template(
            "complaints/complaint_form.html",
            form=form,
            ward=ward,
            page_title=translate("report_problem"),
        ),
        status,
    )


@complaints_bp.route("/new", methods=["GET", "POST"])
def new_complaint():
    state = transition(load_state(session), "open_report")
    save_state(session, state)
    if state.view != "report":
        return redirect(url_for("main.index"))

    store = get_store()
    ward = store.get_ward(state.selected_ward_id)
    if ward is None:
        save_state(session, transition(state, "select_ward", None))
        return redirect(url_for("main.index"))

    form = ComplaintForm()
    form.category_id.choices = _category_choices(getattr(g, "locale", None) or "en")
    if not form.is_submitted():
        return _render_form(form, ward)

    if not form.validate_on_submit():
        current_app.logger.warning("Complaint form rejected", extra={"form_errors": form.errors})
        _flash_form_errors(form)
        return _render_form(form, ward, 400)

    try:
        max_bytes = int(current_app.config.get("MAX_IMAGE_UPLOAD_BYTES", 8 * 1024 * 1024))
        attachment = read_attachment(form.image.data, max_bytes=max_bytes)
    except ValueError as exc:
        current_app.logger.warning("Complaint photo rejected", extra={"error": str(exc)})
        flash(translate("error_message"), "danger")
        return _render_form(form, ward, 400)

    try:
        result = submit_complaint(
            store,
            ward.id,
            form.to_input(),
            attachment,
            bucket=current_app.config.get("ATTACHMENT_BUCKET", "complaint-images"),
        )
    except ValidationError as exc:
        current_app.logger.info("Complaint submission incomplete", extra={"error": str(exc)})
        flash(translate("required_field"), "danger")
        return _render_form(form, ward, 400)
    except SubmissionError:
        current_app.logger.exception("Complaint submission failed")
        flash(translate("error_message"), "danger")
        return _render_form(form, ward, 500)

    state = transition(state, "complaint_submitted")
    save_state(session, state)

    delay = int(current_app.config.get("SUCCESS_REDIRECT_DELAY_SECONDS", 2))
    list_url = url_for("complaints.list_complaints", r=state.refresh_count)
    response = make_response(
        render_template(
            "complaints/complaint_submitted.html",
            result=result,
            ward=ward,
            list_url=list_url,
            delay=delay,
            page_title=translate("report_problem"),
        ),
        201,
    )
    # Success notice stays up for `delay` seconds before the list loads.
    response.headers["Refresh"] = f"{delay}; url={list_url}"
    return response


@complaints_bp.route("/", methods=["GET"])
def list_complaints():
    state = transition(load_state(session), "open_list")
    save_state(session, state)

    store = get_store()
    limit = int(current_app.config.get("COMPLAINTS_LIST_LIMIT", 20))
    complaints = store.recent_complaints(state.selected_ward_id, limit=limit)
    current_app.logger.info(
        "complaints_list",
        extra={"count": len(complaints), "ward_id": state.selected_ward_id, "refresh": state.refresh_count},
    )
    return render_template(
        "complaints/complaint_list.html",
        complaints=complaints,
        ward=store.get_ward(state.selected_ward_id),
        page_title=translate("recent_complaints"),
    )


@complaints_bp.route("/attachments/<string:bucket>/<string:name>", methods=["GET"])
def attachment(bucket, name):
    try:
        path = get_store().attachment_path(bucket, name)
    except StoreError:
        abort(404)
    if not path:
        abort(404)
    return send_file(path, mimetype=_guess_mime_from_path(path), as_attachment=False, download_name=os.path.basename(path))


def _guess_mime_from_path(path: str) -> str:
    _, ext = os.path.splitext(path.lower())
    mapping = {
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".png": "image/png",
        ".webp": "image/webp",
    }
    return mapping.get(ext, "application/octet-stream")


@complaints_bp.app_template_filter("status_badge")
def status_badge_class(status: str | None) -> str:
    mapping = {
        "pending": "secondary",
        "verified": "warning",
        "in_progress": "primary",
        "resolved": "success",
        "rejected": "danger",
    }
    return mapping.get((status or "").lower(), "secondary")


@complaints_bp.app_template_filter("verification_badge")
def verification_badge_class(verification: str | None) -> str:
    mapping = {
        "legitimate": "success",
        "suspicious": "warning",
        "spam": "danger",
    }
    return mapping.get((verification or "").lower(), "secondary")
