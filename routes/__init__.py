"""Blueprint registration and the ward selection home page."""
from flask import Blueprint, current_app, redirect, render_template, request, session, url_for

from utils.app_state import load_state, save_state, transition
from utils.complaint_store import get_store
from utils.i18n import translate
from utils.security import sanitize_input
from .complaints import complaints_bp

main_bp = Blueprint("main", __name__)


@main_bp.route("/", methods=["GET"])
def index():
    state = transition(load_state(session), "go_home")
    store = get_store()
    selected_ward = store.get_ward(state.selected_ward_id)
    if state.selected_ward_id and selected_ward is None:
        # Ward vanished from the reference data since it was chosen.
        state = transition(state, "select_ward", None)
    save_state(session, state)
    return render_template(
        "home.html",
        wards=store.list_wards(),
        selected_ward=selected_ward,
        page_title=translate("app_name"),
    )


@main_bp.route("/ward", methods=["POST"])
def select_ward():
    form = sanitize_input(request.form)
    ward_id = (form.get("ward_id") or "").strip() or None
    if ward_id and get_store().get_ward(ward_id) is None:
        current_app.logger.warning("Unknown ward selected", extra={"ward_id": ward_id})
        ward_id = None
    state = transition(load_state(session), "select_ward", ward_id)
    save_state(session, state)
    return redirect(url_for("main.index"))


__all__ = ["main_bp", "complaints_bp"]
