"""Navigation state for the citizen portal, kept as an immutable value."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Optional

VIEWS: tuple[str, ...] = ("home", "report", "view")
ACTIONS: tuple[str, ...] = ("select_ward", "go_home", "open_report", "open_list", "complaint_submitted")

_SESSION_KEY = "portal_state"


@dataclass(frozen=True)
class AppState:
    view: str = "home"
    selected_ward_id: Optional[str] = None
    refresh_count: int = 0

    def to_session(self) -> dict:
        return {"view": self.view, "selected_ward_id": self.selected_ward_id, "refresh_count": self.refresh_count}

    @classmethod
    def from_session(cls, data: Optional[Mapping]) -> "AppState":
        if not data:
            return cls()
        view = data.get("view") if data.get("view") in VIEWS else "home"
        try:
            refresh_count = max(0, int(data.get("refresh_count") or 0))
        except (TypeError, ValueError):
            refresh_count = 0
        return cls(view=view, selected_ward_id=data.get("selected_ward_id") or None, refresh_count=refresh_count)


def transition(state: AppState, action: str, ward_id: Optional[str] = None) -> AppState:
    """Return the state that follows ``action``; the input state is never modified."""
    if action == "select_ward":
        return replace(state, view="home", selected_ward_id=ward_id or None)
    if action == "go_home":
        return replace(state, view="home")
    if action == "open_report":
        # Reporting needs a ward to file against.
        return replace(state, view="report" if state.selected_ward_id else "home")
    if action == "open_list":
        return replace(state, view="view")
    if action == "complaint_submitted":
        return replace(state, refresh_count=state.refresh_count + 1)
    raise ValueError(f"Unknown navigation action: {action}")


def load_state(session) -> AppState:
    return AppState.from_session(session.get(_SESSION_KEY))


def save_state(session, state: AppState) -> None:
    session[_SESSION_KEY] = state.to_session()
