# app/services/v1/edit_flow.py
"""
State machine behind the schedule edit screen.

    EDITING -> PREVIEW_PENDING -> CONFLICTS_SHOWN -> COMMITTING -> DONE
                              \\-> COMMITTING (no conflicts)      \\-> ERROR

Cancellations only ever reach the commit through ``confirm()``.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from app.db.schemas import ConflictReport


class EditState(str, Enum):
    EDITING = "editing"
    PREVIEW_PENDING = "preview_pending"
    CONFLICTS_SHOWN = "conflicts_shown"
    COMMITTING = "committing"
    DONE = "done"
    ERROR = "error"


class InvalidTransitionError(RuntimeError):
    def __init__(self, state: EditState, action: str):
        super().__init__(f"Cannot {action} while {state.value}")
        self.state = state
        self.action = action


class ScheduleEditFlow:
    def __init__(self, form: Optional[Dict[str, Any]] = None):
        self.state = EditState.EDITING
        self.form: Dict[str, Any] = dict(form or {})
        self.report: Optional[ConflictReport] = None
        self.error: Optional[str] = None

    def _require(self, action: str, *allowed: EditState) -> None:
        if self.state not in allowed:
            raise InvalidTransitionError(self.state, action)

    def edit(self, **changes: Any) -> None:
        self._require("edit", EditState.EDITING)
        self.form.update(changes)

    def request_preview(self) -> None:
        self._require("request a preview", EditState.EDITING)
        self.report = None
        self.error = None
        self.state = EditState.PREVIEW_PENDING

    def preview_received(self, report: ConflictReport) -> List[str]:
        """
        Store the report. Without conflicts the flow goes straight to
        committing and returns an empty cancel list.
        """
        self._require("receive a preview", EditState.PREVIEW_PENDING)
        self.report = report
        if report.has_conflicts:
            self.state = EditState.CONFLICTS_SHOWN
        else:
            self.state = EditState.COMMITTING
        return []

    def confirm(self) -> List[str]:
        """Operator accepted the listed cancellations."""
        self._require("confirm", EditState.CONFLICTS_SHOWN)
        if self.report is None:
            raise InvalidTransitionError(self.state, "confirm without a report")
        self.state = EditState.COMMITTING
        return self.report.appointment_ids

    def dismiss(self) -> None:
        self._require("dismiss", EditState.CONFLICTS_SHOWN)
        self.report = None
        self.state = EditState.EDITING

    def commit_succeeded(self) -> None:
        self._require("finish", EditState.COMMITTING)
        self.state = EditState.DONE

    def conflicts_changed(self) -> None:
        """Live state moved since the preview; ask for a fresh one."""
        self._require("restart the preview", EditState.COMMITTING)
        self.report = None
        self.state = EditState.PREVIEW_PENDING

    def commit_failed(self, message: str) -> None:
        self._require("fail", EditState.COMMITTING, EditState.PREVIEW_PENDING)
        self.error = message
        self.state = EditState.ERROR

    def retry(self) -> None:
        """Back to the form; what the operator typed is kept."""
        self._require("retry", EditState.ERROR)
        self.error = None
        self.state = EditState.EDITING

    @property
    def fingerprint(self) -> Optional[str]:
        return self.report.fingerprint if self.report is not None else None


__all__ = ["EditState", "InvalidTransitionError", "ScheduleEditFlow"]
