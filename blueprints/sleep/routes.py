from datetime import datetime
from typing import Any, Dict, Optional

from flask import Blueprint, current_app, jsonify, request

from services import entry_service
from services.entry_editor import EntryEditor, SessionDraft
from services.errors import (
    EntryNotFoundError,
    InvalidSessionError,
    InvalidWakeTimeError,
    StorageError,
)
from services.time_resolver import (
    TIME_FORMAT,
    SleepCategory,
    parse_date,
    parse_time_of_day,
)

sleep_bp = Blueprint("sleep", __name__)

INVALID_TIME_MESSAGE = "Please provide valid times in HH:MM format."
INVALID_DATE_MESSAGE = "Please provide a valid date in YYYY-MM-DD format."
INVALID_TYPE_MESSAGE = "Sleep type must be 'nap' or 'night'."


class PayloadError(ValueError):
    pass


def _error(message: str, status: int, **extra: Any):
    body: Dict[str, Any] = {"error": message}
    body.update(extra)
    return jsonify(body), status


@sleep_bp.errorhandler(PayloadError)
def _handle_payload_error(exc: PayloadError):
    return _error(str(exc), 400)


@sleep_bp.errorhandler(EntryNotFoundError)
def _handle_not_found(exc: EntryNotFoundError):
    return _error(str(exc), 404)


@sleep_bp.errorhandler(InvalidSessionError)
def _handle_invalid_session(exc: InvalidSessionError):
    return _error(exc.result.message or "Invalid sleep entry", 422, validation=exc.result.to_dict())


@sleep_bp.errorhandler(InvalidWakeTimeError)
def _handle_invalid_wake_time(exc: InvalidWakeTimeError):
    return _error(str(exc), 400)


@sleep_bp.errorhandler(StorageError)
def _handle_storage_error(exc: StorageError):
    return _error(str(exc), 503)


def _payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise PayloadError("Request body must be a JSON object.")
    return payload


def _normalize_time(value: Optional[str]) -> Optional[str]:
    """Canonical HH:MM, None when empty; raises PayloadError when malformed."""
    if value is None or value == "":
        return None
    parsed = parse_time_of_day(value)
    if parsed is None:
        raise PayloadError(INVALID_TIME_MESSAGE)
    return parsed.strftime(TIME_FORMAT)


def _parse_category(value: Optional[str]) -> SleepCategory:
    try:
        return SleepCategory(str(value or "").lower())
    except ValueError:
        raise PayloadError(INVALID_TYPE_MESSAGE)


def _parse_selected_date(value: Optional[str]):
    selected = parse_date(value)
    if selected is None:
        raise PayloadError(INVALID_DATE_MESSAGE)
    return selected


def _parse_now(payload: Dict[str, Any]) -> datetime:
    raw = payload.get("now")
    if not raw:
        # Local server time, so "today" matches the wall-clock day.
        return datetime.now()
    try:
        return datetime.fromisoformat(raw)
    except (TypeError, ValueError):
        raise PayloadError("Please provide 'now' as an ISO 8601 date-time.")


def _draft_from_payload(payload: Dict[str, Any]) -> SessionDraft:
    start = _normalize_time(payload.get("start"))
    if start is None:
        raise PayloadError(INVALID_TIME_MESSAGE)
    return SessionDraft(
        category=_parse_category(payload.get("type")),
        selected_date=_parse_selected_date(payload.get("date")),
        start=start,
        end=_normalize_time(payload.get("end")),
    )


def _editor_response(editor: EntryEditor) -> Dict[str, Any]:
    resolved = editor.draft.resolve()
    return {
        "validation": editor.validation.to_dict(),
        "resolved": {
            "start_time": resolved.start.isoformat(timespec="minutes"),
            "end_time": resolved.end.isoformat(timespec="minutes") if resolved.end else None,
        },
        "can_save": editor.can_save,
        "refresh_seconds": current_app.config["LABEL_REFRESH_SECONDS"],
    }


@sleep_bp.route("/preview", methods=["POST"])
def preview():
    """Validation and display labels for a draft, without saving anything."""
    payload = _payload()
    draft = _draft_from_payload(payload)
    now = _parse_now(payload)
    editor = EntryEditor(draft, now, require_end=bool(payload.get("require_end")))

    # A draft without an end reads as in progress unless the caller says otherwise.
    labels = draft.labels(now, is_ongoing=bool(payload.get("ongoing", draft.end is None)))
    body = _editor_response(editor)
    body["labels"] = labels.to_dict()
    body["caption"] = labels.combined
    return jsonify(body)


@sleep_bp.route("/entries", methods=["GET"])
def list_entries():
    day = _parse_selected_date(request.args.get("date"))
    entries = entry_service.get_entries_for_date(day)
    return jsonify({"date": day.isoformat(), "entries": [e.to_dict() for e in entries]})


@sleep_bp.route("/entries/active", methods=["GET"])
def active_entry():
    active = entry_service.get_active_entry()
    last_completed = entry_service.get_last_completed_entry()
    return jsonify(
        {
            "active": active.to_dict() if active else None,
            "last_completed": last_completed.to_dict() if last_completed else None,
        }
    )


@sleep_bp.route("/entries", methods=["POST"])
def create_entry():
    payload = _payload()
    draft = _draft_from_payload(payload)
    editor = EntryEditor(draft, _parse_now(payload), require_end=bool(payload.get("require_end")))
    notes = payload.get("notes")

    entry = editor.save(lambda session: entry_service.create_entry(session, notes=notes))
    if entry is None:
        return _error(editor.last_error or "Could not save the sleep entry.", 503)

    return jsonify({"entry": entry.to_dict(), "validation": editor.validation.to_dict()}), 201


@sleep_bp.route("/entries/<int:entry_id>", methods=["PUT"])
def update_entry(entry_id: int):
    payload = _payload()
    entry = entry_service.get_entry_or_raise(entry_id)
    if payload.get("date"):
        selected_date = _parse_selected_date(payload.get("date"))
    else:
        selected_date = entry.selected_date
    editor = EntryEditor.open_existing(entry, selected_date, _parse_now(payload))

    if "start" in payload:
        start = _normalize_time(payload.get("start"))
        if start is None:
            raise PayloadError(INVALID_TIME_MESSAGE)
        editor.set_start(start)
    if "end" in payload:
        editor.set_end(_normalize_time(payload.get("end")))

    # Absent "stop" lets an ongoing entry end at the clock time when its times change.
    stop = bool(payload["stop"]) if "stop" in payload else None
    notes = payload.get("notes")
    if not editor.has_changes and not stop:
        if notes is None:
            return jsonify({"entry": entry.to_dict(), "changed": False})
        entry = entry_service.update_notes(entry_id, notes)
        return jsonify({"entry": entry.to_dict(), "changed": True})

    saved = editor.save(
        lambda session: entry_service.update_entry(entry_id, session, notes=notes),
        stop=stop,
    )
    if saved is None:
        return _error(editor.last_error or "Could not update the sleep entry.", 503)

    return jsonify({"entry": saved.to_dict(), "changed": True, "validation": editor.validation.to_dict()})


@sleep_bp.route("/entries/<int:entry_id>", methods=["DELETE"])
def delete_entry(entry_id: int):
    entry_service.delete_entry(entry_id)
    return jsonify({"deleted": entry_id})


@sleep_bp.route("/entries/<int:entry_id>/wake", methods=["POST"])
def wake_up(entry_id: int):
    """Confirm a wake-up time for the ongoing entry."""
    payload = _payload()
    wake_time = payload.get("time")
    if not wake_time:
        raise PayloadError(INVALID_TIME_MESSAGE)
    entry = entry_service.end_sleep(entry_id, wake_time, _parse_now(payload))
    return jsonify({"entry": entry.to_dict()})
