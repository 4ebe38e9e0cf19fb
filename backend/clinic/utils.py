"""Request helpers shared by the namespaces."""
import datetime
import logging
from flask import request
from flask_restx import abort
from . import db
from .models import Patient

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


def require_text(data, *names):
    """Abort with 400 unless every named field is a non-blank string."""
    for name in names:
        value = data.get(name)
        if not isinstance(value, str) or not value.strip():
            abort(400, f"Field '{name}' is required.")


def optional_text(data, name):
    """Value of an optional text field; abort with 400 unless it is a string or null."""
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        abort(400, f"Field '{name}' must be a string.")
    return value


def json_payload():
    """The request body as a dict, or an empty dict when there is none."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, "Request body must be a JSON object.")
    return data


def existing_patient_id(patient_id):
    """Abort with 400 unless ``patient_id`` names a stored patient."""
    if not isinstance(patient_id, str) or not patient_id.strip():
        abort(400, "Field 'patient_id' is required.")
    if db.session.get(Patient, patient_id) is None:
        abort(400, f"Patient '{patient_id}' does not exist.")
    return patient_id


def blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def parse_datetime(value, field):
    """Parse an ISO-8601 datetime into naive UTC.

    Offsets (including a trailing ``Z``) are converted to UTC; naive input is
    taken to already be UTC.
    """
    if isinstance(value, datetime.datetime):
        parsed = value
    else:
        if not isinstance(value, str) or not value.strip():
            abort(400, f"Field '{field}' is required.")
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.datetime.fromisoformat(text)
        except ValueError:
            abort(400, f"Field '{field}' must be an ISO-8601 date/time.")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value, field):
    """Parse ``YYYY-MM-DD`` (or a full ISO-8601 timestamp) into a date.

    Blank or null means no date.
    """
    value = blank_to_none(value)
    if value is None:
        return None
    if not isinstance(value, str):
        abort(400, f"Field '{field}' must be a date (YYYY-MM-DD).")
    text = value.strip()
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.datetime.fromisoformat(text).date()
    except ValueError:
        abort(400, f"Field '{field}' must be a date (YYYY-MM-DD).")


def isoformat(value):
    return value.isoformat() if value is not None else None


def delete_confirmed():
    """Deletes only go through with an explicit ``?confirm=true``."""
    return request.args.get("confirm", "").strip().lower() in TRUTHY


def require_delete_confirmation(what):
    if not delete_confirmed():
        abort(400, f"Deleting this {what} must be confirmed with ?confirm=true.")


def write_failed(message, exc):
    """Roll back the session and build the 500 response for a failed write.

    Must be called from inside the ``except`` block so the traceback is logged.
    """
    db.session.rollback()
    logger.exception(message)
    return {"message": message, "error": str(exc)}, 500


def read_failed(message, exc):
    logger.exception(message)
    return {"message": message, "error": str(exc)}, 500


def page_args():
    page = request.args.get("page", 1, type=int) or 1
    per_page = request.args.get("per_page", 0, type=int) or 0
    return max(page, 1), max(per_page, 0)


def paginate(items, page, per_page):
    """Slice an already-fetched list; ``per_page=0`` returns everything."""
    if not per_page:
        return items
    start = (page - 1) * per_page
    return items[start:start + per_page]
