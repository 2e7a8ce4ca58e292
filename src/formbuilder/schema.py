from __future__ import annotations

from typing import Any

from formbuilder.config import FIELD_TYPES
from formbuilder.utils import now_utc, to_iso

NON_EMPTY_STRING: dict[str, Any] = {"type": "string", "pattern": r"\S"}

FIELD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "_id": {"type": "string"},
        "label": NON_EMPTY_STRING,
        "type": {"type": "string", "enum": list(FIELD_TYPES)},
        "required": {"type": "boolean"},
    },
    "required": ["label", "type"],
    "additionalProperties": False,
}

FORM_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "_id": {"type": "string"},
        "id": {"type": "string"},
        "title": NON_EMPTY_STRING,
        "fields": {"type": "array", "minItems": 1, "items": FIELD_SCHEMA},
    },
    "required": ["title", "fields"],
    "additionalProperties": False,
}

SUBMISSION_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "_id": {"type": "string"},
        "formId": {"type": "string"},
        "firstName": NON_EMPTY_STRING,
        "lastName": NON_EMPTY_STRING,
        "responses": {
            "type": "object",
            "additionalProperties": {"type": ["string", "boolean"]},
        },
    },
    "required": ["firstName", "lastName", "responses"],
    "additionalProperties": False,
}


def form_output(form: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": form["id"],
        "title": form.get("title", ""),
        "fields": [
            {
                "label": field["label"],
                "type": field["type"],
                "required": bool(field.get("required", False)),
            }
            for field in form.get("fields", [])
        ],
        "isDeleted": bool(form.get("is_deleted", False)),
        "createdAt": to_iso(form.get("created_at") or now_utc()),
        "updatedAt": to_iso(form.get("updated_at") or now_utc()),
    }


def submission_output(submission: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": submission["id"],
        "formId": submission["form_id"],
        "firstName": submission.get("first_name", ""),
        "lastName": submission.get("last_name", ""),
        "responses": dict(submission.get("responses") or {}),
        "createdAt": to_iso(submission.get("created_at") or now_utc()),
        "updatedAt": to_iso(submission.get("updated_at") or now_utc()),
    }


def submission_summary_output(
    submission: dict[str, Any], form: dict[str, Any] | None
) -> dict[str, Any]:
    """Lightweight row for the all-submissions listing, joined with its form."""
    return {
        "id": submission["id"],
        "formId": submission["form_id"],
        "formTitle": form["title"] if form else None,
        "formDeleted": form is None or bool(form.get("is_deleted")),
        "firstName": submission.get("first_name", ""),
        "lastName": submission.get("last_name", ""),
        "createdAt": to_iso(submission.get("created_at") or now_utc()),
    }
