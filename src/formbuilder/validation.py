"""Payload validation for forms and submissions.

Validators return ``(value, errors)``. When ``errors`` is empty ``value`` holds
the normalized payload; otherwise ``value`` is ``None`` and ``errors`` lists
``{"path": ..., "message": ...}`` entries in discovery order.
"""

from __future__ import annotations

from typing import Any, Iterable

from jsonschema import Draft7Validator, ValidationError

from formbuilder.schema import FORM_SCHEMA, SUBMISSION_SCHEMA

FORM_VALIDATOR = Draft7Validator(FORM_SCHEMA)
SUBMISSION_VALIDATOR = Draft7Validator(SUBMISSION_SCHEMA)

def format_path(parts: Iterable[Any]) -> str:
    return ".".join(str(part) for part in parts)


def _describe_type(expected: Any) -> str:
    if isinstance(expected, list):
        return " or ".join(str(item) for item in expected)
    return str(expected)


def _schema_errors(validator: Draft7Validator, payload: Any) -> list[dict[str, str]]:
    errors: list[dict[str, str]] = []
    seen: set[tuple[str, str]] = set()

    def add(path: list[Any], message: str) -> None:
        entry = (format_path(path), message)
        if entry not in seen:
            seen.add(entry)
            errors.append({"path": entry[0], "message": entry[1]})

    ordered: list[ValidationError] = sorted(
        validator.iter_errors(payload), key=lambda err: [str(p) for p in err.path]
    )
    for error in ordered:
        path = list(error.path)
        name = format_path(path) or "value"
        kind = error.validator
        if kind == "required":
            present = error.instance if isinstance(error.instance, dict) else {}
            for prop in error.validator_value:
                if prop not in present:
                    add(path + [prop], f'"{format_path(path + [prop])}" is required')
        elif kind == "additionalProperties":
            allowed = set(error.schema.get("properties", {}))
            for key in error.instance:
                if key not in allowed:
                    add(path + [key], f'"{format_path(path + [key])}" is not allowed')
        elif kind == "type":
            expected = _describe_type(error.validator_value)
            article = "an" if expected[:1] in "aeiou" else "a"
            add(path, f'"{name}" must be {article} {expected}')
        elif kind in {"pattern", "minLength"}:
            add(path, f'"{name}" is not allowed to be empty')
        elif kind == "minItems":
            add(path, f'"{name}" must contain at least {error.validator_value} item')
        elif kind == "enum":
            choices = ", ".join(str(item) for item in error.validator_value)
            add(path, f'"{name}" must be one of [{choices}]')
        else:
            add(path, error.message)
    return errors


def _label_key(label: str) -> str:
    return label.strip().lower()


def duplicate_label_errors(fields: Any) -> list[dict[str, str]]:
    """Flag every field whose trimmed, lower-cased label repeats an earlier one."""
    if not isinstance(fields, list):
        return []
    errors: list[dict[str, str]] = []
    seen: set[str] = set()
    for index, field in enumerate(fields):
        if not isinstance(field, dict) or not isinstance(field.get("label"), str):
            continue
        normalized = _label_key(field["label"])
        if not normalized:
            continue
        if normalized in seen:
            errors.append(
                {
                    "path": format_path(["fields", index, "label"]),
                    "message": f'Duplicate field label "{field["label"]}" found.',
                }
            )
        else:
            seen.add(normalized)
    return errors


def validate_form_payload(payload: Any) -> tuple[dict[str, Any] | None, list[dict[str, str]]]:
    errors = _schema_errors(FORM_VALIDATOR, payload)
    if isinstance(payload, dict):
        errors.extend(duplicate_label_errors(payload.get("fields")))
    if errors:
        return None, errors
    value = {
        "title": payload["title"].strip(),
        "fields": [
            {
                "label": field["label"].strip(),
                "type": field["type"],
                "required": bool(field.get("required", False)),
            }
            for field in payload["fields"]
        ],
    }
    return value, []


def validate_submission_payload(
    payload: Any,
) -> tuple[dict[str, Any] | None, list[dict[str, str]]]:
    errors = _schema_errors(SUBMISSION_VALIDATOR, payload)
    if errors:
        return None, errors
    value = {
        "first_name": payload["firstName"].strip(),
        "last_name": payload["lastName"].strip(),
        "responses": dict(payload["responses"]),
    }
    return value, []


def validate_responses(
    fields: list[dict[str, Any]], responses: dict[str, Any]
) -> tuple[dict[str, Any] | None, list[dict[str, str]]]:
    """Check each response against the declared type of the field it answers.

    Keys are matched to labels the same way duplicate labels are detected
    (trimmed, case-insensitive); the stored mapping is keyed by the field's
    own label.
    """
    by_label = {_label_key(field["label"]): field for field in fields}
    errors: list[dict[str, str]] = []
    normalized: dict[str, Any] = {}
    answered: set[str] = set()

    for raw_key, value in responses.items():
        key = raw_key.strip()
        path = format_path(["responses", raw_key])
        field = by_label.get(_label_key(raw_key))
        if field is None:
            errors.append({"path": path, "message": f'"{key}" is not a field of this form'})
            continue
        label = field["label"]
        if label in answered:
            errors.append({"path": path, "message": f'"{label}" is answered more than once'})
            continue
        answered.add(label)
        if field["type"] == "checkbox" and not isinstance(value, bool):
            errors.append({"path": path, "message": f'"{key}" must be a boolean'})
            continue
        if field["type"] == "text" and not isinstance(value, str):
            errors.append({"path": path, "message": f'"{key}" must be a string'})
            continue
        normalized[label] = value

    for field in fields:
        label = field["label"]
        if not field.get("required") or (label in answered and label not in normalized):
            continue
        value = normalized.get(label)
        path = format_path(["responses", label])
        if field["type"] == "checkbox":
            if value is not True:
                errors.append({"path": path, "message": f'"{label}" must be checked'})
        elif not (isinstance(value, str) and value.strip()):
            errors.append({"path": path, "message": f'"{label}" is required'})

    if errors:
        return None, errors
    return normalized, []
