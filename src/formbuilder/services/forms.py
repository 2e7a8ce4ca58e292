from __future__ import annotations

import logging
from typing import Any

from formbuilder.config import Settings
from formbuilder.errors import NotFound, ValidationFailed, guard_storage
from formbuilder.pagination import page_envelope, page_offset
from formbuilder.protocols import Storage
from formbuilder.schema import form_output
from formbuilder.utils import new_ulid, now_utc
from formbuilder.validation import validate_form_payload

logger = logging.getLogger(__name__)

FORM_NOT_FOUND = "Form not found"


class FormService:
    """Create, list, read, replace and delete forms.

    Soft-deleted forms behave as absent on every read path when the
    configured delete mode is ``soft``.
    """

    def __init__(self, storage: Storage, settings: Settings) -> None:
        self._storage = storage
        self._settings = settings

    def create(self, payload: Any) -> dict[str, Any]:
        value, errors = validate_form_payload(payload)
        if errors:
            raise ValidationFailed(errors)
        now = now_utc()
        form = {
            "id": new_ulid(),
            "title": value["title"],
            "fields": value["fields"],
            "is_deleted": False,
            "created_at": now,
            "updated_at": now,
        }
        with guard_storage("create form"):
            self._storage.forms.create_form(form)
            stored = self._storage.forms.get_form(form["id"])
        logger.info("Created form %s (%d fields)", form["id"], len(form["fields"]))
        return form_output(stored or form)

    def list(self, page: int, limit: int) -> dict[str, Any]:
        with guard_storage("list forms"):
            total = self._storage.forms.count_forms()
            offset = page_offset(page, limit)
            forms = self._storage.forms.list_forms(offset, limit) if offset < total else []
        return page_envelope(page, limit, total, [form_output(form) for form in forms])

    def get_record(self, form_id: str) -> dict[str, Any]:
        """Return the stored form, raising NotFound for missing or deleted ids."""
        with guard_storage("load form"):
            form = self._storage.forms.get_form(form_id)
        if not form or form.get("is_deleted"):
            logger.info("Form %s not found", form_id)
            raise NotFound(FORM_NOT_FOUND)
        return form

    def get(self, form_id: str) -> dict[str, Any]:
        return form_output(self.get_record(form_id))

    def update(self, form_id: str, payload: Any) -> dict[str, Any]:
        value, errors = validate_form_payload(payload)
        if errors:
            raise ValidationFailed(errors)
        self.get_record(form_id)
        with guard_storage("update form"):
            try:
                updated = self._storage.forms.update_form(
                    form_id,
                    {
                        "title": value["title"],
                        "fields": value["fields"],
                        "updated_at": now_utc(),
                    },
                )
            except KeyError:
                raise NotFound(FORM_NOT_FOUND)
        logger.info("Updated form %s", form_id)
        return form_output(updated)

    def delete(self, form_id: str) -> dict[str, str]:
        self.get_record(form_id)
        with guard_storage("delete form"):
            if self._settings.soft_delete:
                try:
                    self._storage.forms.update_form(
                        form_id, {"is_deleted": True, "updated_at": now_utc()}
                    )
                except KeyError:
                    raise NotFound(FORM_NOT_FOUND)
            elif not self._storage.forms.delete_form(form_id):
                raise NotFound(FORM_NOT_FOUND)
        logger.info("Deleted form %s (%s)", form_id, self._settings.delete_mode)
        return {"message": "Form deleted successfully"}
