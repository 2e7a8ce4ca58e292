from __future__ import annotations

import logging
from typing import Any

from formbuilder.config import Settings
from formbuilder.errors import NotFound, ValidationFailed, guard_storage
from formbuilder.pagination import page_envelope, page_offset
from formbuilder.protocols import Storage
from formbuilder.schema import submission_output, submission_summary_output
from formbuilder.services.forms import FormService
from formbuilder.utils import new_ulid, now_utc
from formbuilder.validation import validate_responses, validate_submission_payload

logger = logging.getLogger(__name__)

SUBMISSION_NOT_FOUND = "Submission not found"


class SubmissionService:
    def __init__(self, storage: Storage, settings: Settings, forms: FormService) -> None:
        self._storage = storage
        self._settings = settings
        self._forms = forms

    def create(self, form_id: str, payload: Any) -> dict[str, Any]:
        value, errors = validate_submission_payload(payload)
        if errors:
            raise ValidationFailed(errors)

        responses = value["responses"]
        if self._settings.enforce_form_reference:
            form = self._forms.get_record(form_id)
            responses, errors = validate_responses(form["fields"], responses)
            if errors:
                raise ValidationFailed(errors)

        now = now_utc()
        submission = {
            "id": new_ulid(),
            "form_id": form_id,
            "first_name": value["first_name"],
            "last_name": value["last_name"],
            "responses": responses,
            "created_at": now,
            "updated_at": now,
        }
        with guard_storage("create submission"):
            self._storage.submissions.create_submission(submission)
            stored = self._storage.submissions.get_submission(submission["id"])
        logger.info("Stored submission %s for form %s", submission["id"], form_id)
        return submission_output(stored or submission)

    def list_by_form(self, form_id: str, page: int, limit: int) -> dict[str, Any]:
        with guard_storage("list submissions"):
            total = self._storage.submissions.count_submissions(form_id)
            offset = page_offset(page, limit)
            items: list[dict[str, Any]] = []
            if offset < total:
                items = self._storage.submissions.list_submissions(
                    offset, limit, form_id=form_id
                )
        return page_envelope(page, limit, total, [submission_output(item) for item in items])

    def list_all(self, page: int, limit: int) -> dict[str, Any]:
        with guard_storage("list submissions"):
            total = self._storage.submissions.count_submissions()
            offset = page_offset(page, limit)
            items: list[dict[str, Any]] = []
            if offset < total:
                items = self._storage.submissions.list_submissions(offset, limit)
            forms = self._storage.forms.get_forms(item["form_id"] for item in items)
        data = [submission_summary_output(item, forms.get(item["form_id"])) for item in items]
        return page_envelope(page, limit, total, data)

    def get_record(self, submission_id: str) -> dict[str, Any]:
        with guard_storage("load submission"):
            submission = self._storage.submissions.get_submission(submission_id)
        if not submission:
            logger.info("Submission %s not found", submission_id)
            raise NotFound(SUBMISSION_NOT_FOUND)
        return submission

    def get(self, submission_id: str) -> dict[str, Any]:
        return submission_output(self.get_record(submission_id))

    def delete(self, submission_id: str) -> dict[str, str]:
        with guard_storage("delete submission"):
            removed = self._storage.submissions.delete_submission(submission_id)
        if not removed:
            logger.info("Submission %s not found", submission_id)
            raise NotFound(SUBMISSION_NOT_FOUND)
        logger.info("Deleted submission %s", submission_id)
        return {"message": "Submission deleted successfully"}
