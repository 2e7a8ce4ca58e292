from __future__ import annotations

from typing import Any, Iterable, Protocol


class FormRepository(Protocol):
    def count_forms(self, include_deleted: bool = False) -> int: ...

    def list_forms(
        self, offset: int, limit: int, include_deleted: bool = False
    ) -> list[dict[str, Any]]: ...

    def get_form(self, form_id: str) -> dict[str, Any] | None: ...

    def get_forms(self, form_ids: Iterable[str]) -> dict[str, dict[str, Any]]: ...

    def create_form(self, form: dict[str, Any]) -> None: ...

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]: ...

    def delete_form(self, form_id: str) -> bool: ...


class SubmissionRepository(Protocol):
    def count_submissions(self, form_id: str | None = None) -> int: ...

    def list_submissions(
        self, offset: int, limit: int, form_id: str | None = None
    ) -> list[dict[str, Any]]: ...

    def get_submission(self, submission_id: str) -> dict[str, Any] | None: ...

    def create_submission(self, submission: dict[str, Any]) -> None: ...

    def delete_submission(self, submission_id: str) -> bool: ...


class Storage(Protocol):
    forms: FormRepository
    submissions: SubmissionRepository
