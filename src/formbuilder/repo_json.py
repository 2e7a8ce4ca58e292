from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from filelock import FileLock
from tinydb import Query, TinyDB

from formbuilder.utils import now_utc, parse_dt, to_iso


def _newest_first(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(items, key=lambda x: (x["created_at"], x["id"]), reverse=True)


class JSONRepoBase:
    def __init__(self, path: Path, lock: FileLock) -> None:
        self._path = path
        self._lock = lock

    @contextmanager
    def _db(self) -> Iterable[TinyDB]:
        with self._lock:
            db = TinyDB(self._path)
            try:
                yield db
            finally:
                db.close()

    @staticmethod
    def _stamp(record: dict[str, Any]) -> dict[str, Any]:
        for key in ("created_at", "updated_at"):
            value = record.get(key)
            if isinstance(value, datetime):
                record[key] = to_iso(value)
        return record


class JSONFormRepo(JSONRepoBase):
    def count_forms(self, include_deleted: bool = False) -> int:
        with self._db() as db:
            table = db.table("forms")
            if include_deleted:
                return len(table)
            return table.count(Query().is_deleted == False)  # noqa: E712

    def list_forms(
        self, offset: int, limit: int, include_deleted: bool = False
    ) -> list[dict[str, Any]]:
        with self._db() as db:
            table = db.table("forms")
            if include_deleted:
                items = table.all()
            else:
                items = table.search(Query().is_deleted == False)  # noqa: E712
        forms = _newest_first([self._from_record(item) for item in items])
        return forms[offset : offset + limit]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            item = db.table("forms").get(Query().id == form_id)
        return self._from_record(item) if item else None

    def get_forms(self, form_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        wanted = set(form_ids)
        if not wanted:
            return {}
        with self._db() as db:
            items = db.table("forms").search(Query().id.one_of(list(wanted)))
        return {item["id"]: self._from_record(item) for item in items}

    def create_form(self, form: dict[str, Any]) -> None:
        record = self._to_record(form)
        with self._db() as db:
            db.table("forms").insert(record)

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        with self._db() as db:
            table = db.table("forms")
            item = table.get(Query().id == form_id)
            if not item:
                raise KeyError(form_id)
            item.update(self._to_record(updates, partial=True))
            table.update(item, Query().id == form_id)
        return self._from_record(item)

    def delete_form(self, form_id: str) -> bool:
        with self._db() as db:
            removed = db.table("forms").remove(Query().id == form_id)
        return bool(removed)

    @classmethod
    def _to_record(cls, form: dict[str, Any], partial: bool = False) -> dict[str, Any]:
        record = cls._stamp(dict(form))
        if "fields" in record:
            record["fields"] = [dict(field) for field in record["fields"]]
        if not partial:
            record.setdefault("is_deleted", False)
            record.setdefault("created_at", to_iso(now_utc()))
            record.setdefault("updated_at", record["created_at"])
        return record

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "title": record.get("title", ""),
            "fields": [dict(field) for field in record.get("fields", [])],
            "is_deleted": bool(record.get("is_deleted", False)),
            "created_at": parse_dt(record.get("created_at")),
            "updated_at": parse_dt(record.get("updated_at")),
        }


class JSONSubmissionRepo(JSONRepoBase):
    def count_submissions(self, form_id: str | None = None) -> int:
        with self._db() as db:
            table = db.table("submissions")
            if form_id is None:
                return len(table)
            return table.count(Query().form_id == form_id)

    def list_submissions(
        self, offset: int, limit: int, form_id: str | None = None
    ) -> list[dict[str, Any]]:
        with self._db() as db:
            table = db.table("submissions")
            if form_id is None:
                items = table.all()
            else:
                items = table.search(Query().form_id == form_id)
        submissions = _newest_first([self._from_record(item) for item in items])
        return submissions[offset : offset + limit]

    def get_submission(self, submission_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            item = db.table("submissions").get(Query().id == submission_id)
        return self._from_record(item) if item else None

    def create_submission(self, submission: dict[str, Any]) -> None:
        record = self._to_record(submission)
        with self._db() as db:
            db.table("submissions").insert(record)

    def delete_submission(self, submission_id: str) -> bool:
        with self._db() as db:
            removed = db.table("submissions").remove(Query().id == submission_id)
        return bool(removed)

    @classmethod
    def _to_record(cls, submission: dict[str, Any]) -> dict[str, Any]:
        created_at = submission.get("created_at") or now_utc()
        return cls._stamp(
            {
                "id": submission["id"],
                "form_id": submission["form_id"],
                "first_name": submission["first_name"],
                "last_name": submission["last_name"],
                "responses": dict(submission["responses"]),
                "created_at": created_at,
                "updated_at": submission.get("updated_at") or created_at,
            }
        )

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "form_id": record["form_id"],
            "first_name": record.get("first_name", ""),
            "last_name": record.get("last_name", ""),
            "responses": dict(record.get("responses") or {}),
            "created_at": parse_dt(record.get("created_at")),
            "updated_at": parse_dt(record.get("updated_at")),
        }


class JSONStorage:
    def __init__(self, path: Path) -> None:
        self._lock = FileLock(f"{path}.lock")
        self.forms = JSONFormRepo(path, self._lock)
        self.submissions = JSONSubmissionRepo(path, self._lock)
