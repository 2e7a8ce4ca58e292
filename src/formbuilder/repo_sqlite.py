from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from formbuilder.models import Base, FormModel, SubmissionModel
from formbuilder.utils import dumps_json, loads_json, now_utc, parse_dt


class SQLiteFormRepo:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    def count_forms(self, include_deleted: bool = False) -> int:
        stmt = select(func.count()).select_from(FormModel)
        if not include_deleted:
            stmt = stmt.where(FormModel.is_deleted.is_(False))
        with self._Session() as session:
            return int(session.scalar(stmt) or 0)

    def list_forms(
        self, offset: int, limit: int, include_deleted: bool = False
    ) -> list[dict[str, Any]]:
        with self._Session() as session:
            query = session.query(FormModel)
            if not include_deleted:
                query = query.filter(FormModel.is_deleted.is_(False))
            rows = (
                query.order_by(FormModel.created_at.desc(), FormModel.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [self._to_dict(row) for row in rows]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.get(FormModel, form_id)
            return self._to_dict(row) if row else None

    def get_forms(self, form_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        wanted = set(form_ids)
        if not wanted:
            return {}
        with self._Session() as session:
            rows = session.query(FormModel).filter(FormModel.id.in_(wanted)).all()
            return {row.id: self._to_dict(row) for row in rows}

    def create_form(self, form: dict[str, Any]) -> None:
        now = now_utc()
        with self._Session() as session:
            row = FormModel(
                id=form["id"],
                title=form["title"],
                fields_json=dumps_json(form["fields"]),
                is_deleted=bool(form.get("is_deleted", False)),
                created_at=form.get("created_at") or now,
                updated_at=form.get("updated_at") or now,
            )
            session.add(row)
            session.commit()

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        with self._Session() as session:
            row = session.get(FormModel, form_id)
            if not row:
                raise KeyError(form_id)
            for key, value in updates.items():
                if key == "fields":
                    row.fields_json = dumps_json(value)
                else:
                    setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return self._to_dict(row)

    def delete_form(self, form_id: str) -> bool:
        with self._Session() as session:
            row = session.get(FormModel, form_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    @staticmethod
    def _to_dict(row: FormModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "title": row.title,
            "fields": loads_json(row.fields_json) or [],
            "is_deleted": bool(row.is_deleted),
            "created_at": parse_dt(row.created_at),
            "updated_at": parse_dt(row.updated_at),
        }


class SQLiteSubmissionRepo:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    def count_submissions(self, form_id: str | None = None) -> int:
        stmt = select(func.count()).select_from(SubmissionModel)
        if form_id is not None:
            stmt = stmt.where(SubmissionModel.form_id == form_id)
        with self._Session() as session:
            return int(session.scalar(stmt) or 0)

    def list_submissions(
        self, offset: int, limit: int, form_id: str | None = None
    ) -> list[dict[str, Any]]:
        with self._Session() as session:
            query = session.query(SubmissionModel)
            if form_id is not None:
                query = query.filter(SubmissionModel.form_id == form_id)
            rows = (
                query.order_by(
                    SubmissionModel.created_at.desc(), SubmissionModel.id.desc()
                )
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [self._to_dict(row) for row in rows]

    def get_submission(self, submission_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.get(SubmissionModel, submission_id)
            return self._to_dict(row) if row else None

    def create_submission(self, submission: dict[str, Any]) -> None:
        created_at = submission.get("created_at") or now_utc()
        with self._Session() as session:
            row = SubmissionModel(
                id=submission["id"],
                form_id=submission["form_id"],
                first_name=submission["first_name"],
                last_name=submission["last_name"],
                responses_json=dumps_json(submission["responses"]),
                created_at=created_at,
                updated_at=submission.get("updated_at") or created_at,
            )
            session.add(row)
            session.commit()

    def delete_submission(self, submission_id: str) -> bool:
        with self._Session() as session:
            row = session.get(SubmissionModel, submission_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    @staticmethod
    def _to_dict(row: SubmissionModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "form_id": row.form_id,
            "first_name": row.first_name,
            "last_name": row.last_name,
            "responses": loads_json(row.responses_json) or {},
            "created_at": parse_dt(row.created_at),
            "updated_at": parse_dt(row.updated_at),
        }


class SQLiteStorage:
    def __init__(self, db_path: Path) -> None:
        self._engine = create_engine(f"sqlite:///{db_path}", future=True)
        self._Session = sessionmaker(self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)
        self.forms = SQLiteFormRepo(self._Session)
        self.submissions = SQLiteSubmissionRepo(self._Session)

    def dispose(self) -> None:
        self._engine.dispose()
