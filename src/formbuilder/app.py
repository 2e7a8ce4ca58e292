from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from urllib.parse import urlencode

import markupsafe
from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from formbuilder.config import BASE_DIR, Settings
from formbuilder.errors import register_error_handlers
from formbuilder.routes.api import router as api_router
from formbuilder.routes.views import router as views_router
from formbuilder.services.forms import FormService
from formbuilder.services.submissions import SubmissionService
from formbuilder.storage import init_storage
from formbuilder.utils import parse_dt


def _tojson_attr(value: Any) -> markupsafe.Markup:
    """Escape a JSON document so it can sit inside an HTML attribute."""
    return markupsafe.Markup(markupsafe.escape(json.dumps(value, ensure_ascii=False)))


def field_input_type(field: dict[str, Any]) -> str:
    if field.get("type") == "checkbox":
        return "checkbox"
    return "text"


def format_dt(value: Any) -> str:
    if isinstance(value, (datetime, str)) and value:
        return parse_dt(value).astimezone().strftime("%Y-%m-%d %H:%M")
    return ""


def build_query(base: dict[str, Any], **overrides: Any) -> str:
    params = {k: v for k, v in base.items() if v not in (None, "")}
    for key, value in overrides.items():
        if value is None:
            params.pop(key, None)
        else:
            params[key] = str(value)
    return urlencode(params, doseq=True)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    storage = init_storage(settings)
    form_service = FormService(storage, settings)
    submission_service = SubmissionService(storage, settings, form_service)

    app = FastAPI(
        title="Form Builder",
        openapi_tags=[
            {"name": "views", "description": "Form builder pages (HTML)"},
            {"name": "api/forms", "description": "REST API: forms"},
            {"name": "api/submissions", "description": "REST API: submissions"},
            {"name": "system", "description": "System"},
        ],
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.form_service = form_service
    app.state.submission_service = submission_service

    templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
    app.state.templates = templates

    templates.env.filters["tojson_attr"] = _tojson_attr
    templates.env.globals["field_input_type"] = field_input_type
    templates.env.globals["format_dt"] = format_dt
    templates.env.globals["build_query"] = build_query

    register_error_handlers(app)

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api_router)
    app.include_router(views_router)

    return app
