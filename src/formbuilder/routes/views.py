from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from formbuilder.config import FIELD_TYPES
from formbuilder.errors import FormBuilderError, NotFound
from formbuilder.pagination import parse_page_params

router = APIRouter()

NOTICES = {
    "created": "Form created successfully!",
    "updated": "Form updated successfully!",
    "deleted": "Form deleted.",
    "submitted": "Thank you! Your response has been recorded.",
    "submission_deleted": "Submission deleted.",
}


def parse_bool(value: Any) -> bool:
    return str(value).lower() in {"1", "true", "on", "yes"}


def error_messages(exc: FormBuilderError) -> list[str]:
    if not exc.details:
        return [exc.message]
    return [
        f"{item['path']}: {item['message']}" if item.get("path") else item["message"]
        for item in exc.details
    ]


def render(
    request: Request, template: str, context: dict[str, Any], status_code: int = 200
) -> HTMLResponse:
    templates = request.app.state.templates
    notice = NOTICES.get(request.query_params.get("notice", ""))
    return templates.TemplateResponse(
        request,
        template,
        {"notice": notice, "errors": [], **context},
        status_code=status_code,
    )


def render_error(request: Request, exc: FormBuilderError) -> HTMLResponse:
    return render(request, "error.html", {"message": exc.message}, status_code=exc.status_code)


def parse_builder_form(form_data: Any) -> tuple[str, list[dict[str, Any]]]:
    """Rebuild title and ordered field rows from the builder's indexed inputs."""
    title = str(form_data.get("title", ""))
    indices: set[int] = set()
    for key in form_data:
        if key.startswith("fields-"):
            parts = key.split("-", 2)
            if len(parts) == 3 and parts[1].isdigit():
                indices.add(int(parts[1]))
    fields: list[dict[str, Any]] = []
    for idx in sorted(indices):
        field_type = str(form_data.get(f"fields-{idx}-type", "text"))
        fields.append(
            {
                "label": str(form_data.get(f"fields-{idx}-label", "")),
                "type": field_type if field_type in FIELD_TYPES else "text",
                "required": parse_bool(form_data.get(f"fields-{idx}-required")),
            }
        )
    return title, fields


def apply_builder_action(action: str, fields: list[dict[str, Any]]) -> bool:
    """Mutate the field rows for add/remove buttons; False means save was pressed."""
    if action.startswith("add-"):
        field_type = action[len("add-") :]
        if field_type in FIELD_TYPES:
            fields.append({"label": "", "type": field_type, "required": False})
        return True
    if action.startswith("remove-"):
        index = action[len("remove-") :]
        if index.isdigit() and int(index) < len(fields):
            fields.pop(int(index))
        return True
    return False


def builder_context(form: dict[str, Any] | None, title: str, fields: list[dict[str, Any]]) -> dict[str, Any]:
    return {"form": form, "title": title, "fields": fields, "field_types": FIELD_TYPES}


@router.get("/", tags=["views"])
async def home() -> RedirectResponse:
    return RedirectResponse("/forms")


@router.get("/forms", response_class=HTMLResponse, tags=["views"])
async def list_forms_page(request: Request) -> HTMLResponse:
    page, limit = parse_page_params(
        request.query_params.get("page"), request.query_params.get("limit")
    )
    try:
        listing = request.app.state.form_service.list(page, limit)
    except FormBuilderError as exc:
        return render(
            request,
            "forms_list.html",
            {"listing": None, "errors": error_messages(exc)},
            status_code=exc.status_code,
        )
    return render(request, "forms_list.html", {"listing": listing})


@router.get("/forms/new", response_class=HTMLResponse, tags=["views"])
async def new_form_page(request: Request) -> HTMLResponse:
    return render(request, "form_builder.html", builder_context(None, "", []))


@router.post("/forms/new", response_class=HTMLResponse, tags=["views"])
async def create_form_page(request: Request) -> HTMLResponse:
    form_data = await request.form()
    title, fields = parse_builder_form(form_data)
    if apply_builder_action(str(form_data.get("action", "save")), fields):
        return render(request, "form_builder.html", builder_context(None, title, fields))
    try:
        form = request.app.state.form_service.create({"title": title, "fields": fields})
    except FormBuilderError as exc:
        context = builder_context(None, title, fields)
        return render(
            request,
            "form_builder.html",
            {**context, "errors": error_messages(exc)},
            status_code=exc.status_code,
        )
    return RedirectResponse(f"/forms/{form['id']}?notice=created", status_code=303)


@router.get("/forms/{form_id}", response_class=HTMLResponse, tags=["views"])
async def view_form_page(request: Request, form_id: str) -> HTMLResponse:
    try:
        form = request.app.state.form_service.get(form_id)
    except FormBuilderError as exc:
        return render_error(request, exc)
    return render(
        request,
        "form_view.html",
        {"form": form, "mode": "view", "values": {}, "first_name": "", "last_name": ""},
    )


@router.get("/forms/{form_id}/edit", response_class=HTMLResponse, tags=["views"])
async def edit_form_page(request: Request, form_id: str) -> HTMLResponse:
    try:
        form = request.app.state.form_service.get(form_id)
    except FormBuilderError as exc:
        return render_error(request, exc)
    return render(
        request, "form_builder.html", builder_context(form, form["title"], form["fields"])
    )


@router.post("/forms/{form_id}/edit", response_class=HTMLResponse, tags=["views"])
async def update_form_page(request: Request, form_id: str) -> HTMLResponse:
    service = request.app.state.form_service
    try:
        form = service.get(form_id)
    except FormBuilderError as exc:
        return render_error(request, exc)
    form_data = await request.form()
    title, fields = parse_builder_form(form_data)
    if apply_builder_action(str(form_data.get("action", "save")), fields):
        return render(request, "form_builder.html", builder_context(form, title, fields))
    try:
        service.update(form_id, {"title": title, "fields": fields})
    except FormBuilderError as exc:
        context = builder_context(form, title, fields)
        return render(
            request,
            "form_builder.html",
            {**context, "errors": error_messages(exc)},
            status_code=exc.status_code,
        )
    return RedirectResponse(f"/forms/{form_id}?notice=updated", status_code=303)


@router.post("/forms/{form_id}/delete", tags=["views"])
async def delete_form_page(request: Request, form_id: str) -> HTMLResponse:
    try:
        request.app.state.form_service.delete(form_id)
    except FormBuilderError as exc:
        return render_error(request, exc)
    return RedirectResponse("/forms?notice=deleted", status_code=303)


@router.get("/forms/{form_id}/fill", response_class=HTMLResponse, tags=["views"])
async def fill_form_page(request: Request, form_id: str) -> HTMLResponse:
    try:
        form = request.app.state.form_service.get(form_id)
    except FormBuilderError as exc:
        return render_error(request, exc)
    return render(
        request,
        "form_view.html",
        {"form": form, "mode": "fill", "values": {}, "first_name": "", "last_name": ""},
    )


@router.post("/forms/{form_id}/fill", response_class=HTMLResponse, tags=["views"])
async def submit_form_page(request: Request, form_id: str) -> HTMLResponse:
    try:
        form = request.app.state.form_service.get(form_id)
    except FormBuilderError as exc:
        return render_error(request, exc)

    form_data = await request.form()
    first_name = str(form_data.get("first_name", ""))
    last_name = str(form_data.get("last_name", ""))
    responses: dict[str, Any] = {}
    for index, field in enumerate(form["fields"]):
        raw_value = form_data.get(f"response-{index}")
        if field["type"] == "checkbox":
            responses[field["label"]] = parse_bool(raw_value)
        elif raw_value not in (None, ""):
            responses[field["label"]] = str(raw_value)

    try:
        submission = request.app.state.submission_service.create(
            form_id,
            {"firstName": first_name, "lastName": last_name, "responses": responses},
        )
    except FormBuilderError as exc:
        return render(
            request,
            "form_view.html",
            {
                "form": form,
                "mode": "fill",
                "values": responses,
                "first_name": first_name,
                "last_name": last_name,
                "errors": error_messages(exc),
            },
            status_code=exc.status_code,
        )
    return RedirectResponse(f"/submissions/{submission['id']}?notice=submitted", status_code=303)


@router.get("/forms/{form_id}/submissions", response_class=HTMLResponse, tags=["views"])
async def form_submissions_page(request: Request, form_id: str) -> HTMLResponse:
    page, limit = parse_page_params(
        request.query_params.get("page"), request.query_params.get("limit")
    )
    try:
        form = request.app.state.form_service.get(form_id)
        listing = request.app.state.submission_service.list_by_form(form_id, page, limit)
    except FormBuilderError as exc:
        return render_error(request, exc)
    return render(request, "submissions.html", {"form": form, "listing": listing})


@router.get("/submissions", response_class=HTMLResponse, tags=["views"])
async def all_submissions_page(request: Request) -> HTMLResponse:
    page, limit = parse_page_params(
        request.query_params.get("page"), request.query_params.get("limit")
    )
    try:
        listing = request.app.state.submission_service.list_all(page, limit)
    except FormBuilderError as exc:
        return render(
            request,
            "submissions.html",
            {"form": None, "listing": None, "errors": error_messages(exc)},
            status_code=exc.status_code,
        )
    return render(request, "submissions.html", {"form": None, "listing": listing})


@router.get("/submissions/{submission_id}", response_class=HTMLResponse, tags=["views"])
async def submission_page(request: Request, submission_id: str) -> HTMLResponse:
    try:
        submission = request.app.state.submission_service.get(submission_id)
    except FormBuilderError as exc:
        return render_error(request, exc)
    try:
        form = request.app.state.form_service.get(submission["formId"])
    except NotFound:
        form = None
    except FormBuilderError as exc:
        return render_error(request, exc)
    known = {field["label"] for field in form["fields"]} if form else set()
    extra = {
        label: value
        for label, value in submission["responses"].items()
        if label not in known
    }
    return render(
        request,
        "form_view.html",
        {
            "form": form,
            "mode": "submission",
            "submission": submission,
            "values": submission["responses"],
            "extra_responses": extra,
            "first_name": submission["firstName"],
            "last_name": submission["lastName"],
        },
    )


@router.post("/submissions/{submission_id}/delete", tags=["views"])
async def delete_submission_page(request: Request, submission_id: str) -> HTMLResponse:
    try:
        request.app.state.submission_service.delete(submission_id)
    except FormBuilderError as exc:
        return render_error(request, exc)
    return RedirectResponse("/submissions?notice=submission_deleted", status_code=303)
