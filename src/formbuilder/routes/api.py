from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from formbuilder.errors import ValidationFailed
from formbuilder.pagination import parse_page_params

router = APIRouter(prefix="/api")


async def read_json(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationFailed([{"path": "", "message": "Request body must be valid JSON"}])


def _page(request: Request) -> tuple[int, int]:
    return parse_page_params(
        request.query_params.get("page"), request.query_params.get("limit")
    )


@router.get("/forms", tags=["api/forms"])
async def api_list_forms(request: Request) -> JSONResponse:
    page, limit = _page(request)
    return JSONResponse(request.app.state.form_service.list(page, limit))


@router.post("/forms", tags=["api/forms"])
async def api_create_form(request: Request) -> JSONResponse:
    payload = await read_json(request)
    form = request.app.state.form_service.create(payload)
    return JSONResponse(form, status_code=201)


@router.get("/forms/{form_id}", tags=["api/forms"])
async def api_get_form(request: Request, form_id: str) -> JSONResponse:
    return JSONResponse(request.app.state.form_service.get(form_id))


@router.patch("/forms/{form_id}", tags=["api/forms"])
async def api_update_form(request: Request, form_id: str) -> JSONResponse:
    payload = await read_json(request)
    return JSONResponse(request.app.state.form_service.update(form_id, payload))


@router.delete("/forms/{form_id}", tags=["api/forms"])
async def api_delete_form(request: Request, form_id: str) -> JSONResponse:
    return JSONResponse(request.app.state.form_service.delete(form_id))


@router.get("/submission", tags=["api/submissions"])
async def api_list_all_submissions(request: Request) -> JSONResponse:
    page, limit = _page(request)
    return JSONResponse(request.app.state.submission_service.list_all(page, limit))


@router.get("/submission/form/{form_id}", tags=["api/submissions"])
async def api_list_form_submissions(request: Request, form_id: str) -> JSONResponse:
    page, limit = _page(request)
    service = request.app.state.submission_service
    return JSONResponse(service.list_by_form(form_id, page, limit))


@router.post("/submission/{form_id}", tags=["api/submissions"])
async def api_create_submission(request: Request, form_id: str) -> JSONResponse:
    payload = await read_json(request)
    submission = request.app.state.submission_service.create(form_id, payload)
    return JSONResponse(submission, status_code=201)


@router.get("/submission/{submission_id}", tags=["api/submissions"])
async def api_get_submission(request: Request, submission_id: str) -> JSONResponse:
    return JSONResponse(request.app.state.submission_service.get(submission_id))


@router.delete("/submission/{submission_id}", tags=["api/submissions"])
async def api_delete_submission(request: Request, submission_id: str) -> JSONResponse:
    return JSONResponse(request.app.state.submission_service.delete(submission_id))
