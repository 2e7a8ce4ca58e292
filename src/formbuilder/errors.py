from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong!"


class FormBuilderError(Exception):
    status_code = 500

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailed(FormBuilderError):
    status_code = 400

    def __init__(self, details: list[dict[str, Any]], message: str = "Validation error") -> None:
        super().__init__(message, details)


class NotFound(FormBuilderError):
    status_code = 404


class StorageFailure(FormBuilderError):
    """Persistence failed; the original error is only logged."""

    status_code = 500

    def __init__(self) -> None:
        super().__init__(GENERIC_ERROR_MESSAGE)


@contextmanager
def guard_storage(action: str) -> Iterator[None]:
    """Turn any persistence exception into StorageFailure after logging it."""
    try:
        yield
    except FormBuilderError:
        raise
    except Exception as exc:
        logger.exception("Storage failure while trying to %s", action)
        raise StorageFailure() from exc


async def _handle_formbuilder_error(request: Request, exc: FormBuilderError) -> JSONResponse:
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"message": GENERIC_ERROR_MESSAGE}, status_code=500)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FormBuilderError, _handle_formbuilder_error)
    app.add_exception_handler(Exception, _handle_unexpected)
