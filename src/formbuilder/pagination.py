from __future__ import annotations

import math
from typing import Any

from formbuilder.config import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT


def _positive_int(value: Any, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    return number if number >= 1 else default


def parse_page_params(page: Any = None, limit: Any = None) -> tuple[int, int]:
    """Coerce raw query values; anything missing, non-numeric or below 1 uses the default."""
    return (
        _positive_int(page, DEFAULT_PAGE),
        min(_positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT),
    )


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def page_envelope(page: int, limit: int, total: int, data: list[Any]) -> dict[str, Any]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages(total, limit),
        "data": data,
    }
