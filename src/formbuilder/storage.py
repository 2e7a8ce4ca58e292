from __future__ import annotations

import logging

from formbuilder.config import Settings, ensure_dirs
from formbuilder.protocols import Storage
from formbuilder.repo_json import JSONStorage
from formbuilder.repo_sqlite import SQLiteStorage

logger = logging.getLogger(__name__)


def init_storage(settings: Settings) -> Storage:
    ensure_dirs(settings)
    if settings.storage_backend == "sqlite":
        logger.info("Using SQLite storage at %s", settings.sqlite_path)
        return SQLiteStorage(settings.sqlite_path)
    logger.info("Using JSON document storage at %s", settings.json_path)
    return JSONStorage(settings.json_path)
