from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

FIELD_TYPES = ("text", "checkbox")
STORAGE_BACKENDS = {"json", "sqlite"}
DELETE_MODES = {"soft", "hard"}

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "on", "yes"}


class Settings:
    def __init__(self) -> None:
        self.storage_backend = os.getenv("STORAGE_BACKEND", "json").lower()
        if self.storage_backend not in STORAGE_BACKENDS:
            self.storage_backend = "json"
        self.json_path = Path(os.getenv("JSON_PATH", "./data/forms.json"))
        self.sqlite_path = Path(os.getenv("SQLITE_PATH", "./data/app.db"))
        self.delete_mode = os.getenv("DELETE_MODE", "soft").lower()
        if self.delete_mode not in DELETE_MODES:
            self.delete_mode = "soft"
        self.enforce_form_reference = _env_bool("ENFORCE_FORM_REFERENCE", True)
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.host = os.getenv("HOST", "0.0.0.0")
        port_value = os.getenv("PORT", "8000")
        try:
            self.port = int(port_value)
        except ValueError:
            self.port = 8000

    @property
    def soft_delete(self) -> bool:
        return self.delete_mode == "soft"


def ensure_dirs(settings: Settings) -> None:
    settings.json_path.parent.mkdir(parents=True, exist_ok=True)
    settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
