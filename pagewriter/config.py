import json
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from pagewriter.logger import get_logger

LOGGER = get_logger(__name__)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SETTINGS_PATH = os.path.join(PROJECT_ROOT, "config", "settings.json")


def _default_font_source() -> Dict[str, str]:
    return {"owner": "karenliteracy", "repo": "Knyawfonts", "path": "", "branch": "main"}


@dataclass
class Settings:
    history_capacity: int = 50
    min_page_width: int = 320
    default_page_width: int = 800
    padding: int = 28
    thumbnail_scale: float = 0.18
    export_scale: float = 2.0
    jpeg_quality: int = 95
    font_extensions: List[str] = field(default_factory=lambda: [".woff", ".woff2"])
    font_source: Dict[str, str] = field(default_factory=_default_font_source)
    request_timeout: Optional[float] = 30.0
    export_workers: int = 2

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Overlay known keys from ``data`` on the defaults; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        settings = cls(**{k: v for k, v in data.items() if k in known})
        if settings.history_capacity < 1:
            raise ValueError("'history_capacity' must be at least 1.")
        if settings.min_page_width < 1:
            raise ValueError("'min_page_width' must be positive.")
        return settings


def load_settings(path: str = SETTINGS_PATH) -> Settings:
    """Load settings from config/settings.json, falling back to defaults."""
    if not os.path.exists(path):
        return Settings()

    try:
        with open(path, "r", encoding="utf-8") as settings_file:
            data = json.load(settings_file) or {}
        if not isinstance(data, dict):
            raise ValueError("settings file must hold a JSON object")
        return Settings.from_dict(data)
    except (OSError, ValueError, TypeError) as exc:
        LOGGER.warning("Could not load settings from %s, using defaults: %s", path, exc)
        return Settings()
