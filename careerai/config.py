"""Load settings from config/careerai.yaml and the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from careerai.log import get_logger

log = get_logger(__name__)

load_dotenv()

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = PROJECT_ROOT / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "careerai.yaml"
DATA_DIR: Path = PROJECT_ROOT / "data"

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

# Values shipped in .env.example; treated as "not configured".
_PLACEHOLDER_VALUES: set[str] = {
    "your-serp-api-key-here",
    "your-gemini-api-key-here",
    "changeme",
}


@dataclass
class Settings:
    serpapi_key: str = ""
    gemini_api_key: str = ""
    llm_model: str = "gemini-2.5-flash"
    llm_base_url: str = GEMINI_OPENAI_BASE_URL
    database_url: str = ""
    default_location: str = "Remote"
    discovery_limit: int = 20
    min_description_length: int = 50
    max_upload_mb: int = 10
    data_dir: str = str(DATA_DIR)

    @property
    def has_search_key(self) -> bool:
        return bool(self.serpapi_key)

    @property
    def has_llm_key(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


# env var -> Settings field; first non-empty alias wins
_ENV_FIELDS: dict[str, tuple[str, ...]] = {
    "serpapi_key": ("SERPAPI_KEY", "SERP_API_KEY"),
    "gemini_api_key": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "llm_model": ("LLM_MODEL",),
    "llm_base_url": ("LLM_BASE_URL",),
    "database_url": ("DATABASE_URL",),
    "default_location": ("DEFAULT_LOCATION",),
    "discovery_limit": ("DISCOVERY_LIMIT",),
    "min_description_length": ("MIN_DESCRIPTION_LENGTH",),
    "max_upload_mb": ("MAX_UPLOAD_MB",),
    "data_dir": ("DATA_DIR",),
}


def get_env(key: str, default: str = "") -> str:
    value = os.environ.get(key, default).strip()
    if value.lower() in _PLACEHOLDER_VALUES:
        return default
    return value


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a mapping at the top level")
    return data


def _coerce(name: str, raw: Any) -> Any:
    if name in ("discovery_limit", "min_description_length", "max_upload_mb"):
        return int(raw)
    return str(raw).strip()


def load_settings(path: Path | None = None) -> Settings:
    """Build Settings from the YAML file (if any) overlaid by env vars."""
    known = {f.name for f in fields(Settings)}
    values: dict[str, Any] = {}

    for key, raw in _load_yaml(path or SETTINGS_PATH).items():
        if key not in known:
            log.warning("Ignoring unknown setting %r", key)
            continue
        if raw is not None:
            values[key] = _coerce(key, raw)

    for name, env_keys in _ENV_FIELDS.items():
        for env_key in env_keys:
            raw = get_env(env_key)
            if raw:
                values[name] = _coerce(name, raw)
                break

    settings = Settings(**values)
    if settings.serpapi_key.lower() in _PLACEHOLDER_VALUES:
        settings.serpapi_key = ""
    if settings.gemini_api_key.lower() in _PLACEHOLDER_VALUES:
        settings.gemini_api_key = ""
    return settings
