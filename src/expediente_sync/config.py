from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .portal.auth import PortalCredentials


DEFAULT_PORTAL_URL = "https://portalproveedores.ikeasistencia.com"

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on", "si", "sí"}


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _default_config_from_env() -> dict:
    """
    Provide an env-only config so most users only need `.env`.

    YAML remains an optional override for timeouts and workbook layout.
    """
    return {
        "portal": {
            "base_url": os.getenv("PORTAL_BASE_URL", DEFAULT_PORTAL_URL),
            "pending_path": os.getenv("PORTAL_PENDING_PATH", "/admin/services/pendientes"),
            "username": os.getenv("PORTAL_USERNAME", ""),
            "password": os.getenv("PORTAL_PASSWORD", ""),
        },
        "browser": {
            "executable_path": os.getenv("BROWSER_EXECUTABLE_PATH", ""),
            "headless": _env_bool("BROWSER_HEADLESS", default=False),
            "navigation_timeout_ms": os.getenv("NAVIGATION_TIMEOUT_MS", "60000"),
            "default_timeout_ms": os.getenv("DEFAULT_TIMEOUT_MS", "30000"),
            "slow_mo_ms": os.getenv("BROWSER_SLOW_MO_MS", "0"),
        },
        "search": {
            "max_retries": os.getenv("SEARCH_MAX_RETRIES", "3"),
            "retry_delay_s": os.getenv("SEARCH_RETRY_DELAY_S", "2.0"),
            "results_timeout_ms": os.getenv("SEARCH_RESULTS_TIMEOUT_MS", "5000"),
            "keystroke_delay_ms": os.getenv("SEARCH_KEYSTROKE_DELAY_MS", "50"),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", "data/expediente_sync.log"),
        },
    }


class PortalConfig(BaseModel):
    base_url: str = DEFAULT_PORTAL_URL
    pending_path: str = "/admin/services/pendientes"
    # Optional here: a missing login is reported by the login step, not by config loading.
    username: str = ""
    password: str = Field(default="", repr=False)

    @model_validator(mode="after")
    def _normalize(self) -> "PortalConfig":
        base_url = (self.base_url or "").strip().rstrip("/")
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"portal.base_url must be a full URL like '{DEFAULT_PORTAL_URL}'")
        self.base_url = base_url
        self.pending_path = "/" + (self.pending_path or "").strip().lstrip("/")
        return self


class BrowserConfig(BaseModel):
    executable_path: str = ""
    headless: bool = False
    navigation_timeout_ms: int = Field(default=60_000, gt=0)
    default_timeout_ms: int = Field(default=30_000, gt=0)
    slow_mo_ms: int = Field(default=0, ge=0)


class SearchConfig(BaseModel):
    max_retries: int = Field(default=3, ge=0)
    retry_delay_s: float = Field(default=2.0, ge=0)
    results_timeout_ms: int = Field(default=5_000, gt=0)
    keystroke_delay_ms: int = Field(default=50, ge=0)


class WorkbookConfig(BaseModel):
    # Empty = first worksheet.
    sheet: str = ""
    first_data_row: int = Field(default=2, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = "data/expediente_sync.log"

    @field_validator("level")
    @classmethod
    def _upper(cls, v: str) -> str:
        return (v or "INFO").strip().upper()


class AppConfig(BaseModel):
    portal: PortalConfig = PortalConfig()
    browser: BrowserConfig = BrowserConfig()
    search: SearchConfig = SearchConfig()
    workbook: WorkbookConfig = WorkbookConfig()
    logging: LoggingConfig = LoggingConfig()
    debug_dir: str = "data/debug"


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)


def credentials_from_config(cfg: AppConfig) -> Optional[PortalCredentials]:
    """
    Credential source for the login step. Returns None when nothing is configured.
    """
    username = (cfg.portal.username or "").strip()
    password = cfg.portal.password or ""
    if not username and not password:
        return None
    return PortalCredentials(username=username, password=password)
