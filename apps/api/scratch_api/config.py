from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    github_api_url: str
    github_token: str | None
    github_user_agent: str
    github_timeout_s: float
    github_connectivity_check: bool
    cache_ttl_s: float
    cache_retries: int
    api_auth_mode: str
    api_auth_token: str | None
    api_debug_log: bool
    log_level: str


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() == "true"


def load_settings() -> Settings:
    github_api_url = os.environ.get("GITHUB_API_URL", "https://api.github.com").rstrip("/")
    github_token = os.environ.get("GITHUB_TOKEN") or None
    github_user_agent = os.environ.get("GITHUB_USER_AGENT", "ScratchApi/1.0.0")
    github_timeout_s = float(os.environ.get("GITHUB_TIMEOUT_S", "30"))
    github_connectivity_check = _env_flag("GITHUB_CONNECTIVITY_CHECK")
    cache_ttl_s = float(os.environ.get("NOTES_CACHE_TTL_S", "60"))
    cache_retries = int(os.environ.get("NOTES_CACHE_RETRIES", "2"))
    api_auth_mode = os.environ.get("API_AUTH_MODE", "none").strip().lower()
    api_auth_token = os.environ.get("API_AUTH_TOKEN") or None
    api_debug_log = _env_flag("API_DEBUG_LOG")
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    return Settings(
        github_api_url=github_api_url,
        github_token=github_token,
        github_user_agent=github_user_agent,
        github_timeout_s=github_timeout_s,
        github_connectivity_check=github_connectivity_check,
        cache_ttl_s=cache_ttl_s,
        cache_retries=cache_retries,
        api_auth_mode=api_auth_mode,
        api_auth_token=api_auth_token,
        api_debug_log=api_debug_log,
        log_level=log_level,
    )
