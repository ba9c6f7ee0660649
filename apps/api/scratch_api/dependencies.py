from functools import lru_cache

from scratch_api.auth import TokenStore
from scratch_api.cache import MemoryCache
from scratch_api.config import load_settings
from scratch_api.github.gateway import GistGateway, http_connectivity_check
from scratch_api.notes import NoteService

@lru_cache()
def get_settings():
    return load_settings()

@lru_cache()
def get_token_store():
    settings = get_settings()
    return TokenStore(settings.github_token)

@lru_cache()
def get_gateway():
    settings = get_settings()
    check = http_connectivity_check(settings.github_api_url) if settings.github_connectivity_check else None
    return GistGateway(
        get_token_store(),
        base_url=settings.github_api_url,
        user_agent=settings.github_user_agent,
        timeout_s=settings.github_timeout_s,
        check_connectivity=check,
    )

@lru_cache()
def get_cache():
    settings = get_settings()
    return MemoryCache(ttl_s=settings.cache_ttl_s, retries=settings.cache_retries)

@lru_cache()
def get_note_service():
    return NoteService(gateway=get_gateway(), cache=get_cache())
