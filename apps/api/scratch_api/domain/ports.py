from __future__ import annotations

from typing import Any, Awaitable, Callable, Hashable, Protocol, Union, runtime_checkable

from scratch_api.domain.entities import FileChange, Gist, GitHubUser, RateLimitStatus


TokenAccessor = Callable[[], Union[str, None, Awaitable[Union[str, None]]]]
ConnectivityCheck = Callable[[], Awaitable[bool]]
CacheKey = tuple[Hashable, ...]


@runtime_checkable
class GistGatewayPort(Protocol):
    async def get_user_gists(self) -> list[Gist]:
        ...

    async def create_gist(self, description: str, files: dict[str, str], is_public: bool = False) -> Gist:
        ...

    async def update_gist(
        self,
        gist_id: str,
        description: str | None,
        files: dict[str, FileChange],
        is_public: bool | None = None,
    ) -> Gist:
        ...

    async def delete_gist(self, gist_id: str) -> None:
        ...

    async def get_gist(self, gist_id: str) -> Gist:
        ...

    async def get_rate_limit_status(self) -> RateLimitStatus:
        ...

    async def get_user_profile(self) -> GitHubUser:
        ...


@runtime_checkable
class KeyedCache(Protocol):
    def get(self, key: CacheKey) -> Any:
        ...

    def set(self, key: CacheKey, value: Any, ttl: float | None = None) -> None:
        ...

    def invalidate(self, key: CacheKey) -> None:
        ...

    async def fetch(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        ...
