from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Callable

import httpx

from scratch_api.domain.entities import Delete, FileChange, Gist, GitHubUser, Keep, RateLimitStatus
from scratch_api.domain.exceptions import (
    NotAuthenticated,
    NotFound,
    Offline,
    RateLimited,
    RemoteError,
    ValidationError,
)
from scratch_api.domain.ports import ConnectivityCheck, TokenAccessor

from .rate_limit import RateLimitTracker

logger = logging.getLogger("scratch.github")

GITHUB_API_VERSION = "2022-11-28"
LIST_PAGE_SIZE = 100


def files_to_wire(files: dict[str, FileChange]) -> dict[str, dict | None]:
    wire: dict[str, dict | None] = {}
    for name, change in files.items():
        if isinstance(change, Delete):
            wire[name] = None
        elif isinstance(change, Keep):
            wire[name] = {"content": change.content}
        else:
            raise TypeError(f"unsupported file change for {name!r}: {change!r}")
    return wire


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200] or f"github_http_{resp.status_code}"
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return f"github_http_{resp.status_code}"


def http_connectivity_check(url: str, *, timeout_s: float = 3.0) -> ConnectivityCheck:
    """Build a pre-check that reports offline when `url` cannot be reached."""

    async def check() -> bool:
        try:
            async with httpx.AsyncClient(timeout=timeout_s) as client:
                await client.head(url)
        except httpx.TransportError:
            return False
        return True

    return check


class GistGateway:
    def __init__(
        self,
        get_token: TokenAccessor,
        *,
        base_url: str = "https://api.github.com",
        user_agent: str = "ScratchApi/1.0.0",
        timeout_s: float = 30.0,
        check_connectivity: ConnectivityCheck | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._get_token = get_token
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout_s = timeout_s
        self._check_connectivity = check_connectivity
        self._transport = transport
        self.rate_limit = RateLimitTracker(clock)

        self._client: httpx.AsyncClient | None = None
        self._client_token: str | None = None
        self._retired: list[httpx.AsyncClient] = []
        self._in_use: dict[httpx.AsyncClient, int] = {}
        self._rebuild_lock = asyncio.Lock()

    async def _resolve_token(self) -> str:
        token = self._get_token()
        if inspect.isawaitable(token):
            token = await token
        if not token:
            raise NotAuthenticated("no GitHub token available, sign in first")
        return token

    def _build_client(self, token: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"token {token}",
                "User-Agent": self.user_agent,
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
            timeout=self.timeout_s,
            transport=self._transport,
        )

    async def _ensure_client(self) -> httpx.AsyncClient:
        token = await self._resolve_token()
        if self._client is None or token != self._client_token:
            async with self._rebuild_lock:
                if self._client is None or token != self._client_token:
                    old = self._client
                    self._client = self._build_client(token)
                    self._client_token = token
                    logger.info("client_rebuilt", extra={"base_url": self.base_url})
                    if old is not None:
                        # Requests still holding the old client finish with it; the last one closes it.
                        if self._in_use.get(old):
                            self._retired.append(old)
                        else:
                            await old.aclose()
        return self._client

    async def _acquire_client(self) -> httpx.AsyncClient:
        client = await self._ensure_client()
        self._in_use[client] = self._in_use.get(client, 0) + 1
        return client

    async def _release_client(self, client: httpx.AsyncClient) -> None:
        count = self._in_use.get(client, 1) - 1
        if count > 0:
            self._in_use[client] = count
            return
        self._in_use.pop(client, None)
        if client in self._retired:
            self._retired.remove(client)
            await client.aclose()

    async def _request(self, method: str, path: str, *, check_limit: bool = True, **kwargs: Any) -> httpx.Response:
        client = await self._acquire_client()
        try:
            return await self._send(client, method, path, check_limit=check_limit, **kwargs)
        finally:
            await self._release_client(client)

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        *,
        check_limit: bool,
        **kwargs: Any,
    ) -> httpx.Response:
        if check_limit and self.rate_limit.limited:
            raise RateLimited(self.rate_limit.retry_after_s())

        if self._check_connectivity is not None and not await self._check_connectivity():
            raise Offline("no internet connection available")

        start = time.perf_counter()
        try:
            resp = await client.request(method, path, **kwargs)
        except httpx.ConnectError as e:
            raise Offline("could not reach GitHub") from e
        except httpx.TransportError as e:
            raise RemoteError(None, "request_failed") from e

        logger.debug(
            "github_request",
            extra={
                "method": method,
                "path": path,
                "status": resp.status_code,
                "ms": (time.perf_counter() - start) * 1000.0,
            },
        )

        if self.rate_limit.observe_response(resp.status_code, resp.headers):
            raise RateLimited(self.rate_limit.retry_after_s())
        if resp.status_code < 400:
            return resp

        message = _error_message(resp)
        if resp.status_code == 401:
            raise NotAuthenticated(message)
        if resp.status_code == 404:
            raise NotFound(message)
        if resp.status_code == 422:
            raise ValidationError(message)
        raise RemoteError(resp.status_code, message)

    async def get_user_gists(self) -> list[Gist]:
        resp = await self._request("GET", "/gists", params={"per_page": LIST_PAGE_SIZE})
        return [Gist.from_api(g) for g in resp.json()]

    async def create_gist(self, description: str, files: dict[str, str], is_public: bool = False) -> Gist:
        if not files:
            raise ValidationError("at least one file is required to create a gist")
        payload = {
            "description": description,
            "public": is_public,
            "files": {name: {"content": content} for name, content in files.items()},
        }
        resp = await self._request("POST", "/gists", json=payload)
        return Gist.from_api(resp.json())

    async def update_gist(
        self,
        gist_id: str,
        description: str | None,
        files: dict[str, FileChange],
        is_public: bool | None = None,
    ) -> Gist:
        payload: dict[str, Any] = {"files": files_to_wire(files)}
        # Omitted fields keep their server-side value.
        if description is not None:
            payload["description"] = description
        if is_public is not None:
            payload["public"] = is_public
        resp = await self._request("PATCH", f"/gists/{gist_id}", json=payload)
        return Gist.from_api(resp.json())

    async def delete_gist(self, gist_id: str) -> None:
        await self._request("DELETE", f"/gists/{gist_id}")

    async def get_gist(self, gist_id: str) -> Gist:
        resp = await self._request("GET", f"/gists/{gist_id}")
        return Gist.from_api(resp.json())

    async def get_rate_limit_status(self) -> RateLimitStatus:
        resp = await self._request("GET", "/rate_limit", check_limit=False)
        core = resp.json()["resources"]["core"]
        status = RateLimitStatus(
            remaining=int(core["remaining"]),
            limit=int(core["limit"]),
            reset=int(core["reset"]),
        )
        self.rate_limit.observe_core(status.remaining, status.reset)
        return status

    async def get_user_profile(self) -> GitHubUser:
        resp = await self._request("GET", "/user")
        return GitHubUser.from_api(resp.json())

    async def aclose(self) -> None:
        clients = [*self._retired, *([self._client] if self._client else [])]
        self._retired = []
        self._in_use.clear()
        self._client = None
        self._client_token = None
        for client in clients:
            await client.aclose()
