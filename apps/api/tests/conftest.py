from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

import httpx
import pytest

from scratch_api import dependencies
from scratch_api.cache import MemoryCache
from scratch_api.github.gateway import GistGateway
from scratch_api.notes import NoteService


_GIST_PATH_RE = re.compile(r"^/gists/([^/]+)$")


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeGitHub:
    """In-memory stand-in for the gist REST endpoints."""

    clock: FakeClock
    gists: dict[str, dict] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    rate_remaining: int = 4999
    rate_limit: int = 5000
    rate_reset: int | None = None
    next_response: httpx.Response | None = None
    _counter: int = 0

    def add_gist(self, files: dict[str, str], description: str | None = None, public: bool = False) -> str:
        self._counter += 1
        gist_id = f"g{self._counter}"
        stamp = "2025-01-01T00:00:00Z"
        self.gists[gist_id] = {
            "id": gist_id,
            "description": description,
            "public": public,
            "created_at": stamp,
            "updated_at": stamp,
            "files": {name: self._file(name, content) for name, content in files.items()},
            "owner": {"login": "octocat", "id": 1, "avatar_url": "https://avatars.example/1"},
            "html_url": f"https://gist.github.com/octocat/{gist_id}",
        }
        return gist_id

    @staticmethod
    def _file(name: str, content: str) -> dict:
        return {
            "filename": name,
            "type": "text/markdown" if name.endswith(".md") else "text/plain",
            "language": "Markdown" if name.endswith(".md") else None,
            "raw_url": f"https://gist.githubusercontent.com/raw/{name}",
            "size": len(content),
            "content": content,
        }

    def calls(self, method: str | None = None) -> list[httpx.Request]:
        return [r for r in self.requests if method is None or r.method == method]

    def _headers(self) -> dict[str, str]:
        reset = self.rate_reset if self.rate_reset is not None else int(self.clock() + 3600)
        return {
            "x-ratelimit-remaining": str(self.rate_remaining),
            "x-ratelimit-limit": str(self.rate_limit),
            "x-ratelimit-reset": str(reset),
        }

    def _json(self, status: int, body: object = None) -> httpx.Response:
        if body is None:
            return httpx.Response(status, headers=self._headers())
        return httpx.Response(status, json=body, headers=self._headers())

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.next_response is not None:
            resp, self.next_response = self.next_response, None
            return resp
        if not request.headers.get("authorization", "").startswith("token "):
            return self._json(401, {"message": "Requires authentication"})

        path = request.url.path
        body = json.loads(request.content) if request.content else {}

        if path == "/rate_limit":
            reset = self.rate_reset if self.rate_reset is not None else int(self.clock() + 3600)
            core = {"remaining": self.rate_remaining, "limit": self.rate_limit, "reset": reset}
            return self._json(200, {"resources": {"core": core}})
        if path == "/user":
            return self._json(200, {"login": "octocat", "id": 1, "name": "Mona", "public_gists": 3})
        if path == "/gists" and request.method == "GET":
            return self._json(200, list(reversed(list(self.gists.values()))))
        if path == "/gists" and request.method == "POST":
            files = {name: f["content"] for name, f in body["files"].items()}
            gist_id = self.add_gist(files, body.get("description"), body.get("public", False))
            return self._json(201, self.gists[gist_id])

        m = _GIST_PATH_RE.match(path)
        if not m:
            return self._json(404, {"message": "Not Found"})
        gist = self.gists.get(m.group(1))
        if gist is None:
            return self._json(404, {"message": "Not Found"})

        if request.method == "GET":
            return self._json(200, gist)
        if request.method == "DELETE":
            del self.gists[gist["id"]]
            return self._json(204)
        if request.method == "PATCH":
            for name, change in body.get("files", {}).items():
                if change is None:
                    gist["files"].pop(name, None)
                else:
                    gist["files"][name] = self._file(name, change["content"])
            if "description" in body:
                gist["description"] = body["description"]
            if "public" in body:
                gist["public"] = body["public"]
            gist["updated_at"] = "2025-01-02T00:00:00Z"
            return self._json(200, gist)
        return self._json(405, {"message": "Method Not Allowed"})


@pytest.fixture(autouse=True)
def clear_dependency_caches():
    for fn in (
        dependencies.get_settings,
        dependencies.get_token_store,
        dependencies.get_gateway,
        dependencies.get_cache,
        dependencies.get_note_service,
    ):
        fn.cache_clear()
    yield
    for fn in (
        dependencies.get_settings,
        dependencies.get_token_store,
        dependencies.get_gateway,
        dependencies.get_cache,
        dependencies.get_note_service,
    ):
        fn.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def github(clock) -> FakeGitHub:
    return FakeGitHub(clock=clock)


@pytest.fixture
def gateway(github, clock) -> GistGateway:
    return GistGateway(
        lambda: "test-token",
        base_url="https://api.github.test",
        user_agent="ScratchTest/1.0",
        transport=httpx.MockTransport(github.handler),
        clock=clock,
    )


@pytest.fixture
def service(gateway) -> NoteService:
    return NoteService(gateway=gateway, cache=MemoryCache(ttl_s=None, retries=0))
