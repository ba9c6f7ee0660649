from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union


SyncStatus = Literal["synced", "pending", "error"]


@dataclass(frozen=True)
class GistFile:
    filename: str
    content: str = ""
    type: str = ""
    language: str | None = None
    raw_url: str = ""
    size: int = 0

    @classmethod
    def from_api(cls, key: str, raw: dict | None) -> "GistFile":
        raw = raw or {}
        return cls(
            filename=raw.get("filename") or key,
            content=raw.get("content") or "",
            type=raw.get("type") or "",
            language=raw.get("language"),
            raw_url=raw.get("raw_url") or "",
            size=int(raw.get("size") or 0),
        )


@dataclass(frozen=True)
class GistOwner:
    login: str
    id: int
    avatar_url: str = ""


@dataclass(frozen=True)
class Gist:
    id: str
    description: str | None
    public: bool
    created_at: str
    updated_at: str
    files: dict[str, GistFile]
    owner: GistOwner | None = None
    html_url: str = ""

    @classmethod
    def from_api(cls, raw: dict) -> "Gist":
        # Key order of `files` is kept as returned; it decides the primary file.
        files = {name: GistFile.from_api(name, f) for name, f in (raw.get("files") or {}).items()}
        owner_raw = raw.get("owner")
        owner = None
        if isinstance(owner_raw, dict) and owner_raw.get("login"):
            owner = GistOwner(
                login=owner_raw["login"],
                id=int(owner_raw.get("id") or 0),
                avatar_url=owner_raw.get("avatar_url") or "",
            )
        return cls(
            id=str(raw["id"]),
            description=raw.get("description"),
            public=bool(raw.get("public")),
            created_at=raw.get("created_at") or "",
            updated_at=raw.get("updated_at") or "",
            files=files,
            owner=owner,
            html_url=raw.get("html_url") or "",
        )


@dataclass(frozen=True)
class Note:
    id: str
    gist_id: str
    title: str
    content: str
    created_at: str
    updated_at: str
    tags: list[str]
    file_name: str
    md_file_count: int
    md_files: list[str]
    file_contents: dict[str, str]
    is_public: bool
    owner_login: str | None
    sync_status: SyncStatus = "synced"


@dataclass(frozen=True)
class RateLimitStatus:
    remaining: int
    limit: int
    reset: int


@dataclass(frozen=True)
class GitHubUser:
    login: str
    id: int
    avatar_url: str = ""
    name: str | None = None
    html_url: str = ""
    public_gists: int = 0

    @classmethod
    def from_api(cls, raw: dict) -> "GitHubUser":
        return cls(
            login=raw["login"],
            id=int(raw.get("id") or 0),
            avatar_url=raw.get("avatar_url") or "",
            name=raw.get("name"),
            html_url=raw.get("html_url") or "",
            public_gists=int(raw.get("public_gists") or 0),
        )


@dataclass(frozen=True)
class Keep:
    """Create or overwrite a file with `content`."""

    content: str


@dataclass(frozen=True)
class Delete:
    """Remove a file from the gist."""


FileChange = Union[Keep, Delete]

