from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class NoteOut(BaseModel):
    id: str
    gist_id: str
    title: str
    content: str
    created_at: str
    updated_at: str
    tags: list[str] = Field(default_factory=list)
    file_name: str
    md_file_count: int
    md_files: list[str] = Field(default_factory=list)
    file_contents: dict[str, str] = Field(default_factory=dict)
    is_public: bool
    owner_login: Optional[str] = None
    sync_status: Literal["synced", "pending", "error"] = "synced"


class NoteListOut(BaseModel):
    items: list[NoteOut] = Field(default_factory=list)


class NoteCreateIn(BaseModel):
    title: str
    content: str
    is_public: bool = False


class NoteUpdateIn(BaseModel):
    title: str
    content: str
    file_name: Optional[str] = None
    is_public: Optional[bool] = None


class FileContentIn(BaseModel):
    content: str
    is_public: Optional[bool] = None


class NoteDeleteOut(BaseModel):
    id: str
    deleted: Literal["file", "gist"]


class GistFileIn(BaseModel):
    content: str


class GistCreateIn(BaseModel):
    description: str = ""
    files: dict[str, GistFileIn] = Field(default_factory=dict)
    public: bool = False


class GistFileOut(BaseModel):
    filename: str
    content: str = ""
    type: str = ""
    language: Optional[str] = None
    raw_url: str = ""
    size: int = 0


class GistOwnerOut(BaseModel):
    login: str
    id: int
    avatar_url: str = ""


class GistOut(BaseModel):
    id: str
    description: Optional[str] = None
    public: bool
    created_at: str
    updated_at: str
    files: dict[str, GistFileOut] = Field(default_factory=dict)
    owner: Optional[GistOwnerOut] = None
    html_url: str = ""


class RefreshOut(BaseModel):
    gists: int
    notes: int


class RateLimitOut(BaseModel):
    remaining: int
    limit: int
    reset: int
    limited: bool
    retry_after_s: int = 0


class UserOut(BaseModel):
    login: str
    id: int
    avatar_url: str = ""
    name: Optional[str] = None
    html_url: str = ""
    public_gists: int = 0


class TokenIn(BaseModel):
    token: str
