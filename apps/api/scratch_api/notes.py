from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from scratch_api.cache import keys_to_invalidate, list_key, note_key
from scratch_api.domain.entities import Delete, FileChange, Gist, GitHubUser, Keep, Note
from scratch_api.domain.exceptions import ValidationError
from scratch_api.domain.ports import GistGatewayPort, KeyedCache
from scratch_api.mapper import gist_to_note, gists_to_notes, note_file_name

logger = logging.getLogger("scratch.notes")

PersistGists = Callable[[list[Gist]], Union[Awaitable[None], None]]


def _require_text(value: str, field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field}_empty")
    return cleaned


def rename_aware_changes(title: str, content: str, previous_file_name: str | None) -> dict[str, FileChange]:
    """File changes for saving `content` under `{title}.md`.

    When the target name differs from `previous_file_name` the old file is
    deleted in the same request, so the gist is never left without the note.
    """
    next_file_name = note_file_name(title)
    changes: dict[str, FileChange] = {}
    if previous_file_name and previous_file_name != next_file_name:
        changes[previous_file_name] = Delete()
    changes[next_file_name] = Keep(content)
    return changes


class NoteService:
    def __init__(self, gateway: GistGatewayPort, cache: KeyedCache) -> None:
        self.gateway = gateway
        self.cache = cache

    def _invalidate(self, note_id: str | None = None) -> None:
        for key in keys_to_invalidate(note_id):
            self.cache.invalidate(key)

    async def list_notes(self, search_term: str | None = None) -> list[Note]:
        async def load() -> list[Note]:
            return gists_to_notes(await self.gateway.get_user_gists(), search_term)

        return await self.cache.fetch(list_key(search_term), load)

    async def get_note(self, note_id: str) -> Note:
        if not note_id or not note_id.strip():
            raise ValidationError("note_id_empty")

        async def load() -> Note:
            return gist_to_note(await self.gateway.get_gist(note_id))

        return await self.cache.fetch(note_key(note_id), load)

    async def create_gist(self, description: str, files: dict[str, str], is_public: bool = False) -> Gist:
        if not files:
            raise ValidationError("at least one file is required to create a gist")
        gist = await self.gateway.create_gist(description, files, is_public)
        logger.info("gist_create", extra={"gist_id": gist.id, "files": len(files)})
        self._invalidate()
        return gist

    async def create_note(self, title: str, content: str, is_public: bool = False) -> Note:
        title = _require_text(title, "title")
        _require_text(content, "content")
        gist = await self.gateway.create_gist(title, {note_file_name(title): content}, is_public)
        logger.info("note_create", extra={"gist_id": gist.id})
        self._invalidate(gist.id)
        return gist_to_note(gist)

    async def update_note(
        self,
        note_id: str,
        title: str,
        content: str,
        file_name: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> Note:
        title = _require_text(title, "title")
        changes = rename_aware_changes(title, content, file_name)
        gist = await self.gateway.update_gist(note_id, title, changes, is_public)
        logger.info(
            "note_update",
            extra={"gist_id": note_id, "renamed": len(changes) > 1, "file": note_file_name(title)},
        )
        self._invalidate(note_id)
        return gist_to_note(gist)

    async def update_file_content(
        self,
        note_id: str,
        file_name: str,
        content: str,
        is_public: Optional[bool] = None,
    ) -> Note:
        if not file_name:
            raise ValidationError("file_name_empty")
        gist = await self.gateway.update_gist(note_id, None, {file_name: Keep(content)}, is_public)
        logger.info("note_file_update", extra={"gist_id": note_id, "file": file_name})
        self._invalidate(note_id)
        return gist_to_note(gist)

    async def delete_note(
        self,
        note_id: str,
        file_name: Optional[str] = None,
        md_file_count: Optional[int] = None,
    ) -> str:
        """Remove one markdown file, or the whole gist when it is the last one.

        Returns "file" or "gist" depending on what was deleted.
        """
        if file_name and (md_file_count if md_file_count is not None else 1) > 1:
            await self.gateway.update_gist(note_id, None, {file_name: Delete()})
            deleted = "file"
        else:
            await self.gateway.delete_gist(note_id)
            deleted = "gist"
        logger.info("note_delete", extra={"gist_id": note_id, "file": file_name, "deleted": deleted})
        self._invalidate(note_id)
        return deleted

    async def refresh(self, persist: Optional[PersistGists] = None) -> list[Gist]:
        gists = await self.gateway.get_user_gists()
        if persist is not None:
            result = persist(gists)
            if inspect.isawaitable(result):
                await result
        self._invalidate()
        return gists

    async def user_profile(self) -> GitHubUser:
        return await self.gateway.get_user_profile()
