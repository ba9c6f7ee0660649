import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from scratch_api.auth import TokenStore
from scratch_api.dependencies import get_gateway, get_note_service, get_token_store
from scratch_api.domain.entities import Note
from scratch_api.domain.schemas import (
    FileContentIn,
    GistCreateIn,
    GistOut,
    NoteCreateIn,
    NoteDeleteOut,
    NoteListOut,
    NoteOut,
    NoteUpdateIn,
    RateLimitOut,
    RefreshOut,
    TokenIn,
    UserOut,
)
from scratch_api.github.gateway import GistGateway
from scratch_api.mapper import gists_to_notes
from scratch_api.notes import NoteService

router = APIRouter()
logger = logging.getLogger("scratch.api")


def _note_out(note: Note) -> NoteOut:
    return NoteOut(**asdict(note))


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/notes", response_model=NoteListOut)
async def list_notes(q: Optional[str] = None, service: NoteService = Depends(get_note_service)):
    notes = await service.list_notes(q)
    return NoteListOut(items=[_note_out(n) for n in notes])


@router.post("/notes", response_model=NoteOut)
async def create_note(payload: NoteCreateIn, request: Request, service: NoteService = Depends(get_note_service)):
    note = await service.create_note(payload.title, payload.content, payload.is_public)
    logger.info("note_create", extra={"rid": request.state.request_id, "id": note.id})
    return _note_out(note)


@router.post("/notes/refresh", response_model=RefreshOut)
async def refresh_notes(request: Request, service: NoteService = Depends(get_note_service)):
    gists = await service.refresh()
    logger.info("notes_refresh", extra={"rid": request.state.request_id, "gists": len(gists)})
    return RefreshOut(gists=len(gists), notes=len(gists_to_notes(gists)))


@router.get("/notes/{note_id}", response_model=NoteOut)
async def get_note(note_id: str, service: NoteService = Depends(get_note_service)):
    return _note_out(await service.get_note(note_id))


@router.put("/notes/{note_id}", response_model=NoteOut)
async def update_note(
    note_id: str,
    payload: NoteUpdateIn,
    request: Request,
    service: NoteService = Depends(get_note_service),
):
    note = await service.update_note(
        note_id,
        payload.title,
        payload.content,
        file_name=payload.file_name,
        is_public=payload.is_public,
    )
    logger.info("note_update", extra={"rid": request.state.request_id, "id": note_id})
    return _note_out(note)


@router.patch("/notes/{note_id}/files/{file_name}", response_model=NoteOut)
async def update_note_file(
    note_id: str,
    file_name: str,
    payload: FileContentIn,
    request: Request,
    service: NoteService = Depends(get_note_service),
):
    note = await service.update_file_content(note_id, file_name, payload.content, is_public=payload.is_public)
    logger.info("note_file_update", extra={"rid": request.state.request_id, "id": note_id, "file": file_name})
    return _note_out(note)


@router.delete("/notes/{note_id}", response_model=NoteDeleteOut)
async def delete_note(
    note_id: str,
    request: Request,
    file_name: Optional[str] = None,
    md_file_count: Optional[int] = Query(None, ge=0),
    service: NoteService = Depends(get_note_service),
):
    deleted = await service.delete_note(note_id, file_name=file_name, md_file_count=md_file_count)
    logger.info("note_delete", extra={"rid": request.state.request_id, "id": note_id, "deleted": deleted})
    return NoteDeleteOut(id=note_id, deleted=deleted)


@router.post("/gists", response_model=GistOut)
async def create_gist(payload: GistCreateIn, service: NoteService = Depends(get_note_service)):
    files = {name: f.content for name, f in payload.files.items()}
    gist = await service.create_gist(payload.description, files, payload.public)
    return GistOut(**asdict(gist))


@router.get("/rate-limit", response_model=RateLimitOut)
async def rate_limit(gateway: GistGateway = Depends(get_gateway)):
    status = await gateway.get_rate_limit_status()
    return RateLimitOut(
        remaining=status.remaining,
        limit=status.limit,
        reset=status.reset,
        limited=gateway.rate_limit.limited,
        retry_after_s=gateway.rate_limit.retry_after_s(),
    )


@router.get("/user", response_model=UserOut)
async def user(service: NoteService = Depends(get_note_service)):
    return UserOut(**asdict(await service.user_profile()))


@router.put("/session/token")
def set_token(payload: TokenIn, store: TokenStore = Depends(get_token_store)):
    if not payload.token.strip():
        raise HTTPException(status_code=400, detail="token_empty")
    store.set(payload.token)
    return {"ok": True}


@router.delete("/session/token")
def clear_token(store: TokenStore = Depends(get_token_store)):
    store.clear()
    return {"ok": True}
