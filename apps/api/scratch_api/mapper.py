"""Gist <-> Note projection.

A note is never stored on its own: it is re-derived from the backing gist on
every read. Only files ending in `.md` (case-sensitive) belong to the note.
"""

from __future__ import annotations

from scratch_api.domain.entities import Gist, Note
from scratch_api.domain.exceptions import NoMarkdownFile
from scratch_api.parsing import parse_markdown

MARKDOWN_SUFFIX = ".md"
UNTITLED_NOTE = "Untitled Note"


def is_markdown_file(filename: str) -> bool:
    return filename.endswith(MARKDOWN_SUFFIX)


def markdown_files(gist: Gist) -> list[str]:
    return [name for name in gist.files if is_markdown_file(name)]


def note_file_name(title: str) -> str:
    return f"{title}{MARKDOWN_SUFFIX}"


def derive_title(description: str | None, primary_file: str) -> str:
    if description and description.strip():
        return description.strip()
    stem = primary_file[: -len(MARKDOWN_SUFFIX)] if is_markdown_file(primary_file) else primary_file
    return stem or UNTITLED_NOTE


def _collect_tags(contents: dict[str, str]) -> list[str]:
    tags: set[str] = set()
    for content in contents.values():
        tags.update(parse_markdown(content).tags)
    return sorted(tags)


def gist_to_note(gist: Gist) -> Note:
    md_files = markdown_files(gist)
    if not md_files:
        raise NoMarkdownFile(gist.id)

    # First markdown key in response order; GitHub does not promise a stable order.
    primary = md_files[0]
    file_contents = {name: gist.files[name].content or "" for name in md_files}
    return Note(
        id=gist.id,
        gist_id=gist.id,
        title=derive_title(gist.description, primary),
        content=file_contents[primary],
        created_at=gist.created_at,
        updated_at=gist.updated_at,
        tags=_collect_tags(file_contents),
        file_name=primary,
        md_file_count=len(md_files),
        md_files=md_files,
        file_contents=file_contents,
        is_public=gist.public,
        owner_login=gist.owner.login if gist.owner else None,
        sync_status="synced",
    )


def normalize_search_term(search_term: str | None) -> str | None:
    if search_term is None:
        return None
    return search_term.strip() or None


def gist_matches(gist: Gist, search_term: str) -> bool:
    needle = search_term.lower()
    if needle in (gist.description or "").lower():
        return True
    return any(needle in name.lower() for name in gist.files)


def gists_to_notes(gists: list[Gist], search_term: str | None = None) -> list[Note]:
    needle = normalize_search_term(search_term)
    notes: list[Note] = []
    for gist in gists:
        if not markdown_files(gist):
            continue
        if needle and not gist_matches(gist, needle):
            continue
        notes.append(gist_to_note(gist))
    return notes
