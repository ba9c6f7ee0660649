from __future__ import annotations

import copy

import pytest

from scratch_api.domain.entities import Gist
from scratch_api.domain.exceptions import NoMarkdownFile
from scratch_api.mapper import UNTITLED_NOTE, gist_to_note, gists_to_notes


def _gist(gist_id: str, files: dict[str, str], description: str | None = None, public: bool = False) -> Gist:
    return Gist.from_api(
        {
            "id": gist_id,
            "description": description,
            "public": public,
            "created_at": "2025-01-01T00:00:00Z",
            "updated_at": "2025-01-02T00:00:00Z",
            "files": {name: {"filename": name, "content": content} for name, content in files.items()},
            "owner": {"login": "octocat", "id": 1},
        }
    )


def test_gist_to_note_uses_first_markdown_file_as_primary() -> None:
    gist = _gist("a1", {"script.py": "print()", "First.md": "one", "Second.md": "two"})
    note = gist_to_note(gist)

    assert note.id == note.gist_id == "a1"
    assert note.file_name == "First.md"
    assert note.content == "one"
    assert note.md_files == ["First.md", "Second.md"]
    assert note.md_file_count == 2
    assert note.file_contents == {"First.md": "one", "Second.md": "two"}
    assert set(note.md_files) <= set(gist.files)
    assert note.owner_login == "octocat"
    assert note.sync_status == "synced"


def test_markdown_match_is_case_sensitive() -> None:
    gist = _gist("a2", {"README.MD": "x", "notes.markdown": "y"})
    with pytest.raises(NoMarkdownFile):
        gist_to_note(gist)


def test_gist_without_markdown_fails_instead_of_partial_note() -> None:
    with pytest.raises(NoMarkdownFile) as exc:
        gist_to_note(_gist("a3", {"main.go": "package main"}))
    assert exc.value.gist_id == "a3"


@pytest.mark.parametrize(
    ("description", "files", "expected"),
    [
        ("Shopping", {"list.md": ""}, "Shopping"),
        ("  Padded  ", {"list.md": ""}, "Padded"),
        ("   ", {"Groceries.md": ""}, "Groceries"),
        (None, {"Groceries.md": ""}, "Groceries"),
        (None, {".md": ""}, UNTITLED_NOTE),
    ],
)
def test_title_precedence(description, files, expected) -> None:
    assert gist_to_note(_gist("t", files, description)).title == expected


def test_title_strips_only_the_suffix() -> None:
    note = gist_to_note(_gist("t", {"a.md.md": "x"}))
    assert note.title == "a.md"


def test_tags_are_collected_from_every_markdown_file() -> None:
    gist = _gist(
        "tags",
        {
            "One.md": "---\ntags: [Work]\n---\nplan #todo\n",
            "Two.md": "more #Ideas and `#notatag`\n",
            "skip.txt": "#ignored",
        },
    )
    assert gist_to_note(gist).tags == ["ideas", "todo", "work"]


def test_mapping_is_deterministic_and_does_not_mutate_input() -> None:
    gist = _gist("d", {"A.md": "a", "B.md": "b"}, "Desc")
    snapshot = copy.deepcopy(gist)

    assert gist_to_note(gist) == gist_to_note(gist)
    assert gist == snapshot


def test_gists_to_notes_skips_gists_without_markdown() -> None:
    gists = [
        _gist("1", {"a.md": "a"}),
        _gist("2", {"a.txt": "a"}),
        _gist("3", {"b.md": "b"}),
    ]
    assert [n.id for n in gists_to_notes(gists)] == ["1", "3"]


def test_search_matches_description_or_any_filename_case_insensitively() -> None:
    gists = [
        _gist("1", {"a.md": "foo in content only"}, "Nothing"),
        _gist("2", {"a.md": ""}, "My FOO list"),
        _gist("3", {"a.md": "", "Foobar.txt": ""}),
        _gist("4", {"x.txt": ""}, "foo but no markdown"),
    ]
    assert [n.id for n in gists_to_notes(gists, "foo")] == ["2", "3"]


@pytest.mark.parametrize("term", [None, "", "   "])
def test_empty_search_returns_every_eligible_note(term) -> None:
    gists = [_gist("1", {"a.md": ""}), _gist("2", {"b.md": ""}, "desc")]
    assert [n.id for n in gists_to_notes(gists, term)] == ["1", "2"]
