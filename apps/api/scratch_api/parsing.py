from __future__ import annotations

from dataclasses import dataclass

import yaml


@dataclass(frozen=True)
class FrontmatterParse:
    frontmatter: dict
    body: str
    error: str | None


@dataclass(frozen=True)
class ParsedMarkdown:
    frontmatter: dict
    frontmatter_error: str | None
    body: str
    tags: list[str]


def parse_frontmatter(markdown: str) -> FrontmatterParse:
    if not markdown.startswith("---"):
        return FrontmatterParse(frontmatter={}, body=markdown, error=None)

    first_newline = markdown.find("\n")
    if first_newline == -1:
        return FrontmatterParse(frontmatter={}, body=markdown, error=None)

    if markdown[:first_newline].rstrip("\r") != "---":
        return FrontmatterParse(frontmatter={}, body=markdown, error=None)

    # Closing fence is the next line that is exactly `---`
    search_from = first_newline + 1
    while True:
        next_newline = markdown.find("\n", search_from)
        if next_newline == -1:
            return FrontmatterParse(frontmatter={}, body=markdown, error=None)
        line = markdown[search_from:next_newline].rstrip("\r")
        if line == "---":
            yaml_block = markdown[first_newline + 1 : search_from]
            body = markdown[next_newline + 1 :]
            try:
                parsed = yaml.safe_load(yaml_block) or {}
            except yaml.YAMLError:
                return FrontmatterParse(frontmatter={}, body=markdown, error="frontmatter_yaml_error")
            if not isinstance(parsed, dict):
                return FrontmatterParse(frontmatter={}, body=markdown, error="frontmatter_not_mapping")
            return FrontmatterParse(frontmatter=parsed, body=body, error=None)
        search_from = next_newline + 1


def normalize_tag(tag: str) -> str:
    return tag.strip().lstrip("#").strip().lower()


def extract_frontmatter_tags(frontmatter: dict) -> list[str]:
    raw = frontmatter.get("tags")
    if isinstance(raw, str):
        values = [raw]
    elif isinstance(raw, list):
        values = [v for v in raw if isinstance(v, str)]
    else:
        return []
    return [t for t in (normalize_tag(v) for v in values) if t]


def parse_inline_tags(markdown_body: str) -> list[str]:
    tags: set[str] = set()

    in_fence = False
    in_inline_code = False
    i = 0
    length = len(markdown_body)

    while i < length:
        ch = markdown_body[i]

        if not in_inline_code and (i == 0 or markdown_body[i - 1] == "\n") and markdown_body.startswith("```", i):
            in_fence = not in_fence
            i += 3
            continue

        if in_fence:
            i += 1
            continue

        if ch == "`":
            in_inline_code = not in_inline_code
            i += 1
            continue

        if in_inline_code:
            i += 1
            continue

        # Markdown headings (`# Title`) are not tags: a tag needs a word char right after `#`.
        if ch == "#" and (i == 0 or markdown_body[i - 1].isspace()):
            j = i + 1
            while j < length and (markdown_body[j].isalnum() or markdown_body[j] in {"_", "-", "/"}):
                j += 1
            if j > i + 1:
                tag = normalize_tag(markdown_body[i:j])
                if tag:
                    tags.add(tag)
                i = j
                continue

        i += 1

    return sorted(tags)


def parse_markdown(markdown: str) -> ParsedMarkdown:
    fm = parse_frontmatter(markdown)
    tags = sorted(set(extract_frontmatter_tags(fm.frontmatter)).union(parse_inline_tags(fm.body)))
    return ParsedMarkdown(
        frontmatter=fm.frontmatter,
        frontmatter_error=fm.error,
        body=fm.body,
        tags=tags,
    )
