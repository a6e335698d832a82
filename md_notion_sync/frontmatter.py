"""
Front-matter parsing and Notion sync metadata.

A Markdown file opts into syncing with a YAML block at the very top:

    ---
    notion_page: https://www.notion.so/team/Design-Notes-0123456789abcdef0123456789abcdef
    title: Design Notes
    ---
"""

from dataclasses import dataclass
from typing import Any, Optional

import yaml

from .errors import SyncError

PAGE_REF_KEY = "notion_page"
TITLE_KEY = "title"

_MISSING = object()


class FrontMatterError(SyncError):
    """The leading metadata block is not valid YAML."""


@dataclass(frozen=True)
class ParsedMarkdown:
    frontmatter: dict[str, Any]
    body: str


@dataclass(frozen=True)
class SyncMetadata:
    """Validated sync target of a Markdown file."""

    page_ref: str
    title: Optional[str] = None


def parse_frontmatter(markdown_text: str) -> ParsedMarkdown:
    """
    Split a document into its YAML front matter and body.

    Documents without a leading ``---`` fence, or without a closing
    one, have no front matter and are returned whole as the body.

    Raises:
        FrontMatterError: If the fenced block is not valid YAML.
    """
    lines = markdown_text.splitlines()
    if not lines or lines[0].strip() != "---":
        return ParsedMarkdown(frontmatter={}, body=markdown_text)

    end_idx = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end_idx = i
            break
    if end_idx is None:
        return ParsedMarkdown(frontmatter={}, body=markdown_text)

    fm_text = "\n".join(lines[1:end_idx]).strip()
    body = "\n".join(lines[end_idx + 1:]).lstrip("\n")

    try:
        fm = yaml.safe_load(fm_text) if fm_text else {}
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid YAML front matter: {e}") from e

    if fm is None or not isinstance(fm, dict):
        fm = {}
    return ParsedMarkdown(frontmatter=fm, body=body)


def read_sync_metadata(frontmatter: dict[str, Any]) -> Optional[SyncMetadata]:
    """
    Pull the sync target out of parsed front matter.

    Returns None when the file does not ask to be synced: ``notion_page``
    is missing or not a string, or ``title`` is present but not a string
    (an empty ``title:`` is YAML null and counts as the wrong type).
    """
    page_ref = frontmatter.get(PAGE_REF_KEY)
    if not isinstance(page_ref, str):
        return None

    title = frontmatter.get(TITLE_KEY, _MISSING)
    if title is _MISSING:
        return SyncMetadata(page_ref=page_ref)
    if not isinstance(title, str):
        return None

    return SyncMetadata(page_ref=page_ref, title=title)


def extract_page_id(page_ref: str) -> str:
    """
    Derive the page id from a page reference.

    Notion URLs end in ``<slug>-<id>``, so the id is the last
    hyphen-delimited segment of the last path segment once any query
    string or fragment is dropped. A bare id passes through unchanged.

    Examples:
        "abc-def-1234abcd" -> "1234abcd"
        "https://www.notion.so/Notes-0123abcd?pvs=4" -> "0123abcd"
        "" -> ""

    Returns:
        The id, or an empty string when none can be extracted.
    """
    ref = page_ref.split("#", 1)[0].split("?", 1)[0].strip()
    return ref.rsplit("/", 1)[-1].split("-")[-1]
