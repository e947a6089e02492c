"""Content loading for inkpress.

Reads a Markdown source file, splits the YAML frontmatter from the body,
renders the body to HTML and returns an immutable Document.

Key items:
- Document: Frozen dataclass for one parsed source file.
- extract_frontmatter: Split a YAML header from Markdown text.
- parse_document: Read and parse one source file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from .errors import BuildError
from .renderers import render_markdown
from .utils import slug_from_path

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)

TEMPLATE_KINDS = ("post", "index", "about")

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _FrontmatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps bare dates as the text written."""


_FrontmatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    A header that is not valid YAML, or not a mapping, yields an empty dict;
    it is still removed from the body. Dates are returned as written, so an
    impossible date such as 2025-02-30 stays a string. A leading byte order
    mark is ignored.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content).
    """
    text = text.removeprefix("\ufeff")
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    body = text[match.end() :]
    try:
        data = yaml.load(match.group(1) or "", Loader=_FrontmatterLoader) or {}
    except (yaml.YAMLError, ValueError):
        return {}, body
    if not isinstance(data, dict):
        return {}, body
    return data, body


def _text(value: Any, default: str = "") -> str:
    if value is None or value == "":
        return default
    return str(value)


def _date_text(value: Any) -> str | None:
    # Explicit !!timestamp values still arrive as date objects.
    if isinstance(value, date):
        return value.isoformat()
    text = _text(value)
    return text or None


@dataclass(frozen=True)
class Document:
    """A parsed source document.

    Attributes:
        title: Page title, "Untitled" when missing.
        subtitle: Optional subtitle.
        description: Meta description.
        date: Raw date text from the frontmatter, None when absent.
        template: One of "post", "index" or "about".
        uses_math: Whether math typesetting scripts are injected.
        uses_code: Whether syntax highlighting scripts are injected.
        body: Rendered HTML body, footnotes included.
        slug: Source filename without extension.
    """

    title: str
    subtitle: str
    description: str
    date: str | None
    template: str
    uses_math: bool
    uses_code: bool
    body: str
    slug: str

    @classmethod
    def from_frontmatter(cls, data: dict[str, Any], body: str, slug: str) -> Document:
        """Build a Document, applying every field default in one place."""
        template = _text(data.get("template"), "post")
        if template not in TEMPLATE_KINDS:
            template = "post"
        return cls(
            title=_text(data.get("title"), "Untitled"),
            subtitle=_text(data.get("subtitle")),
            description=_text(data.get("description")),
            date=_date_text(data.get("date")),
            template=template,
            uses_math=data.get("uses_math") is True,
            uses_code=data.get("uses_code") is True,
            body=body,
            slug=slug,
        )


def parse_document(path: Path) -> Document:
    """Read a Markdown source file and build a Document.

    Args:
        path: Path to a UTF-8 Markdown file.

    Returns:
        The parsed Document.

    Raises:
        BuildError: If the file cannot be read.
    """
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise BuildError(path, f"Could not read source file: {exc}", exc) from exc
    frontmatter, markdown = extract_frontmatter(raw)
    return Document.from_frontmatter(
        frontmatter, render_markdown(markdown), slug_from_path(path)
    )
