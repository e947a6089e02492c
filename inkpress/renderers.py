"""Markdown rendering for inkpress.

Converts post bodies to HTML with mistune. Code blocks are not highlighted at
build time; they carry a ``language-<tag>`` class so Prism.js can pick them up
in the browser.

Key items:
- CodeHookRenderer: mistune HTML renderer with hook-class code blocks.
- render_markdown: Markdown to HTML with footnotes and inline HTML.
"""

from __future__ import annotations

import re

import mistune

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]

LANGUAGE_TAG_RE = re.compile(r"[\w+#.-]+")


def escape_code(code: str) -> str:
    """Entity-escape ``&``, ``<`` and ``>`` in code content."""
    return code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


class CodeHookRenderer(mistune.HTMLRenderer):
    """HTML renderer that passes inline HTML through and tags code blocks."""

    def __init__(self):
        super().__init__(escape=False)

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a fenced or indented code block.

        Args:
            code: The code content.
            info: Info string of a fenced block (e.g. 'python').

        Returns:
            ``<pre><code>`` markup with escaped content and an optional
            ``language-<tag>`` class taken from the first word of info. Tags
            with characters outside letters, digits and ``+#.-_`` are dropped.
        """
        lang = info.split(None, 1)[0] if info and info.strip() else ""
        if not LANGUAGE_TAG_RE.fullmatch(lang):
            lang = ""
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_code(code)}</code></pre>\n"


def render_markdown(text: str) -> str:
    """Render Markdown to HTML.

    Footnote definitions are collected and appended as a
    ``<section class="footnotes">`` at the end of the output.

    Args:
        text: Markdown source.

    Returns:
        Rendered HTML.
    """
    markdown = mistune.create_markdown(
        renderer=CodeHookRenderer(), plugins=MARKDOWN_PLUGINS
    )
    return markdown(text)
