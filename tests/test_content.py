from pathlib import Path

import pytest

from inkpress.content import Document, extract_frontmatter, parse_document
from inkpress.errors import BuildError
from inkpress.renderers import escape_code, render_markdown


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_document_without_frontmatter_uses_defaults(tmp_path):
    doc = parse_document(write(tmp_path / "plain-note.md", "Just *text*.\n"))
    assert doc.title == "Untitled"
    assert doc.subtitle == ""
    assert doc.description == ""
    assert doc.date is None
    assert doc.template == "post"
    assert doc.uses_math is False
    assert doc.uses_code is False
    assert doc.slug == "plain-note"
    assert "<em>text</em>" in doc.body


def test_frontmatter_fields_are_read(tmp_path):
    source = write(
        tmp_path / "posts" / "hello-world.md",
        "---\n"
        "title: Hello <sup>2</sup>\n"
        "subtitle: A first note\n"
        "description: Short summary\n"
        "date: 2025-01-10\n"
        "template: post\n"
        "uses_math: true\n"
        "uses_code: true\n"
        "---\n"
        "# Heading\n\nBody text.\n",
    )
    doc = parse_document(source)
    assert doc.title == "Hello <sup>2</sup>"
    assert doc.subtitle == "A first note"
    assert doc.description == "Short summary"
    assert doc.date == "2025-01-10"
    assert doc.uses_math is True
    assert doc.uses_code is True
    assert doc.slug == "hello-world"
    assert "<h1>Heading</h1>" in doc.body
    assert "title:" not in doc.body


def test_feature_flags_require_real_booleans(tmp_path):
    doc = parse_document(
        write(tmp_path / "flags.md", '---\nuses_math: "yes"\nuses_code: 1\n---\nx\n')
    )
    assert doc.uses_math is False
    assert doc.uses_code is False


def test_unknown_template_and_empty_values_fall_back(tmp_path):
    doc = parse_document(
        write(tmp_path / "odd.md", "---\ntitle: ''\ntemplate: gallery\ndate:\n---\nx\n")
    )
    assert doc.title == "Untitled"
    assert doc.template == "post"
    assert doc.date is None


def test_date_frontmatter_keeps_text_as_written(tmp_path):
    doc = parse_document(
        write(tmp_path / "timed.md", "---\ndate: 2025-01-10 08:30:00\n---\nx\n")
    )
    assert doc.date == "2025-01-10 08:30:00"


def test_impossible_dates_are_kept_as_text(tmp_path):
    doc = parse_document(
        write(tmp_path / "feb.md", "---\ntitle: T\ndate: 2025-02-30\n---\nbody\n")
    )
    assert doc.title == "T"
    assert doc.date == "2025-02-30"
    assert "<p>body</p>" in doc.body

    data, _ = extract_frontmatter("---\ndate: 2025-13-01\n---\n")
    assert data == {"date": "2025-13-01"}


def test_bad_explicit_timestamp_falls_back_to_defaults():
    data, body = extract_frontmatter("---\ndate: !!timestamp 2025-02-30\n---\nbody")
    assert data == {}
    assert body == "body"


def test_byte_order_mark_does_not_hide_frontmatter(tmp_path):
    source = tmp_path / "bom.md"
    source.write_bytes("\ufeff---\ntitle: Real Title\n---\nbody\n".encode("utf-8"))
    doc = parse_document(source)
    assert doc.title == "Real Title"
    assert "\ufeff" not in doc.body
    assert "---" not in doc.body
    assert extract_frontmatter("\ufeff---\ntitle: T\n---\n")[0] == {"title": "T"}


def test_malformed_frontmatter_is_tolerated(tmp_path):
    doc = parse_document(
        write(tmp_path / "broken.md", "---\ntitle: [unclosed\n---\nStill here.\n")
    )
    assert doc.title == "Untitled"
    assert "Still here." in doc.body
    assert "unclosed" not in doc.body


def test_extract_frontmatter_variants():
    assert extract_frontmatter("no header") == ({}, "no header")
    assert extract_frontmatter("---\n---\nbody") == ({}, "body")
    assert extract_frontmatter("---\n- a\n- b\n---\nbody") == ({}, "body")
    data, body = extract_frontmatter("---\ntitle: T\n---")
    assert data == {"title": "T"}
    assert body == ""
    # A thematic break without a closing marker is body text.
    assert extract_frontmatter("---\nnot a header")[0] == {}


def test_missing_source_file_is_fatal(tmp_path):
    with pytest.raises(BuildError) as excinfo:
        parse_document(tmp_path / "missing.md")
    assert excinfo.value.source_path == tmp_path / "missing.md"
    assert "Could not read" in excinfo.value.message


def test_code_block_gets_language_hook_and_escaping():
    html = render_markdown('```python\nif a < b && c > d:\n    print("<x>")\n```\n')
    assert '<pre><code class="language-python">' in html
    assert "a &lt; b &amp;&amp; c &gt; d" in html
    assert "&lt;x&gt;" in html
    assert "<x>" not in html


def test_code_block_without_language_has_no_class():
    html = render_markdown("```\nplain\n```\n")
    assert "<pre><code>plain" in html
    assert "language-" not in html


def test_code_block_uses_first_word_of_info():
    html = render_markdown("```js title=app.js\nlet x;\n```\n")
    assert 'class="language-js"' in html


def test_code_block_language_cannot_break_out_of_class():
    html = render_markdown('```a"onclick=x\ncode\n```\n')
    assert "onclick" not in html
    assert "<pre><code>code" in html
    assert 'class="language-c++"' in render_markdown("```c++\nint x;\n```\n")


def test_footnotes_are_appended_to_body():
    html = render_markdown("Claim.[^1]\n\nMore text.\n\n[^1]: Source here.\n")
    assert '<section class="footnotes">' in html
    assert "Source here." in html
    assert html.index("More text.") < html.index('<section class="footnotes">')


def test_inline_html_passes_through():
    html = render_markdown("E = mc<sup>2</sup> and <s>old</s> text.\n")
    assert "<sup>2</sup>" in html
    assert "<s>old</s>" in html


def test_escape_code():
    assert escape_code("<a & b>") == "&lt;a &amp; b&gt;"


def test_document_is_immutable():
    doc = Document.from_frontmatter({}, "<p>x</p>", "slug")
    with pytest.raises(AttributeError):
        doc.title = "Changed"
