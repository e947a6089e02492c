"""Page assembly for inkpress.

Each page kind renders an inner content template and nests the result into
the ``base.html`` shell under the ``content`` placeholder.

Key functions:
- render_post: A single post page.
- render_index: The home page listing every post, newest first.
- render_about: The about page, with the back-link footer.
- render_not_found: The 404 page.
- sort_posts / parse_post_date / format_post_date: Date handling for the index.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from .config import SiteConfig
from .content import Document
from .templates import TemplateLoader, render_template

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_EXTRA_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%B %d, %Y", "%b %d, %Y", "%d %B %Y")

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)

ABOUT_FALLBACK = Document(
    title="About",
    subtitle="",
    description="About this site",
    date=None,
    template="about",
    uses_math=False,
    uses_code=False,
    body="<p>About page content.</p>",
    slug="about",
)


def parse_post_date(value: str | None) -> datetime | None:
    """Parse a frontmatter date into an aware UTC datetime.

    Accepts ISO-8601 (date only, or with time and optional ``Z``/offset) and a
    few written-out forms. Values without a timezone are taken as UTC.

    Args:
        value: Raw date text, or None.

    Returns:
        The parsed datetime, or None if absent or unparseable.
    """
    if not value:
        return None
    text = value.strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(
            text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        )
    except ValueError:
        for fmt in _EXTRA_DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        return None


def format_post_date(value: str | None) -> str:
    """Format a post date for the index, e.g. ``Sun Dec 28 '25``.

    Args:
        value: Raw date text, or None.

    Returns:
        The formatted label; the original text if it cannot be parsed;
        an empty string if there is no date.
    """
    if not value:
        return ""
    parsed = parse_post_date(value)
    if parsed is None:
        return value
    weekday = WEEKDAYS[parsed.weekday()]
    month = MONTHS[parsed.month - 1]
    return f"{weekday} {month} {parsed.day} '{parsed.year % 100:02d}"


def sort_posts(posts: Iterable[Document]) -> list[Document]:
    """Sort posts newest first; posts without a usable date go last."""
    return sorted(
        posts,
        key=lambda post: parse_post_date(post.date) or _EARLIEST,
        reverse=True,
    )


def head_extras(doc: Document, config: SiteConfig) -> str:
    """Return the head snippets a document asks for."""
    extras = ""
    if doc.uses_math:
        extras += config.math_head
    if doc.uses_code:
        extras += config.code_head
    return extras


def render_footer(config: SiteConfig, back_link: bool = False) -> str:
    """Render the fixed footer block.

    Args:
        config: Site configuration (for the author name).
        back_link: Use the variant with an arrow back to the index.

    Returns:
        Footer HTML.
    """
    if back_link:
        link = '<a href="/index.html" class="footer-back-arrow" aria-label="Back to notes"></a>'
    else:
        link = '<a href="/about.html" class="footer-about-link">about</a>'
    return f'<div class="fixed-footer">{link}<span>&copy; {config.author}</span></div>'


def _render_shell(
    loader: TemplateLoader,
    config: SiteConfig,
    *,
    title: str,
    description: str,
    body_class: str,
    content: str,
    head_extra: str = "",
    back_link: bool = False,
) -> str:
    return render_template(
        loader.load("base.html"),
        {
            "title": title,
            "description": description,
            "head_extra": head_extra,
            "body_class": body_class,
            "content": content,
            "footer": render_footer(config, back_link=back_link),
        },
    )


def render_post(doc: Document, loader: TemplateLoader, config: SiteConfig) -> str:
    """Render a post page."""
    post_content = render_template(
        loader.load("post.html"),
        {
            "title": doc.title,
            "subtitle": doc.subtitle,
            "body": doc.body,
            # Footnotes are already part of body; the slot stays for old templates.
            "footnotes": "",
        },
    )
    return _render_shell(
        loader,
        config,
        title=doc.title,
        description=doc.description,
        body_class="post-page",
        content=post_content,
        head_extra=head_extras(doc, config),
    )


def render_post_list(posts: Iterable[Document]) -> str:
    """Render the ``<li>`` entries of the index listing, newest first."""
    items = []
    for post in sort_posts(posts):
        date_html = f'<span class="post-date">{format_post_date(post.date)}</span>'
        title_html = f'<a href="posts/{post.slug}/">{post.title}</a>'
        items.append(f'  <li class="post-list-item">{date_html}{title_html}</li>')
    return "\n".join(items)


def render_index(
    posts: Iterable[Document],
    loader: TemplateLoader,
    config: SiteConfig,
    index_doc: Document | None = None,
) -> str:
    """Render the home page.

    Args:
        posts: Every parsed post.
        loader: Template loader.
        config: Site configuration, for fallback title and description.
        index_doc: Parsed index.md, if the site has one.

    Returns:
        Index page HTML.
    """
    index_content = render_template(
        loader.load("index.html"), {"post_list": render_post_list(posts)}
    )
    if index_doc is not None:
        title, description = index_doc.title, index_doc.description
    else:
        title, description = config.site_title, config.site_description
    return _render_shell(
        loader,
        config,
        title=title,
        description=description,
        body_class="centered-list",
        content=index_content,
    )


def render_about(
    loader: TemplateLoader, config: SiteConfig, about_doc: Document | None = None
) -> str:
    """Render the about page, falling back to placeholder content."""
    doc = about_doc or ABOUT_FALLBACK
    about_content = render_template(
        loader.load("about.html"), {"title": doc.title, "content": doc.body}
    )
    return _render_shell(
        loader,
        config,
        title=doc.title,
        description=doc.description,
        body_class="hero",
        content=about_content,
        head_extra=head_extras(doc, config),
        back_link=True,
    )


def render_not_found(loader: TemplateLoader, config: SiteConfig) -> str:
    """Render the 404 page."""
    return _render_shell(
        loader,
        config,
        title="404 Not Found",
        description="Page not found",
        body_class="error-page",
        content=loader.load("404.html"),
    )
