"""Site building functionality for inkpress.

This module drives the build: it parses every post, renders the post, index,
about and 404 pages, writes them with clean URLs and copies the static assets.
Any error aborts the build; files already written are left in place.

Key functions:
- build_site: Main function to build the entire site.
- load_posts: Parses the posts directory and rejects duplicate slugs.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import SiteConfig, load_config
from .content import Document, parse_document
from .emitter import Emitter
from .errors import BuildError
from .pages import render_about, render_index, render_not_found, render_post
from .templates import TemplateLoader
from .utils import ensure_clean_dir, iter_markdown_files

__all__ = ["BuildError", "BuildResult", "build_site", "load_posts"]

STEPS = 5


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts: Parsed posts, in discovery order.
        output_dir: Directory where the site was built.
        written: Every file written or copied.
    """

    posts: list[Document]
    output_dir: Path
    written: list[Path]


def _step(number: int, message: str) -> None:
    print(f"\n[{number}/{STEPS}] {message}")


def load_posts(posts_dir: Path) -> list[Document]:
    """Parse every Markdown file directly inside posts_dir.

    Args:
        posts_dir: Source directory for posts.

    Returns:
        Parsed posts, sorted by filename.

    Raises:
        BuildError: If a file cannot be read, or two posts share a slug.
    """
    paths = iter_markdown_files(posts_dir)
    print(f"  Found {len(paths)} posts")
    posts: list[Document] = []
    seen: dict[str, Path] = {}
    for path in paths:
        print(f"  Parsing: {path.name}")
        doc = parse_document(path)
        # Compare case-insensitively: on macOS/Windows these would share a directory.
        key = doc.slug.casefold()
        if key in seen:
            raise BuildError(
                path,
                f"Duplicate slug '{doc.slug}' (already used by {seen[key].name})",
            )
        seen[key] = path
        posts.append(doc)
    return posts


def _optional_document(path: Path) -> Document | None:
    return parse_document(path) if path.exists() else None


def build_site(
    project_root: Path,
    config: SiteConfig | None = None,
    clean_output: bool = False,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        config: Site configuration; loaded from inkpress.yaml when omitted.
        clean_output: Whether to wipe the output directory before building.

    Returns:
        BuildResult with the parsed posts, output directory and written files.

    Raises:
        BuildError: On any unreadable source, missing template or asset,
            or duplicate slug.
    """
    config = config or load_config(project_root)
    output_dir = config.output_path(project_root)
    posts_out = output_dir / config.posts_subdir
    writing_dir = config.writing_path(project_root)
    theme_dir = config.theme_path(project_root)
    emitter = Emitter(project_root)
    loader = TemplateLoader(config.templates_path(project_root))

    print("=" * 60)
    print("BUILDING SITE")
    print("=" * 60)

    _step(1, "Preparing output directories...")
    if clean_output:
        ensure_clean_dir(output_dir)
    emitter.ensure_dir(output_dir)
    emitter.ensure_dir(posts_out)

    _step(2, "Parsing markdown posts...")
    posts = load_posts(config.posts_source_path(project_root))

    _step(3, "Rendering posts...")
    for doc in posts:
        emitter.write_text(
            posts_out / doc.slug / "index.html", render_post(doc, loader, config)
        )

    _step(4, "Rendering main pages...")
    index_doc = _optional_document(writing_dir / "index.md")
    about_doc = _optional_document(writing_dir / "about.md")
    emitter.write_text(
        output_dir / "index.html", render_index(posts, loader, config, index_doc)
    )
    emitter.write_text(output_dir / "about.html", render_about(loader, config, about_doc))
    emitter.write_text(output_dir / "404.html", render_not_found(loader, config))

    _step(5, "Copying static assets...")
    for name in config.static_assets:
        emitter.copy(theme_dir / name, output_dir / name)

    print("\n" + "=" * 60)
    print("BUILD COMPLETE!")
    print("=" * 60)
    return BuildResult(posts=posts, output_dir=output_dir, written=emitter.written)
