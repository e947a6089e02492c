"""Utility functions for inkpress.

Small helpers shared by the build, the CLI and the preview server.

Key functions:
    slug_from_path: Derive a post slug from its source filename.
    slugify: Convert free text (e.g. a post title) to a URL slug.
    is_markdown: Check if a path is a Markdown file.
    iter_markdown_files: List Markdown files directly inside a directory.
    ensure_clean_dir: Ensure a directory exists and is empty.
    relative_to_root: Display form of a path relative to the project root.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path


def slug_from_path(path: Path) -> str:
    """Return the slug for a source file: its filename without the extension.

    Examples:
        >>> slug_from_path(Path("writing/posts/hello-world.md"))
        'hello-world'
    """
    return path.stem


def slugify(text: str) -> str:
    """Convert free text to a lowercase, hyphenated slug.

    Args:
        text: Text such as a post title.

    Returns:
        URL-friendly slug, or "untitled" when nothing usable remains.

    Examples:
        >>> slugify("Hello, World!")
        'hello-world'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", text)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "untitled"


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"


def iter_markdown_files(directory: Path) -> list[Path]:
    """List Markdown files directly inside a directory (not recursive).

    Args:
        directory: Directory to scan.

    Returns:
        Sorted list of Markdown file paths; empty if the directory is missing.
    """
    if not directory.is_dir():
        return []
    return sorted(
        path for path in directory.iterdir() if path.is_file() and is_markdown(path)
    )


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def relative_to_root(path: Path, root: Path) -> str:
    """Return path relative to root for display, or the full path if outside it."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)
