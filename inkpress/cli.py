"""Command-line interface for inkpress.

This module defines the CLI commands using Click framework.

Commands:
- new: Scaffold a new inkpress project.
- build: Build the site into the output directory.
- serve: Build, then run the preview server with live reload.
- md: Create a new post file interactively.
"""

from __future__ import annotations

import shutil
from datetime import date
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .config import load_config
from .utils import iter_markdown_files, slugify

# Path to the default project skeleton
_SCAFFOLD_DIR = Path(__file__).parent / "scaffold"

PROMPT_STYLE = questionary.Style(
    [("qmark", "fg:magenta bold"), ("question", "bold"), ("answer", "fg:magenta")]
)


@click.group()
@click.version_option(version=__version__, prog_name="inkpress")
def cli():
    """inkpress static site generator."""


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new inkpress project."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New inkpress site created at {target}")


@cli.command()
@click.option("--clean", is_flag=True, help="Empty the output directory first")
def build(clean: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_site

    try:
        result = build_site(project_root, load_config(project_root), clean_output=clean)
    except BuildError as exc:
        _report_build_error(exc, project_root)
        raise SystemExit(1) from None
    click.echo(f"\nGenerated {len(result.posts)} posts + index + about")
    click.echo(f"Output directory: {result.output_dir}")


@cli.command()
@click.option("--port", type=int, required=False, help="HTTP port (overrides inkpress.yaml)")
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Live reload websocket port (overrides inkpress.yaml ws_port)",
)
@click.option("--no-reload", is_flag=True, help="Disable live reload")
def serve(port: int | None, ws_port: int | None, no_reload: bool):
    """Build the site and serve it with live reload."""
    project_root = Path.cwd()
    from .build import BuildError
    from .server import DevServer

    server = DevServer(
        project_root, http_port=port, ws_port=ws_port, live_reload=not no_reload
    )
    try:
        server.start()
    except BuildError as exc:
        _report_build_error(exc, project_root)
        raise SystemExit(1) from None


@cli.command()
def md():
    """Create a new post interactively."""
    project_root = Path.cwd()
    config = load_config(project_root)
    if not config.writing_path(project_root).exists():
        raise click.ClickException(
            f"No {config.writing_dir}/ directory found. "
            "Run this command from an inkpress project root."
        )
    posts_dir = config.posts_source_path(project_root)

    title = _ask(
        questionary.text("Title:", validate=_required("Title"), style=PROMPT_STYLE)
    )
    slug = _ask(
        questionary.text(
            "Slug (file name without .md):",
            default=slugify(title),
            validate=_required("Slug"),
            style=PROMPT_STYLE,
        )
    )
    uses_math = _ask(
        questionary.confirm("Uses math?", default=False, style=PROMPT_STYLE)
    )
    uses_code = _ask(
        questionary.confirm("Contains code blocks?", default=False, style=PROMPT_STYLE)
    )

    target_path = _new_post_path(posts_dir, slug, project_root)
    posts_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(
        _post_skeleton(title, date.today(), uses_math, uses_code), encoding="utf-8"
    )
    click.echo(f"Created {target_path.relative_to(project_root)}")


def _ask(question):
    """Run a questionary prompt; Ctrl+C aborts the command."""
    answer = question.ask()
    if answer is None:
        raise click.Abort()
    return answer.strip() if isinstance(answer, str) else answer


def _required(label: str):
    return lambda value: bool(value.strip()) or f"{label} cannot be empty"


def _new_post_path(posts_dir: Path, slug: str, project_root: Path) -> Path:
    """Return the file for a new post, refusing slugs already taken.

    Slugs are compared case-insensitively, as the build does.
    """
    target_path = posts_dir / f"{slug}.md"
    if target_path.exists():
        raise click.ClickException(
            f"File already exists: {target_path.relative_to(project_root)}"
        )
    for existing in iter_markdown_files(posts_dir):
        if existing.stem.casefold() == slug.casefold():
            raise click.ClickException(
                f"A post with slug '{slug}' already exists: {existing.name}"
            )
    return target_path


def _post_skeleton(title: str, day: date, uses_math: bool, uses_code: bool) -> str:
    """Return the frontmatter and opening line of a new post."""
    frontmatter = {
        "title": title,
        "subtitle": "",
        "description": "",
        "date": day.isoformat(),
        "uses_math": uses_math,
        "uses_code": uses_code,
    }
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    return f"---\n{header}---\n\nStart writing here.\n"


def _report_build_error(exc, project_root: Path) -> None:
    try:
        rel_path = exc.source_path.relative_to(project_root)
    except ValueError:
        rel_path = exc.source_path
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Copy the packaged project skeleton into root.

    Args:
        root: Root directory for the new project.
    """
    shutil.copytree(
        _SCAFFOLD_DIR,
        root,
        dirs_exist_ok=True,
        ignore=shutil.ignore_patterns("__pycache__"),
    )
