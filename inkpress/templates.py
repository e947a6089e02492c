"""Template loading and placeholder substitution for inkpress.

Templates are plain HTML files with ``{{name}}`` placeholders. Substitution is
a single pass over the template: values are inserted literally and are never
scanned for further placeholders.

Key items:
- render_template: Substitute placeholders from a mapping.
- TemplateLoader: Reads template files from the theme directory.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .errors import BuildError

PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}\s]+)\s*\}\}")

__all__ = ["PLACEHOLDER_RE", "TemplateLoader", "render_template"]


def render_template(template: str, values: Mapping[str, Any]) -> str:
    """Replace ``{{ key }}`` placeholders with values.

    Whitespace inside the braces is ignored. Placeholders whose name is not in
    ``values`` are left in the output unchanged.

    Args:
        template: Template text.
        values: Placeholder names mapped to replacement values.

    Returns:
        The substituted text.

    Examples:
        >>> render_template("<h1>{{ title }}</h1>", {"title": "Costs $5"})
        '<h1>Costs $5</h1>'
    """

    def repl(match: re.Match) -> str:
        name = match.group(1)
        if name not in values:
            return match.group(0)
        return str(values[name])

    return PLACEHOLDER_RE.sub(repl, template)


class TemplateLoader:
    """Loads template files by name.

    Attributes:
        templates_dir: Directory containing the template files.
    """

    def __init__(self, templates_dir: Path):
        self.templates_dir = templates_dir
        self._cache: dict[str, str] = {}

    def load(self, name: str) -> str:
        """Return the contents of a template.

        Args:
            name: Template filename, e.g. "base.html".

        Returns:
            Template text.

        Raises:
            BuildError: If the template is missing or unreadable.
        """
        if name not in self._cache:
            path = self.templates_dir / name
            try:
                self._cache[name] = path.read_text(encoding="utf-8")
            except FileNotFoundError as exc:
                raise BuildError(path, f"Template not found: {name}", exc) from exc
            except (OSError, UnicodeDecodeError) as exc:
                raise BuildError(path, f"Could not read template: {exc}", exc) from exc
        return self._cache[name]
