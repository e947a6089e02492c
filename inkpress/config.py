"""Site configuration for inkpress.

Configuration is loaded once from an optional ``inkpress.yaml`` at the project
root and frozen into a :class:`SiteConfig` value. The build, the page assemblers
and the preview server all receive it explicitly.

Key items:
- SiteConfig: Immutable configuration value.
- load_config: Reads inkpress.yaml and applies defaults.
- MATHJAX_SCRIPTS / PRISMJS_SCRIPTS: Head snippets for math and code pages.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

CONFIG_FILE = "inkpress.yaml"

MATHJAX_SCRIPTS = r"""
  <!-- MathJax for LaTeX equations -->
  <script>
    MathJax = {
      tex: {
        inlineMath: [['$', '$'], ['\\(', '\\)']],
        displayMath: [['$$', '$$'], ['\\[', '\\]']]
      },
      svg: { fontCache: 'global' }
    };
  </script>
  <script id="MathJax-script" async src="https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"></script>
"""

PRISMJS_SCRIPTS = """
  <!-- Prism.js for syntax highlighting -->
  <script src="https://cdnjs.cloudflare.com/ajax/libs/prism/1.29.0/prism.min.js"></script>
  <script src="https://cdnjs.cloudflare.com/ajax/libs/prism/1.29.0/components/prism-python.min.js"></script>
"""

MIME_TYPES = MappingProxyType(
    {
        ".html": "text/html; charset=utf-8",
        ".css": "text/css; charset=utf-8",
        ".js": "application/javascript; charset=utf-8",
        ".json": "application/json; charset=utf-8",
        ".png": "image/png",
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".gif": "image/gif",
        ".svg": "image/svg+xml",
        ".ico": "image/x-icon",
        ".woff": "font/woff",
        ".woff2": "font/woff2",
        ".ttf": "font/ttf",
    }
)

# Keys that inkpress.yaml may override.
_OVERRIDABLE = (
    "writing_dir",
    "theme_dir",
    "output_dir",
    "posts_subdir",
    "static_assets",
    "site_title",
    "site_description",
    "author",
    "port",
    "ws_port",
)


@dataclass(frozen=True)
class SiteConfig:
    """Immutable site configuration.

    Attributes:
        writing_dir: Directory holding index.md, about.md and posts/.
        theme_dir: Directory holding templates/ and the static assets.
        output_dir: Directory the site is written to.
        posts_subdir: Name of the posts directory, both in source and output.
        static_assets: Files copied verbatim from theme_dir to output_dir.
        site_title: Index title used when there is no index.md.
        site_description: Index description used when there is no index.md.
        author: Name shown in the page footer.
        port: Preview server HTTP port.
        ws_port: Live reload websocket port (defaults to port + 1).
        math_head: Head snippet injected for pages with uses_math.
        code_head: Head snippet injected for pages with uses_code.
        mime_types: Extension to content type table for the preview server.
    """

    writing_dir: str = "writing"
    theme_dir: str = "theme"
    output_dir: str = "public"
    posts_subdir: str = "posts"
    static_assets: tuple[str, ...] = ("styles.css", "script.js", "favicon.svg")
    site_title: str = "Ink Dreams - Notes"
    site_description: str = "Notes and essays in a hand-drawn aesthetic."
    author: str = "Canaan McKenzie"
    port: int = 8000
    ws_port: int | None = None
    math_head: str = MATHJAX_SCRIPTS
    code_head: str = PRISMJS_SCRIPTS
    mime_types: Mapping[str, str] = field(default_factory=lambda: MIME_TYPES)

    @property
    def live_reload_port(self) -> int:
        """Return the websocket port, falling back to the HTTP port plus one."""
        return self.ws_port if self.ws_port is not None else self.port + 1

    def writing_path(self, project_root: Path) -> Path:
        return project_root / self.writing_dir

    def posts_source_path(self, project_root: Path) -> Path:
        return self.writing_path(project_root) / self.posts_subdir

    def theme_path(self, project_root: Path) -> Path:
        return project_root / self.theme_dir

    def templates_path(self, project_root: Path) -> Path:
        return self.theme_path(project_root) / "templates"

    def output_path(self, project_root: Path) -> Path:
        return project_root / self.output_dir


DEFAULT_CONFIG = SiteConfig()


def load_config(project_root: Path) -> SiteConfig:
    """Load site configuration from inkpress.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        SiteConfig with file values applied over the defaults.

    Raises:
        ValueError: If inkpress.yaml is not valid YAML.
    """
    config_path = project_root / CONFIG_FILE
    if not config_path.exists():
        return DEFAULT_CONFIG
    try:
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid {CONFIG_FILE}: {exc}") from exc
    if not isinstance(loaded, dict):
        return DEFAULT_CONFIG
    return replace(DEFAULT_CONFIG, **_coerce(loaded))


def _coerce(loaded: dict[str, Any]) -> dict[str, Any]:
    """Keep known keys and convert values to the types SiteConfig expects."""
    overrides: dict[str, Any] = {}
    for key in _OVERRIDABLE:
        if key not in loaded or loaded[key] is None:
            continue
        value = loaded[key]
        if key == "static_assets":
            if isinstance(value, str):
                value = [value]
            value = tuple(str(item) for item in value)
        elif key in ("port", "ws_port"):
            value = int(value)
        else:
            value = str(value)
        overrides[key] = value
    return overrides
