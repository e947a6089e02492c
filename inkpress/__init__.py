"""inkpress static site generator.

Reads Markdown posts with YAML frontmatter, renders them through plain
``{{placeholder}}`` HTML templates and writes a static site with clean URLs
(``posts/<slug>/index.html``) plus copied theme assets.

The main entry point is the CLI module, which provides commands for scaffolding
new projects, building sites, creating posts and running the preview server.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
