"""Output writing for inkpress.

Creates output directories, writes rendered pages and copies static assets,
printing one line per file. Writes go straight to their final path; an
interrupted build can leave the output tree partially updated.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from .errors import BuildError
from .utils import relative_to_root


class Emitter:
    """Writes build output and records every file it produced.

    Attributes:
        project_root: Root used to shorten paths in log lines.
        written: Paths written or copied, in order.
    """

    def __init__(self, project_root: Path):
        self.project_root = project_root
        self.written: list[Path] = []

    def ensure_dir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def write_text(self, path: Path, content: str) -> None:
        """Write a UTF-8 text file, creating its parent directory."""
        self.ensure_dir(path.parent)
        path.write_text(content, encoding="utf-8")
        self.written.append(path)
        print(f"  + Wrote: {relative_to_root(path, self.project_root)}")

    def copy(self, src: Path, dest: Path) -> None:
        """Copy a file byte for byte.

        Raises:
            BuildError: If the source file does not exist.
        """
        if not src.is_file():
            raise BuildError(src, "Static asset not found")
        self.ensure_dir(dest.parent)
        shutil.copyfile(src, dest)
        self.written.append(dest)
        print(
            f"  + Copied: {relative_to_root(src, self.project_root)}"
            f" -> {relative_to_root(dest, self.project_root)}"
        )
