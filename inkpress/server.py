"""Development preview server for inkpress.

Serves the built site for local authoring:
- Maps ``/`` to index.html, directories and extensionless paths to their index.html.
- Answers unknown paths with 404.html and a 404 status.
- Refuses paths that escape the output directory with a 403.
- Injects a reload script into HTML responses, watches the writing and theme
  folders and rebuilds plus reloads open pages on change.

Key items:
- DevServer: Builds the site, serves it and rebuilds when sources change.
- LiveReload: Websocket endpoint that tells open pages to reload.
- source_signature: Snapshot of the source files, to skip no-op rebuilds.
- _PreviewHandler: HTTP request handler implementing the URL rules above.
"""

from __future__ import annotations

import asyncio
import functools
import json
import threading
import time
from collections.abc import Mapping
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote, urlsplit

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import BuildError, BuildResult, build_site
from .config import MIME_TYPES, SiteConfig, load_config

NOT_FOUND_FALLBACK = "<h1>404 Not Found</h1>"


class _PreviewHandler(SimpleHTTPRequestHandler):
    """HTTP request handler for the built site.

    Attributes:
        reload_script: Script injected before ``</body>`` in HTML responses.
        mime_types: Extension to content type table.
    """

    reload_script = ""
    mime_types: Mapping[str, str] = MIME_TYPES

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - send_head never lists
        return self._serve_404(self.path)

    def log_message(self, format, *args):
        # Request lines are printed by send_head.
        pass

    def _send_bytes(self, status: int, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _inject_reload(self, content: str) -> str:
        if not self.reload_script:
            return content
        if "</body>" in content:
            return content.replace("</body>", f"{self.reload_script}</body>")
        return content + self.reload_script

    def _serve_404(self, request_path: str):
        """Serve 404.html (when present) with a 404 status."""
        print(f"  404: {request_path} -> serving 404.html")
        error_page = Path(self.directory) / "404.html"
        if error_page.is_file():
            content = error_page.read_text(encoding="utf-8")
        else:
            content = NOT_FOUND_FALLBACK
        self._send_bytes(
            404, self._inject_reload(content).encode("utf-8"), "text/html; charset=utf-8"
        )
        return None

    def _serve_403(self, request_path: str):
        print(f"  403: {request_path}")
        self._send_bytes(403, b"Forbidden", "text/plain")
        return None

    def resolve_path(self, request_path: str) -> Path | None:
        """Map a URL path to a file under the served directory.

        Args:
            request_path: Decoded URL path, e.g. "/posts/hello/".

        Returns:
            The file to serve, None if nothing matches.

        Raises:
            PermissionError: If the path escapes the served directory.
        """
        segments = [part for part in request_path.replace("\\", "/").split("/") if part]
        if ".." in segments:
            raise PermissionError(request_path)
        root = Path(self.directory).resolve()
        target = root.joinpath(*segments).resolve() if segments else root
        if target != root and root not in target.parents:
            raise PermissionError(request_path)
        if target.is_dir():
            target = target / "index.html"
        elif not target.exists() and not target.suffix:
            target = target / "index.html"
        return target if target.is_file() else None

    def send_head(self):
        request_path = unquote(urlsplit(self.path).path) or "/"
        try:
            target = self.resolve_path(request_path)
        except PermissionError:
            return self._serve_403(request_path)
        if target is None:
            return self._serve_404(request_path)

        content_type = self.mime_types.get(
            target.suffix.lower(), "application/octet-stream"
        )
        if target.suffix.lower() == ".html":
            content = self._inject_reload(target.read_text(encoding="utf-8"))
            body = content.encode("utf-8")
        else:
            body = target.read_bytes()
        print(f"  200: {request_path}")
        self._send_bytes(200, body, content_type)
        return None


class LiveReload:
    """Websocket endpoint that tells open pages to reload.

    Pages pick up ``script`` through the preview handler and reconnect on
    every load. ``run`` blocks, so it is started on its own thread.
    """

    script_template = """
    <script>
    (() => {{
      const ws = new WebSocket('ws://' + location.hostname + ':{port}');
      ws.onmessage = (event) => {{
        const data = JSON.parse(event.data || '{{}}');
        if (data.type === 'reload') location.reload();
      }};
    }})();
    </script>
    """

    def __init__(self, port: int):
        self.port = port
        self.clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._closed: asyncio.Future | None = None

    @property
    def script(self) -> str:
        return self.script_template.format(port=self.port)

    def run(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._serve())
        except OSError as exc:
            print(f"Live reload disabled, port {self.port} unavailable: {exc}")

    async def _serve(self) -> None:  # pragma: no cover - integration path
        self._closed = self._loop.create_future()
        async with websockets.serve(self.register, "0.0.0.0", self.port):
            await self._closed

    async def register(self, websocket) -> None:
        """Track a connected page until its socket closes."""
        self.clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self.clients.discard(websocket)

    def notify(self) -> None:
        """Ask every open page to reload. Safe to call from any thread."""
        if self._loop.is_running():
            asyncio.run_coroutine_threadsafe(self.send_reload(), self._loop)

    async def send_reload(self) -> None:
        clients = list(self.clients)
        message = json.dumps({"type": "reload"})
        outcomes = await asyncio.gather(
            *(ws.send(message) for ws in clients), return_exceptions=True
        )
        for ws, outcome in zip(clients, outcomes):
            if isinstance(outcome, Exception):
                self.clients.discard(ws)

    def stop(self) -> None:
        if self._closed is not None and not self._closed.done():
            self._loop.call_soon_threadsafe(self._closed.set_result, None)


def source_signature(project_root: Path, config: SiteConfig) -> frozenset:
    """Snapshot every file the build reads as (path, mtime, size) entries.

    Args:
        project_root: Root directory of the project.
        config: Site configuration naming the writing and theme folders.

    Returns:
        A frozenset that changes whenever a source file is added, removed,
        edited or touched.
    """
    entries = set()
    for source_dir in (config.writing_path(project_root), config.theme_path(project_root)):
        if not source_dir.is_dir():
            continue
        for path in source_dir.rglob("*"):
            if not path.is_file():
                continue
            try:
                stat = path.stat()
            except OSError:
                continue
            rel = path.relative_to(project_root).as_posix()
            entries.add((rel, stat.st_mtime_ns, stat.st_size))
    return frozenset(entries)


class DevServer:
    """Preview server that rebuilds the site when its sources change.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        output_dir: Directory the built site is served from.
        http_port: Port for the HTTP server.
        live_reload: Websocket endpoint, None when live reload is off.
        last_build: Result of the most recent successful build.
        debounce_seconds: Quiet period after the last change before rebuilding.
    """

    def __init__(
        self,
        project_root: Path,
        config: SiteConfig | None = None,
        http_port: int | None = None,
        ws_port: int | None = None,
        live_reload: bool = True,
    ):
        self.project_root = project_root
        self.config = config or load_config(project_root)
        self.output_dir = self.config.output_path(project_root)
        self.http_port = int(http_port or self.config.port)
        if ws_port is None:
            # An explicit HTTP port moves the websocket port along with it.
            ws_port = self.http_port + 1 if http_port else self.config.live_reload_port
        self.live_reload = LiveReload(ws_port) if live_reload else None
        self.last_build: BuildResult | None = None
        self.debounce_seconds = 0.1
        self._signature: frozenset | None = None
        self._build_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._observer: Observer | None = None

    def handler_class(self) -> type[_PreviewHandler]:
        """Return a handler class bound to this server's settings."""
        return type(
            "_BoundPreviewHandler",
            (_PreviewHandler,),
            {
                "reload_script": self.live_reload.script if self.live_reload else "",
                "mime_types": self.config.mime_types,
            },
        )

    def start(self) -> None:  # pragma: no cover - integration path
        self.last_build = build_site(self.project_root, self.config)
        self._signature = source_signature(self.project_root, self.config)
        print("=" * 50)
        print("DEVELOPMENT SERVER")
        print("=" * 50)
        threading.Thread(target=self._serve_http, daemon=True).start()
        if self.live_reload:
            threading.Thread(target=self.live_reload.run, daemon=True).start()
            self.watch()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
        if self.live_reload:
            self.live_reload.stop()

    def _serve_http(self) -> None:  # pragma: no cover - integration path
        handler = functools.partial(self.handler_class(), directory=str(self.output_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        print(f"Serving {self.output_dir} at http://localhost:{self.http_port}")
        print("Press Ctrl+C to stop.")
        httpd.serve_forever()

    def source_dirs(self) -> list[Path]:
        return [
            self.config.writing_path(self.project_root),
            self.config.theme_path(self.project_root),
        ]

    def watch(self) -> None:
        """Start watching the writing and theme folders."""
        handler = _SourceChangeHandler(self)
        observer = Observer()
        for source_dir in self.source_dirs():
            if source_dir.is_dir():
                observer.schedule(handler, str(source_dir), recursive=True)
        observer.start()
        self._observer = observer

    def schedule_rebuild(self) -> None:
        """Rebuild once changes have been quiet for ``debounce_seconds``."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = threading.Timer(self.debounce_seconds, self.rebuild)
        self._timer.daemon = True
        self._timer.start()

    def rebuild(self) -> BuildResult | None:
        """Rebuild the site if its sources changed since the last good build.

        A failed build is reported and leaves ``last_build`` and the served
        files as they were.

        Returns:
            The new BuildResult, or None when skipped or failed.
        """
        if not self._build_lock.acquire(blocking=False):
            return None
        try:
            signature = source_signature(self.project_root, self.config)
            if signature == self._signature:
                return None
            print("Change detected; rebuilding...")
            try:
                result = build_site(self.project_root, self.config)
            except BuildError as exc:
                print(f"Build failed: {exc}")
                return None
            self.last_build = result
            self._signature = signature
        finally:
            self._build_lock.release()
        print(f"Rebuilt {len(result.posts)} posts, {len(result.written)} files written")
        if self.live_reload:
            self.live_reload.notify()
        return result


class _SourceChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(event.src_path)
        if path == self.server.output_dir or self.server.output_dir in path.parents:
            return
        self.server.schedule_rebuild()
