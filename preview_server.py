"""
preview_server.py — Serve the built frontend locally for a quick look in a browser.
"""

from pathlib import Path
from typing import Optional

from aiohttp import web

from errors import PreviewServerError


class PreviewServer:
    def __init__(self, root_dir: Path, port: str, host: str = "0.0.0.0"):
        self.root_dir = Path(root_dir)
        self.static_dir = self.root_dir / "frontend" / "dist"
        self.port = int(port)
        self.host = host
        self._runner: Optional[web.AppRunner] = None

    @property
    def url(self) -> str:
        host = "localhost" if self.host in ("0.0.0.0", "") else self.host
        return f"http://{host}:{self.port}"

    def resolve(self, rel_path: str) -> Optional[Path]:
        """Map a request path to a file under static_dir, or None."""
        base = self.static_dir.resolve()
        target = (base / rel_path.lstrip("/")).resolve()
        if target != base and base not in target.parents:
            return None
        if target.is_dir():
            target = target / "index.html"
        return target if target.is_file() else None

    async def _serve(self, request: web.Request) -> web.StreamResponse:
        path = self.resolve(request.match_info.get("path", ""))
        if path is None:
            raise web.HTTPNotFound()
        return web.FileResponse(path)

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/{path:.*}", self._serve)
        return app

    async def start_background(self) -> str:
        """Start serving on the running event loop and return the URL."""
        if not self.static_dir.is_dir():
            print(f"[preview] ⚠️ {self.static_dir} does not exist yet; serving 404s until the frontend is built.")
        self._runner = web.AppRunner(self.make_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            await self._runner.cleanup()
            self._runner = None
            raise PreviewServerError(f"could not listen on port {self.port}: {e}") from e
        print(f"[preview] Serving {self.static_dir} → {self.url}")
        return self.url

    async def stop(self):
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
