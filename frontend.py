"""
frontend.py — Drive the web frontend: dev server, production build, and
copying the build output into the native shell projects.
"""

import asyncio
import shutil
from pathlib import Path
from typing import Iterable, Optional

import config
import runner
from errors import BuildFailed, CopyFailed, StartFailed, ToolchainNotFound


class DevServer:
    """Handle for a background server process owned by the orchestrator."""

    def __init__(self, name: str, proc: asyncio.subprocess.Process):
        self.name = name
        self.proc = proc

    @property
    def running(self) -> bool:
        return self.proc.returncode is None

    async def stop(self, grace: float = 5):
        if not self.running:
            return
        print(f"[{self.name}] Stopping (pid={self.proc.pid})...")
        self.proc.terminate()
        try:
            await asyncio.wait_for(self.proc.wait(), timeout=grace)
        except asyncio.TimeoutError:
            self.proc.kill()
            await self.proc.wait()


class Frontend:
    def __init__(self, root_dir: Path):
        self.root_dir = Path(root_dir)
        self.frontend_dir = self.root_dir / "frontend"
        self.dist_dir = self.frontend_dir / "dist"
        self.mobile_targets = {
            "android": self.root_dir / "mobile-shell" / "android" / "app" / "src" / "main" / "assets" / "www",
            "ios": self.root_dir / "mobile-shell" / "ios" / "www",
        }

    async def start_dev_server(self, port: str = config.DEV_PORT) -> DevServer:
        """Launch `npm run dev` in the background and return once it is up."""
        print(f"[frontend] Starting dev server on port {port}...")
        cmd = [config.NPM_BIN, "run", "dev", "--", "--port", port]
        try:
            proc = await runner.spawn(cmd, cwd=self.frontend_dir)
        except ToolchainNotFound as e:
            raise StartFailed(str(e)) from e

        # A server that dies straight away (bad script, port in use) never comes up.
        try:
            await asyncio.wait_for(proc.wait(), timeout=config.SPAWN_SETTLE_SECONDS)
        except asyncio.TimeoutError:
            print(f"[frontend] Dev server running (pid={proc.pid})")
            return DevServer("frontend", proc)
        raise StartFailed(f"dev server exited immediately with status {proc.returncode}")

    async def build(self):
        print("[frontend] Building frontend for production...")
        result = await runner.run_cmd(
            [config.NPM_BIN, "run", "build"],
            cwd=self.frontend_dir,
            timeout=config.timeout_or_none(config.NPM_TIMEOUT),
        )
        result.check(BuildFailed, "npm run build")

    def copy_targets(self, platforms: Optional[Iterable[str]] = None) -> list[Path]:
        if platforms:
            return [self.mobile_targets[p] for p in platforms]
        # No explicit target: every shell project that exists on disk.
        return [
            dest for name, dest in self.mobile_targets.items()
            if (self.root_dir / "mobile-shell" / name).is_dir()
        ]

    def copy_build_to_mobile(self, platforms: Optional[Iterable[str]] = None) -> list[Path]:
        """Replace each shell project's web assets with the current build output."""
        if not self.dist_dir.is_dir():
            raise CopyFailed(f"frontend build output not found at {self.dist_dir}")

        copied = []
        for dest in self.copy_targets(platforms):
            print(f"[frontend] Copying {self.dist_dir} → {dest}")
            try:
                if dest.exists():
                    shutil.rmtree(dest)
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copytree(self.dist_dir, dest)
            except OSError as e:
                raise CopyFailed(f"could not copy build output to {dest}: {e}") from e
            copied.append(dest)
        return copied
