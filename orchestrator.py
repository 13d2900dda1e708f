"""
orchestrator.py — Sequence frontend, native, and preview steps for one run.

Two modes, picked by BuildConfiguration.dev_mode:
  - dev:   start the dev server in the background → device preview (best-effort)
           or local preview server → wait until stopped
  - build: frontend build → copy into shell projects → native builds
           → device install/launch when preview is requested

Every step failure is wrapped in an OrchestrationError naming the step.
Build mode stops at the first failure; dev mode only tolerates device
preview failures.
"""

import asyncio
from contextlib import contextmanager
from typing import Optional, Union

from config import BuildConfiguration
from errors import MobileError, OrchestrationError, UnsupportedPlatform
from expo import Expo
from frontend import DevServer, Frontend
from platforms import AndroidPlatform, iOSPlatform
from preview_server import PreviewServer


@contextmanager
def step(name: str):
    try:
        yield
    except MobileError as e:
        raise OrchestrationError(name, e) from e


class Orchestrator:
    def __init__(self, cfg: BuildConfiguration):
        self.config = cfg
        self.frontend = Frontend(cfg.root_dir)
        self.android = AndroidPlatform(cfg.root_dir)
        self.ios = iOSPlatform(cfg.root_dir)
        self.expo = Expo(cfg.root_dir)
        self.preview_server = PreviewServer(cfg.root_dir, cfg.preview_port)

        # Background work owned for the lifetime of a dev-mode run.
        self.dev_server: Optional[DevServer] = None
        self.expo_task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

    def builder(self, platform: str) -> Union[AndroidPlatform, iOSPlatform]:
        return {"android": self.android, "ios": self.ios}[platform]

    async def run(self):
        if self.config.dev_mode:
            return await self.run_dev_mode()
        return await self.run_build_mode()

    def stop(self):
        self._stop.set()

    # ── Development mode ─────────────────────────────────────────────────────

    async def run_dev_mode(self):
        print("[run] Running in development mode...")
        try:
            if self.config.use_expo:
                await self.start_expo_dev_server()
            else:
                with step("start dev server"):
                    self.dev_server = await self.frontend.start_dev_server(self.config.dev_port)

                if self.config.preview:
                    try:
                        await self.setup_device_preview()
                    except OrchestrationError as e:
                        print(f"[run] ⚠️ Warning: preview setup issue: {e}")
                else:
                    with step("start preview server"):
                        await self.preview_server.start_background()

            await self.wait()
        finally:
            await self.shutdown()

    async def start_expo_dev_server(self):
        with step("expo setup"):
            await self.expo.setup()
        platform = (self.config.preview_platform if self.config.preview else None) or "web"
        self.expo_task = asyncio.create_task(self.expo.start_dev_server(platform))

    async def wait(self):
        """Block until stop() is called or the Expo dev server gives up."""
        stop_waiter = asyncio.create_task(self._stop.wait())
        waiters = {stop_waiter}
        if self.expo_task is not None:
            waiters.add(self.expo_task)

        done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        if stop_waiter not in done:
            stop_waiter.cancel()
        if self.expo_task is not None and self.expo_task in done:
            with step("expo dev server"):
                self.expo_task.result()

    async def shutdown(self):
        if self.expo_task is not None and not self.expo_task.done():
            self.expo_task.cancel()
            try:
                await self.expo_task
            except asyncio.CancelledError:
                pass
        if self.dev_server is not None:
            await self.dev_server.stop()
        await self.preview_server.stop()

    # ── Device preview ───────────────────────────────────────────────────────

    async def setup_device_preview(self):
        """Forward the dev port (Android with a device id), then install and launch."""
        cfg = self.config
        platform = cfg.preview_platform
        if platform is None:
            print("[run] ⚠️ Preview requested but no platform is targeted.")
            return

        if platform == "android" and cfg.device_id:
            with step("android port forwarding"):
                await self.android.setup_port_forwarding(cfg.device_id, cfg.dev_port)

        builder = self.builder(platform)
        with step(f"{platform} install"):
            await builder.install_app(cfg.device_id)
        with step(f"{platform} launch"):
            await builder.launch_app(cfg.device_id)

    # ── Build mode ───────────────────────────────────────────────────────────

    async def run_build_mode(self):
        if self.config.use_expo:
            return await self.run_expo_build()

        with step("frontend build"):
            await self.frontend.build()

        with step("copy build output"):
            self.frontend.copy_build_to_mobile(self.config.platforms or None)

        for platform in self.config.platforms:
            with step(f"{platform} build"):
                await self.builder(platform).build()

        if self.config.preview:
            await self.setup_device_preview()

        print("[run] ✅ Build process completed successfully!")

    async def run_expo_build(self):
        with step("expo setup"):
            await self.expo.setup()

        if not self.config.platforms:
            raise OrchestrationError("expo build", UnsupportedPlatform("no platform targeted for an EAS build"))

        for platform in self.config.platforms:
            with step(f"expo {platform} build"):
                await self.expo.build_app(platform)

        print("[run] ✅ EAS build submitted successfully!")
