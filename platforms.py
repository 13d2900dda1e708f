"""
platforms.py — Build, install, and launch the native shell projects.

Each platform has:
  - build()        → compile the shell project (fails fast if the toolchain isn't set up)
  - install_app()  → locate the packaged artifact and push it to a device/simulator
  - launch_app()   → start the app's entry activity/screen
Android additionally has setup_port_forwarding() (adb reverse).

An empty device id means "whatever single device is attached": the
device-selector argument is left out entirely in that case.
"""

import os
from pathlib import Path
from typing import Optional

import config
import runner
from artifacts import find_artifact
from errors import (
    BuildFailed,
    InstallFailed,
    LaunchFailed,
    PortForwardFailed,
    ToolchainNotFound,
)


# ── Shared helpers ───────────────────────────────────────────────────────────

def extract_build_error(raw_output: str, max_lines: int = 60) -> str:
    lines = raw_output.splitlines()
    # Gradle errors
    for i, line in enumerate(lines):
        if "FAILURE:" in line or "BUILD FAILED" in line:
            return "\n".join(lines[i:i + max_lines])
    # Xcode errors
    for i, line in enumerate(lines):
        if "error:" in line.lower() or "** BUILD FAILED **" in line:
            return "\n".join(lines[max(0, i - 5):i + max_lines])
    return "\n".join(lines[-max_lines:])


def _build_check(result: runner.CommandResult, what: str):
    if result.ok:
        return
    if result.missing or result.timed_out:
        result.check(BuildFailed, what)
    raise BuildFailed(f"{what} exited with status {result.returncode}\n{extract_build_error(result.output)}")


# ═══════════════════════════════════════════════════════════════════════════════
# ANDROID
# ═══════════════════════════════════════════════════════════════════════════════

class AndroidPlatform:
    name = "android"

    def __init__(self, root_dir: Path):
        self.root_dir = Path(root_dir)
        self.shell_dir = self.root_dir / "mobile-shell" / "android"
        gradlew = "gradlew.bat" if os.name == "nt" else "gradlew"
        self.gradlew_path = self.shell_dir / gradlew

    @property
    def apk_candidates(self) -> list[Path]:
        # Current AGP layout first, older intermediates layout second.
        build = self.shell_dir / "app" / "build"
        return [
            build / "outputs" / "apk" / "debug" / "app-debug.apk",
            build / "intermediates" / "apk" / "debug" / "app-debug.apk",
        ]

    @staticmethod
    def device_args(device_id: Optional[str]) -> list[str]:
        return ["-s", device_id] if device_id else []

    def adb(self, device_id: Optional[str], *args: str) -> list[str]:
        return [config.ADB_BIN, *self.device_args(device_id), *args]

    async def build(self):
        print("[android] Building Android app...")
        if not self.gradlew_path.is_file():
            raise ToolchainNotFound(
                f"Android build tools not found at {self.gradlew_path}. "
                "Make sure the Android project is set up correctly."
            )
        result = await runner.run_cmd(
            [self.gradlew_path, "assembleDebug"],
            cwd=self.shell_dir,
            timeout=config.timeout_or_none(config.GRADLE_TIMEOUT),
        )
        _build_check(result, "gradle assembleDebug")

    def find_apk(self) -> Path:
        return find_artifact(self.apk_candidates, self.shell_dir / "app" / "build", ".apk")

    def install_command(self, apk_path: Path, device_id: Optional[str] = None) -> list[str]:
        return self.adb(device_id, "install", "-r", str(apk_path))

    async def install_app(self, device_id: Optional[str] = None):
        print("[android] Installing Android app on device/emulator...")
        apk_path = self.find_apk()
        result = await runner.run_cmd(
            self.install_command(apk_path, device_id),
            timeout=config.timeout_or_none(config.DEVICE_TIMEOUT),
        )
        result.check(InstallFailed, "adb install")

    def launch_command(self, device_id: Optional[str] = None) -> list[str]:
        component = f"{config.ANDROID_PACKAGE}/{config.ANDROID_ACTIVITY}"
        return self.adb(device_id, "shell", "am", "start", "-n", component)

    async def launch_app(self, device_id: Optional[str] = None):
        print("[android] Launching Android app...")
        result = await runner.run_cmd(
            self.launch_command(device_id),
            timeout=config.timeout_or_none(config.DEVICE_TIMEOUT),
        )
        result.check(LaunchFailed, "adb shell am start")

    def port_forward_command(self, port: str, device_id: Optional[str] = None) -> list[str]:
        return self.adb(device_id, "reverse", f"tcp:{port}", f"tcp:{port}")

    async def setup_port_forwarding(self, device_id: Optional[str], port: str):
        print(f"[android] Forwarding device port {port} to the host...")
        result = await runner.run_cmd(
            self.port_forward_command(port, device_id),
            timeout=config.timeout_or_none(config.DEVICE_TIMEOUT),
        )
        result.check(PortForwardFailed, "adb reverse")


# ═══════════════════════════════════════════════════════════════════════════════
# iOS
# ═══════════════════════════════════════════════════════════════════════════════

class iOSPlatform:
    name = "ios"

    def __init__(self, root_dir: Path):
        self.root_dir = Path(root_dir)
        self.shell_dir = self.root_dir / "mobile-shell" / "ios"
        self.project_path = self.shell_dir / f"{config.IOS_SCHEME}.xcodeproj"
        self.derived_data = self.shell_dir / "build"

    @property
    def app_candidates(self) -> list[Path]:
        products = self.derived_data / "Build" / "Products"
        return [products / "Debug-iphonesimulator" / f"{config.IOS_SCHEME}.app"]

    @staticmethod
    def device_target(device_id: Optional[str]) -> str:
        # simctl takes the device positionally; "booted" is its own default.
        return device_id or "booted"

    def build_command(self) -> list[str]:
        return [
            config.XCODEBUILD,
            "-project", str(self.project_path),
            "-scheme", config.IOS_SCHEME,
            "-sdk", "iphonesimulator",
            "-configuration", "Debug",
            "-derivedDataPath", str(self.derived_data),
            "build",
        ]

    async def build(self):
        print("[ios] Building iOS app...")
        if not self.project_path.is_dir():
            raise ToolchainNotFound(
                f"Xcode project not found at {self.project_path}. "
                "Make sure the iOS project is set up correctly."
            )
        result = await runner.run_cmd(
            self.build_command(),
            cwd=self.shell_dir,
            timeout=config.timeout_or_none(config.XCODE_TIMEOUT),
        )
        _build_check(result, "xcodebuild build")

    def find_app(self) -> Path:
        return find_artifact(self.app_candidates, self.derived_data, ".app", bundle=True)

    def install_command(self, app_path: Path, device_id: Optional[str] = None) -> list[str]:
        return [config.XCRUN, "simctl", "install", self.device_target(device_id), str(app_path)]

    async def install_app(self, device_id: Optional[str] = None):
        print("[ios] Installing iOS app on simulator...")
        app_path = self.find_app()
        result = await runner.run_cmd(
            self.install_command(app_path, device_id),
            timeout=config.timeout_or_none(config.DEVICE_TIMEOUT),
        )
        result.check(InstallFailed, "simctl install")

    def launch_command(self, device_id: Optional[str] = None) -> list[str]:
        return [config.XCRUN, "simctl", "launch", self.device_target(device_id), config.IOS_BUNDLE_ID]

    async def launch_app(self, device_id: Optional[str] = None):
        print("[ios] Launching iOS app...")
        result = await runner.run_cmd(
            self.launch_command(device_id),
            timeout=config.timeout_or_none(config.DEVICE_TIMEOUT),
        )
        result.check(LaunchFailed, "simctl launch")
