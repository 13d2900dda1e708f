"""
expo.py — Managed-runtime (Expo/EAS) path: toolchain setup, dev server, cloud builds.

Setup is forgiving about the host (no sudo, no global installs) and keeps
expo-cli / eas-cli project-local. The dev server tries `npx expo start`
first and falls back to the project's npm scripts.
"""

import json
import shutil
from pathlib import Path

import config
import runner
from errors import BuildFailed, ConfigWriteFailed, SetupFailed, StartFailed, UnsupportedPlatform
from runner import StepOutcome, StepResult

EAS_CONFIG = {
    "build": {
        "development": {
            "developmentClient": True,
            "distribution": "internal",
        },
        "preview": {
            "distribution": "internal",
        },
        "production": {},
    },
}

START_FLAGS = {
    "web": ["--web"],
    "android": ["--android"],
    "ios": ["--ios"],
}

FALLBACK_SCRIPTS = {
    "web": "expo-web",
    "android": "expo-android",
    "ios": "expo-ios",
}

BUILD_PLATFORMS = ("android", "ios")


class Expo:
    def __init__(self, root_dir: Path):
        self.root_dir = Path(root_dir)
        self.frontend_dir = self.root_dir / "frontend"
        self.eas_config_path = self.frontend_dir / "eas.json"

    async def setup(self):
        """Prepare the Expo toolchain. Best-effort steps are reported as warnings, not raised."""
        print("[expo] Setting up Expo development environment...")
        await self.install_dependencies()

        notes = [await self.ensure_npx(), self.local_expo_hint()]
        for note in notes:
            note.report("expo")

        await self.ensure_cli("expo", "expo-cli")
        await self.ensure_cli("eas", "eas-cli")
        self.write_eas_config()

    async def install_dependencies(self):
        print("[expo] Installing Expo dependencies...")
        result = await runner.run_cmd(
            [config.NPM_BIN, "install", "--legacy-peer-deps"],
            cwd=self.frontend_dir,
            timeout=config.timeout_or_none(config.NPM_TIMEOUT),
        )
        result.check(SetupFailed, "npm install")

    async def ensure_npx(self) -> StepResult:
        if shutil.which(config.NPX_BIN):
            return StepResult(StepOutcome.SUCCEEDED, "npx available.")

        print("[expo] Installing NPX (part of Node.js)...")
        result = await runner.run_cmd(["apt-get", "update"], timeout=config.timeout_or_none(config.NPM_TIMEOUT))
        if not result.ok:
            return StepResult(
                StepOutcome.SKIPPED,
                "Could not update package lists (you may need sudo). "
                "Please ensure Node.js and npm are installed.",
            )
        result = await runner.run_cmd(
            ["apt-get", "install", "-y", "nodejs", "npm"],
            timeout=config.timeout_or_none(config.NPM_TIMEOUT),
        )
        if not result.ok:
            return StepResult(
                StepOutcome.FAILED,
                "Could not install Node.js and npm (you may need sudo). "
                "Please ensure Node.js and npm are installed.",
            )
        return StepResult(StepOutcome.SUCCEEDED, "Installed Node.js and npm.")

    def local_expo_hint(self) -> StepResult:
        # Linking into /usr/local/bin would need root; point at the local binary instead.
        expo_bin = self.frontend_dir / "node_modules" / ".bin" / "expo"
        if expo_bin.exists():
            return StepResult(
                StepOutcome.SKIPPED,
                f"Local expo found at {expo_bin}. Add it to PATH with: "
                f'export PATH="{expo_bin.parent}:$PATH"',
            )
        return StepResult(StepOutcome.SKIPPED, "No project-local expo binary yet.")

    async def ensure_cli(self, binary: str, package: str):
        """Install package as a dev dependency unless `npx <binary>` already resolves."""
        if await runner.probe([config.NPX_BIN, "--no-install", binary, "--version"], cwd=self.frontend_dir):
            return
        print(f"[expo] Installing {package} in project...")
        result = await runner.run_cmd(
            [config.NPM_BIN, "install", "--save-dev", package],
            cwd=self.frontend_dir,
            timeout=config.timeout_or_none(config.NPM_TIMEOUT),
        )
        result.check(SetupFailed, f"install {package}")

    def write_eas_config(self) -> Path:
        print("[expo] Creating EAS configuration...")
        try:
            self.eas_config_path.write_text(json.dumps(EAS_CONFIG, indent=2))
        except OSError as e:
            raise ConfigWriteFailed(f"could not write {self.eas_config_path}: {e}") from e
        return self.eas_config_path

    @staticmethod
    def start_command(platform: str) -> list[str]:
        return [config.NPX_BIN, "expo", "start", *START_FLAGS.get(platform, [])]

    @staticmethod
    def fallback_command(platform: str) -> list[str]:
        return [config.NPM_BIN, "run", FALLBACK_SCRIPTS.get(platform, "expo-start")]

    async def start_dev_server(self, platform: str = ""):
        """Run the Expo dev server in the foreground until it exits."""
        print(f"[expo] Starting Expo development server for {platform or 'all platforms'}...")
        result = await runner.run_cmd(self.start_command(platform), cwd=self.frontend_dir)
        if result.ok:
            return

        print("[expo] Direct execution with npx failed, trying npm scripts as fallback...")
        result = await runner.run_cmd(self.fallback_command(platform), cwd=self.frontend_dir)
        result.check(StartFailed, "expo dev server")

    @staticmethod
    def build_command(platform: str) -> list[str]:
        if platform not in BUILD_PLATFORMS:
            raise UnsupportedPlatform(f"unsupported platform for Expo build: {platform!r}")
        return [config.NPX_BIN, "eas", "build", "--platform", platform, "--profile", "production"]

    async def build_app(self, platform: str):
        cmd = self.build_command(platform)
        print(f"[expo] Building Expo app for {platform}...")
        result = await runner.run_cmd(
            cmd,
            cwd=self.frontend_dir,
            timeout=config.timeout_or_none(config.EAS_TIMEOUT),
        )
        result.check(BuildFailed, "eas build")
