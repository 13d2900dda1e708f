"""
config.py — Environment loading for the hybrid mobile build/preview runner.
Supports Android, iOS, and Expo targets.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) == "1"


# ── Run mode ─────────────────────────────────────────────────────────────────
ROOT_DIR: str = os.getenv("ROOT_DIR", ".")
DEV_MODE: bool = _flag("DEV_MODE")
BUILD_ANDROID: bool = _flag("BUILD_ANDROID")
BUILD_IOS: bool = _flag("BUILD_IOS")
PREVIEW: bool = _flag("PREVIEW")
USE_EXPO: bool = _flag("USE_EXPO")
DEVICE_ID: str = os.getenv("DEVICE_ID", "")

# ── Ports ────────────────────────────────────────────────────────────────────
DEV_PORT: str = os.getenv("DEV_PORT", "3000")
PREVIEW_PORT: str = os.getenv("PREVIEW_PORT", "8080")

# ── Android ──────────────────────────────────────────────────────────────────
ADB_BIN: str = os.getenv("ADB_BIN", "adb")
ANDROID_PACKAGE: str = os.getenv("ANDROID_PACKAGE", "com.example.golangmobile")
ANDROID_ACTIVITY: str = os.getenv("ANDROID_ACTIVITY", ".MainActivity")

# ── iOS ──────────────────────────────────────────────────────────────────────
XCODEBUILD: str = os.getenv("XCODEBUILD", "xcodebuild")
XCRUN: str = os.getenv("XCRUN", "xcrun")
IOS_SCHEME: str = os.getenv("IOS_SCHEME", "App")
IOS_BUNDLE_ID: str = os.getenv("IOS_BUNDLE_ID", "com.example.golangmobile")

# ── Node / Expo ──────────────────────────────────────────────────────────────
NPM_BIN: str = os.getenv("NPM_BIN", "npm")
NPX_BIN: str = os.getenv("NPX_BIN", "npx")

# ── Timeouts (seconds, 0 = wait forever) ─────────────────────────────────────
GRADLE_TIMEOUT: int = int(os.getenv("GRADLE_TIMEOUT", "600"))
XCODE_TIMEOUT: int = int(os.getenv("XCODE_TIMEOUT", "900"))
DEVICE_TIMEOUT: int = int(os.getenv("DEVICE_TIMEOUT", "120"))
NPM_TIMEOUT: int = int(os.getenv("NPM_TIMEOUT", "600"))
EAS_TIMEOUT: int = int(os.getenv("EAS_TIMEOUT", "1800"))

# Seconds a freshly spawned server gets before we decide it started.
SPAWN_SETTLE_SECONDS: float = float(os.getenv("SPAWN_SETTLE_SECONDS", "1"))


@dataclass(frozen=True)
class BuildConfiguration:
    root_dir: Path
    dev_mode: bool = False
    build_android: bool = False
    build_ios: bool = False
    preview: bool = False
    device_id: str = ""
    dev_port: str = DEV_PORT
    preview_port: str = PREVIEW_PORT
    use_expo: bool = False

    @classmethod
    def from_env(cls) -> "BuildConfiguration":
        return cls(
            root_dir=Path(ROOT_DIR).resolve(),
            dev_mode=DEV_MODE,
            build_android=BUILD_ANDROID,
            build_ios=BUILD_IOS,
            preview=PREVIEW,
            device_id=DEVICE_ID,
            dev_port=DEV_PORT,
            preview_port=PREVIEW_PORT,
            use_expo=USE_EXPO,
        )

    @property
    def preview_platform(self) -> Optional[str]:
        """Only one platform is previewed at a time; Android wins a tie."""
        if self.build_android:
            return "android"
        if self.build_ios:
            return "ios"
        return None

    @property
    def platforms(self) -> list[str]:
        targets = []
        if self.build_android:
            targets.append("android")
        if self.build_ios:
            targets.append("ios")
        return targets


def timeout_or_none(seconds: int) -> Optional[int]:
    return seconds if seconds > 0 else None


def validate(cfg: BuildConfiguration) -> list[str]:
    problems = []
    if not cfg.root_dir.is_dir():
        problems.append(f"root directory not found: {cfg.root_dir}")
    for name, port in (("dev port", cfg.dev_port), ("preview port", cfg.preview_port)):
        if not port.isdecimal() or not 0 < int(port) < 65536:
            problems.append(f"{name} is not a valid TCP port: {port!r}")
    if cfg.preview and not cfg.platforms and not cfg.use_expo:
        problems.append("preview requested but neither Android nor iOS is targeted")
    return problems


def print_config_summary(cfg: BuildConfiguration):
    print(f"  Root:            {cfg.root_dir}")
    print(f"  Mode:            {'dev' if cfg.dev_mode else 'build'}{' (expo)' if cfg.use_expo else ''}")
    print(f"  Platforms:       {', '.join(cfg.platforms) or '(none)'}")
    print(f"  Preview:         {(cfg.preview_platform or 'web') if cfg.preview else 'off'}")
    print(f"  Device:          {cfg.device_id or '(default)'}")
    print(f"  Dev port:        {cfg.dev_port}")
    print(f"  Preview port:    {cfg.preview_port}")
