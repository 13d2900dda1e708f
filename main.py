"""
main.py — Entry point. Resolve the run configuration and hand it to the Orchestrator.

Flags override the environment (.env / process env, see config.py).
"""

import argparse
import asyncio
import dataclasses
import signal
import sys
from pathlib import Path

import config
from config import BuildConfiguration
from errors import OrchestrationError
from orchestrator import Orchestrator


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="hybrid-mobile",
        description="Build and preview the hybrid (web + native shell) mobile app.",
    )
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--dev", dest="dev_mode", action="store_true", default=None,
                      help="Run the dev server and preview (long-running)")
    mode.add_argument("--build", dest="dev_mode", action="store_false", default=None,
                      help="Build the frontend and native apps, then exit")
    p.add_argument("--root", help="Project root containing frontend/ and mobile-shell/")
    p.add_argument("--android", action="store_true", default=None, help="Target Android")
    p.add_argument("--ios", action="store_true", default=None, help="Target iOS")
    p.add_argument("--preview", action="store_true", default=None,
                   help="Install and launch on a device/emulator/simulator")
    p.add_argument("--device", help="Device/emulator id (adb -s / simctl udid)")
    p.add_argument("--dev-port", help="Frontend dev server port")
    p.add_argument("--preview-port", help="Local preview server port")
    p.add_argument("--expo", action="store_true", default=None, help="Use the Expo/EAS toolchain")
    return p.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> BuildConfiguration:
    cfg = BuildConfiguration.from_env()
    overrides = {
        "root_dir": Path(args.root).resolve() if args.root else None,
        "dev_mode": args.dev_mode,
        "build_android": args.android,
        "build_ios": args.ios,
        "preview": args.preview,
        "device_id": args.device,
        "dev_port": args.dev_port,
        "preview_port": args.preview_port,
        "use_expo": args.expo,
    }
    return dataclasses.replace(cfg, **{k: v for k, v in overrides.items() if v is not None})


def stop_signals(cfg: BuildConfiguration) -> tuple:
    # Build mode has nothing waiting on stop(); Ctrl+C stays a KeyboardInterrupt there.
    return (signal.SIGINT, signal.SIGTERM) if cfg.dev_mode else ()


async def run(cfg: BuildConfiguration) -> int:
    orchestrator = Orchestrator(cfg)
    loop = asyncio.get_running_loop()
    for sig in stop_signals(cfg):
        try:
            loop.add_signal_handler(sig, orchestrator.stop)
        except (NotImplementedError, RuntimeError):
            pass  # Windows: Ctrl+C arrives as KeyboardInterrupt instead

    try:
        await orchestrator.run()
    except OrchestrationError as e:
        print(f"❌ {e}")
        return 1
    return 0


def main(argv=None) -> int:
    cfg = resolve_config(parse_args(argv))

    problems = config.validate(cfg)
    if problems:
        for p in problems:
            print(f"  ❌ {p}")
        return 2

    print("📱 hybrid-mobile")
    config.print_config_summary(cfg)

    try:
        return asyncio.run(run(cfg))
    except KeyboardInterrupt:
        print("\n🛑 Stopped.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
