"""
artifacts.py — Locate packaged build outputs (.apk files, .app bundles).

Toolchain versions disagree about where they drop artifacts, so known
paths are probed first and the build tree is only walked when none match.
"""

from pathlib import Path
from typing import Iterable

from errors import ArtifactNotFound


def find_artifact(
    candidates: Iterable[Path],
    search_root: Path,
    suffix: str,
    bundle: bool = False,
) -> Path:
    """Return the first existing candidate, else the first `*suffix` under search_root.

    bundle=True matches directories (iOS .app bundles) instead of files.
    """
    for path in candidates:
        if _matches(path, bundle):
            return path

    if search_root.is_dir():
        print(f"[artifacts] Searching for *{suffix} in {search_root}")
        for path in search_root.rglob(f"*{suffix}"):
            if _matches(path, bundle):
                print(f"[artifacts] Found {path}")
                return path

    kind = "bundle" if bundle else "file"
    raise ArtifactNotFound(f"no *{suffix} {kind} found under {search_root}")


def _matches(path: Path, bundle: bool) -> bool:
    return path.is_dir() if bundle else path.is_file()
