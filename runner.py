"""
runner.py — Run external toolchain commands (gradle, adb, xcodebuild, npm, npx).

Every invocation is synchronous from the caller's point of view: it awaits
the tool's exit and hands back a CommandResult. Retry policy belongs to the
callers. Long-running servers go through spawn() instead.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from errors import CommandTimeout, MobileError, ToolchainNotFound

PathLike = Union[str, Path]

NOT_FOUND = 127
TAIL_LINES = 40


@dataclass
class CommandResult:
    cmd: list[str]
    returncode: int
    output: str = ""
    missing: bool = False
    timed_out: bool = False
    timeout: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out and not self.missing

    def tail(self, max_lines: int = TAIL_LINES) -> str:
        return "\n".join(self.output.splitlines()[-max_lines:])

    def check(self, error_cls: type[MobileError], what: str) -> "CommandResult":
        """Raise error_cls (or a more specific failure) unless the command succeeded."""
        if self.ok:
            return self
        if self.missing:
            raise ToolchainNotFound(f"{what}: {self.output}")
        if self.timed_out:
            raise CommandTimeout(self.cmd, self.timeout)
        message = f"{what}: `{' '.join(self.cmd)}` exited with status {self.returncode}"
        tail = self.tail()
        raise error_cls(f"{message}\n{tail}" if tail else message)


class StepOutcome(Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class StepResult:
    """Outcome of a best-effort step; reported, never raised."""
    outcome: StepOutcome
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is not StepOutcome.FAILED

    def report(self, tag: str):
        marker = {StepOutcome.SUCCEEDED: "✅", StepOutcome.SKIPPED: "⚠️", StepOutcome.FAILED: "❌"}[self.outcome]
        print(f"[{tag}] {marker} {self.message}")


def _missing(cmd: list[str], cwd: Optional[PathLike]) -> Optional[CommandResult]:
    if cwd is not None and not Path(cwd).is_dir():
        return CommandResult(cmd, NOT_FOUND, f"working directory not found: {cwd}", missing=True)
    return None


async def run_cmd(
    cmd: list[PathLike],
    cwd: Optional[PathLike] = None,
    timeout: Optional[float] = None,
    stream: bool = True,
) -> CommandResult:
    """Run cmd to completion, forwarding its output line by line when stream is set."""
    cmd = [str(c) for c in cmd]
    missing = _missing(cmd, cwd)
    if missing:
        return missing

    tag = Path(cmd[0]).name
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=str(cwd) if cwd is not None else None,
            limit=10 * 1024 * 1024,  # gradle and xcodebuild emit very long lines
        )
    except (FileNotFoundError, PermissionError) as e:
        return CommandResult(cmd, NOT_FOUND, f"`{cmd[0]}` could not be executed ({e})", missing=True)

    lines: list[str] = []

    async def pump():
        while True:
            line = await proc.stdout.readline()
            if not line:
                break
            text = line.decode("utf-8", errors="replace").rstrip("\r\n")
            lines.append(text)
            if stream:
                print(f"[{tag}] {text}")
        await proc.wait()

    try:
        await asyncio.wait_for(pump(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        print(f"[{tag}] Timed out after {timeout:g}s")
        return CommandResult(cmd, -1, "\n".join(lines), timed_out=True, timeout=timeout)

    return CommandResult(cmd, proc.returncode, "\n".join(lines))


async def probe(cmd: list[PathLike], cwd: Optional[PathLike] = None, timeout: float = 60) -> bool:
    """Quiet availability check, e.g. `npx --no-install expo --version`."""
    result = await run_cmd(cmd, cwd=cwd, timeout=timeout, stream=False)
    return result.ok


async def spawn(cmd: list[PathLike], cwd: Optional[PathLike] = None) -> asyncio.subprocess.Process:
    """Start a long-running process that shares our stdout/stderr."""
    cmd = [str(c) for c in cmd]
    missing = _missing(cmd, cwd)
    if missing:
        raise ToolchainNotFound(missing.output)
    try:
        return await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            cwd=str(cwd) if cwd is not None else None,
        )
    except (FileNotFoundError, PermissionError) as e:
        raise ToolchainNotFound(f"`{cmd[0]}` could not be executed ({e})") from e
