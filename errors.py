"""
errors.py — Failure types raised by the build/preview pipeline.
"""

from typing import Optional


class MobileError(Exception):
    """Base class for every failure a pipeline step can raise."""


class ToolchainNotFound(MobileError):
    pass


class BuildFailed(MobileError):
    pass


class ArtifactNotFound(MobileError):
    pass


class InstallFailed(MobileError):
    pass


class LaunchFailed(MobileError):
    pass


class PortForwardFailed(MobileError):
    pass


class ConfigWriteFailed(MobileError):
    pass


class UnsupportedPlatform(MobileError):
    pass


class StartFailed(MobileError):
    pass


class CopyFailed(MobileError):
    pass


class SetupFailed(MobileError):
    pass


class PreviewServerError(MobileError):
    pass


class CommandTimeout(MobileError):
    def __init__(self, cmd: list[str], timeout: float):
        super().__init__(f"`{' '.join(cmd)}` timed out after {timeout:g}s")
        self.cmd = cmd
        self.timeout = timeout


class OrchestrationError(Exception):
    """A step failure, tagged with the step that produced it."""

    def __init__(self, step: str, cause: Optional[BaseException] = None):
        message = f"{step} failed: {cause}" if cause else f"{step} failed"
        super().__init__(message)
        self.step = step
        self.cause = cause
