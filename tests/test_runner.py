import sys
from pathlib import Path

import pytest

import runner
from errors import BuildFailed, CommandTimeout, ToolchainNotFound
from runner import CommandResult, StepOutcome, StepResult


async def test_run_cmd_captures_output_and_status(tmp_path):
    result = await runner.run_cmd(
        [sys.executable, "-c", "import os; print('hello'); print(os.getcwd())"],
        cwd=tmp_path,
        stream=False,
    )
    assert result.ok
    lines = result.output.splitlines()
    assert lines[0] == "hello"
    assert Path(lines[1]).resolve() == tmp_path.resolve()


async def test_run_cmd_merges_stderr(capsys):
    result = await runner.run_cmd(
        [sys.executable, "-c", "import sys; sys.stderr.write('warn\\n'); sys.exit(3)"],
    )
    assert result.returncode == 3
    assert not result.ok
    assert "warn" in result.output
    assert "warn" in capsys.readouterr().out


async def test_check_raises_given_error_with_output_tail():
    result = await runner.run_cmd(
        [sys.executable, "-c", "print('compile error here'); raise SystemExit(2)"],
        stream=False,
    )
    with pytest.raises(BuildFailed, match="compile error here"):
        result.check(BuildFailed, "compile")


async def test_missing_binary_is_toolchain_not_found():
    result = await runner.run_cmd(["definitely-not-a-real-tool-xyz", "--version"])
    assert result.missing
    with pytest.raises(ToolchainNotFound):
        result.check(BuildFailed, "version check")


async def test_missing_working_directory(tmp_path):
    result = await runner.run_cmd([sys.executable, "-c", "pass"], cwd=tmp_path / "nope")
    assert result.missing
    assert "working directory not found" in result.output


async def test_timeout_is_distinct_from_exit_status():
    result = await runner.run_cmd(
        [sys.executable, "-c", "import time; time.sleep(10)"],
        timeout=0.2,
        stream=False,
    )
    assert result.timed_out
    with pytest.raises(CommandTimeout) as exc:
        result.check(BuildFailed, "sleep")
    assert exc.value.timeout == 0.2


async def test_probe():
    assert await runner.probe([sys.executable, "--version"])
    assert not await runner.probe([sys.executable, "-c", "raise SystemExit(1)"])


async def test_spawn_missing_binary():
    with pytest.raises(ToolchainNotFound):
        await runner.spawn(["definitely-not-a-real-tool-xyz"])


async def test_spawn_returns_running_process():
    proc = await runner.spawn([sys.executable, "-c", "import time; time.sleep(10)"])
    assert proc.returncode is None
    proc.kill()
    await proc.wait()


def test_tail_limits_lines():
    result = CommandResult(["x"], 1, "\n".join(str(i) for i in range(100)))
    assert result.tail(3) == "97\n98\n99"


def test_step_result_report(capsys):
    StepResult(StepOutcome.SKIPPED, "needs sudo").report("expo")
    assert capsys.readouterr().out.strip() == "[expo] ⚠️ needs sudo"
    assert StepResult(StepOutcome.SKIPPED).ok
    assert not StepResult(StepOutcome.FAILED).ok
