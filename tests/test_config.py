import asyncio
import signal
from pathlib import Path

import pytest

import config
import main
from config import BuildConfiguration


@pytest.mark.parametrize("android,ios,expected", [
    (True, True, "android"),
    (True, False, "android"),
    (False, True, "ios"),
    (False, False, None),
])
def test_preview_platform_tie_break(tmp_path, android, ios, expected):
    cfg = BuildConfiguration(root_dir=tmp_path, build_android=android, build_ios=ios, preview=True)
    assert cfg.preview_platform == expected


def test_configuration_is_immutable(tmp_path):
    cfg = BuildConfiguration(root_dir=tmp_path)
    with pytest.raises(AttributeError):
        cfg.dev_mode = True


def test_validate(tmp_path):
    assert config.validate(BuildConfiguration(root_dir=tmp_path)) == []

    problems = config.validate(BuildConfiguration(
        root_dir=tmp_path / "missing", dev_port="abc", preview_port="70000", preview=True,
    ))
    assert len(problems) == 4
    assert any("root directory" in p for p in problems)
    assert any("dev port" in p for p in problems)
    assert any("preview port" in p for p in problems)
    assert any("neither Android nor iOS" in p for p in problems)


@pytest.mark.parametrize("port", ["²", "0", "-1", "65536", ""])
def test_validate_rejects_non_ascii_and_out_of_range_ports(tmp_path, port):
    problems = config.validate(BuildConfiguration(root_dir=tmp_path, dev_port=port))
    assert problems == [f"dev port is not a valid TCP port: {port!r}"]


def test_timeout_or_none():
    assert config.timeout_or_none(30) == 30
    assert config.timeout_or_none(0) is None


def test_cli_overrides_environment(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "ROOT_DIR", str(tmp_path))
    monkeypatch.setattr(config, "DEV_MODE", True)
    monkeypatch.setattr(config, "DEVICE_ID", "from-env")

    cfg = main.resolve_config(main.parse_args(["--build", "--android", "--preview", "--dev-port", "4000"]))
    assert cfg.root_dir == tmp_path.resolve()
    assert cfg.dev_mode is False
    assert cfg.build_android and cfg.preview
    assert not cfg.build_ios
    assert cfg.device_id == "from-env"
    assert cfg.dev_port == "4000"


def test_cli_defaults_come_from_environment(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "ROOT_DIR", str(tmp_path))
    monkeypatch.setattr(config, "DEV_MODE", True)
    monkeypatch.setattr(config, "BUILD_IOS", True)
    cfg = main.resolve_config(main.parse_args(["--root", str(tmp_path / "app"), "--device", "SIM-1"]))
    assert cfg.dev_mode is True
    assert cfg.build_ios is True
    assert cfg.root_dir == Path(tmp_path / "app").resolve()
    assert cfg.device_id == "SIM-1"


def test_main_rejects_invalid_config(tmp_path, capsys):
    assert main.main(["--root", str(tmp_path / "missing"), "--build"]) == 2
    assert "root directory not found" in capsys.readouterr().out


def test_main_rejects_superscript_port(project, capsys):
    assert main.main(["--root", str(project), "--build", "--dev-port", "²"]) == 2
    assert "dev port is not a valid TCP port" in capsys.readouterr().out


def test_main_reports_failed_step(project, fake_runner, capsys):
    fake_runner.fail_when("npm", "build", output="tsc: type error")
    assert main.main(["--root", str(project), "--build", "--android"]) == 1
    out = capsys.readouterr().out
    assert "❌ frontend build failed" in out


def test_main_build_success(project, fake_runner):
    assert main.main(["--root", str(project), "--build"]) == 0
    assert fake_runner.calls == [["npm", "run", "build"]]


def test_stop_signals_only_in_dev_mode(make_config):
    assert main.stop_signals(make_config(dev_mode=True)) == (signal.SIGINT, signal.SIGTERM)
    assert main.stop_signals(make_config()) == ()


async def test_build_run_leaves_ctrl_c_alone(make_config, fake_runner, monkeypatch):
    installed = []
    loop = asyncio.get_running_loop()
    monkeypatch.setattr(loop, "add_signal_handler", lambda sig, cb: installed.append(sig))
    assert await main.run(make_config()) == 0
    assert installed == []
