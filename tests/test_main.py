from __future__ import annotations

import logging
import sys

import pytest

import watchrun.main as cli
from conftest import posix_only


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)


def test_missing_target_is_a_usage_error(capsys):
    assert cli.main([]) == 1
    assert "usage: watchrun" in capsys.readouterr().err


def test_unresolvable_target_exits_non_zero(tmp_path, caplog):
    assert cli.main([str(tmp_path / "missing")]) == 1
    assert "Cannot resolve" in caplog.text


@posix_only
def test_shutdown_exits_zero(monkeypatch):
    titles = []
    shutdowns = []
    supervisors = []
    real_supervisor = cli.ProcessSupervisor

    def fake_install(shutdown):
        shutdowns.append(shutdown)
        shutdown.request("by test")

    def recording_supervisor(*args, **kwargs):
        supervisor = real_supervisor(*args, run_on_start=False, **kwargs)
        supervisors.append(supervisor)
        return supervisor

    monkeypatch.setattr(cli, "install_signal_handlers", fake_install)
    monkeypatch.setattr(cli.setproctitle, "setproctitle", titles.append)
    monkeypatch.setattr(cli, "ProcessSupervisor", recording_supervisor)

    command = [sys.executable, "-c", "import time; time.sleep(60)"]
    assert cli.main(command) == 0
    assert titles == [f"watchrun: {sys.executable}"]
    assert shutdowns[0].is_set()
    assert supervisors[0].command == command
    assert supervisors[0].run_count == 0


def test_loaded_overrides_are_logged_after_setup(tmp_path, monkeypatch, caplog):
    calls = []
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: calls.append("setup"))
    monkeypatch.setattr(cli.config, "loaded_overrides", tmp_path / "overrides.json")

    with caplog.at_level(logging.INFO, logger="watchrun"):
        assert cli.main([str(tmp_path / "missing")]) == 1

    assert calls == ["setup"]
    assert f"Loaded configuration overrides from {tmp_path / 'overrides.json'}" in caplog.text


@posix_only
def test_invalid_supervisor_setup_fails_before_side_effects(monkeypatch):
    installed = []

    def broken_supervisor(*args, **kwargs):
        raise ValueError("bad backoff")

    monkeypatch.setattr(cli, "install_signal_handlers", installed.append)
    monkeypatch.setattr(cli.setproctitle, "setproctitle", lambda title: None)
    monkeypatch.setattr(cli, "ProcessSupervisor", broken_supervisor)

    with pytest.raises(ValueError):
        cli.main([sys.executable])
    assert installed == []
