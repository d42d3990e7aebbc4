"""End-to-end runs against real processes."""

import os
import shutil
from pathlib import Path

import pytest

from pipesh.config import Settings
from pipesh.core.shell import Shell

pytestmark = pytest.mark.skipif(
    os.name != "posix" or shutil.which("sort") is None or shutil.which("printf") is None,
    reason="needs a POSIX host with coreutils",
)


@pytest.fixture
def shell(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> tuple[Shell, list[str]]:
    monkeypatch.chdir(tmp_path)
    messages: list[str] = []
    return Shell(Settings(_env_file=None), echo=messages.append), messages


def test_redirection_round_trip(shell, tmp_path: Path, capfd: pytest.CaptureFixture[str]) -> None:
    sh, _ = shell
    (tmp_path / "out.txt").write_text("stale content that must be truncated\n")

    sh.run_line("echo hi > out.txt")
    assert (tmp_path / "out.txt").read_text() == "hi\n"

    sh.run_line("cat < out.txt")
    assert capfd.readouterr().out == "hi\n"


def test_two_stage_pipeline(shell, capfd: pytest.CaptureFixture[str]) -> None:
    sh, _ = shell
    [result] = sh.run_line(r"printf b\na\n | sort")

    assert capfd.readouterr().out == "a\nb\n"
    assert len(result.pids) == 2
    assert result.exit_statuses == (0, 0)


@pytest.mark.skipif(not Path("/proc/self/fd").is_dir(), reason="needs /proc")
def test_repeated_pipelines_do_not_leak_descriptors(shell) -> None:
    sh, _ = shell
    before = len(os.listdir("/proc/self/fd"))
    for _ in range(200):
        sh.run_line(r"printf b\na\n | sort > sorted.txt")
    assert len(os.listdir("/proc/self/fd")) == before
    assert Path("sorted.txt").read_text() == "a\nb\n"


def test_stage_count_matches_pipe_count(shell, capfd: pytest.CaptureFixture[str]) -> None:
    sh, _ = shell
    [result] = sh.run_line("echo x | cat | cat | cat")

    assert len(result.pids) == 4
    assert len(result.exit_statuses) == 4
    assert capfd.readouterr().out == "x\n"


def test_sequence_does_not_short_circuit(shell, capfd: pytest.CaptureFixture[str]) -> None:
    sh, _ = shell
    first, second = sh.run_line("false ; echo next")

    assert first.exit_statuses == (1,)
    assert second.exit_statuses == (0,)
    assert capfd.readouterr().out == "next\n"


def test_cd_failure_keeps_directory(shell, tmp_path: Path, capfd: pytest.CaptureFixture[str]) -> None:
    sh, messages = shell
    sh.run_line("cd /nonexistent")
    sh.run_line("cd")
    [result] = sh.run_line("pwd")

    assert messages == ["cd: failed to change directory"] * 2
    assert os.getcwd() == os.path.realpath(tmp_path)
    assert result.exit_statuses == (0,)
    assert capfd.readouterr().out == f"{os.getcwd()}\n"


def test_cd_changes_directory_for_later_stages(shell, tmp_path: Path, capfd: pytest.CaptureFixture[str]) -> None:
    sh, _ = shell
    (tmp_path / "sub").mkdir()
    sh.run_line("cd sub ; pwd")

    assert os.getcwd() == os.path.realpath(tmp_path / "sub")
    assert capfd.readouterr().out == f"{os.getcwd()}\n"


def test_unknown_command_is_contained(shell, capfd: pytest.CaptureFixture[str]) -> None:
    sh, _ = shell
    [result] = sh.run_line("nosuchcmd-pipesh arg")

    assert result.exit_statuses == (1,)
    assert capfd.readouterr().out == "nosuchcmd-pipesh: command not found\n"

    sh.run_line("echo still alive")
    assert capfd.readouterr().out == "still alive\n"


def test_missing_input_file_fails_only_that_stage(shell, capfd: pytest.CaptureFixture[str]) -> None:
    sh, _ = shell
    first, second = sh.run_line("cat < missing.txt ; echo after")

    assert first.exit_statuses == (1,)
    assert second.exit_statuses == (0,)
    assert capfd.readouterr().out == "Redirection failed\nafter\n"


def test_explicit_input_overrides_pipe(shell, tmp_path: Path, capfd: pytest.CaptureFixture[str]) -> None:
    sh, _ = shell
    (tmp_path / "in.txt").write_text("from file\n")
    sh.run_line("echo from-pipe | cat < in.txt")

    assert capfd.readouterr().out == "from file\n"
