import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from fastjump.cli import _print_stats_table, cli, environment_check, is_sourced
from fastjump.config import FastjumpConfig, StoreConfig
from fastjump.errors import EnvironmentCheckError
from fastjump.handlers import Stats

runner = CliRunner()


@pytest.fixture
def workspace(isolated_env: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("FASTJUMP_SOURCED", "1")
    work = isolated_env / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    return isolated_env


def _db(workspace: Path) -> Path:
    return workspace / "data" / "fastjump" / "fastjump.db"


def test_add_then_jump(workspace: Path) -> None:
    target = workspace / "projects" / "fastjump"
    target.mkdir(parents=True)

    result = runner.invoke(cli, ["--add", str(target)])
    assert result.exit_code == 0, result.output
    assert result.output == f"10.00\t\t{target}\n"
    assert _db(workspace).exists()

    result = runner.invoke(cli, ["fastjump"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == str(target)


def test_jump_prefers_heavier_directory(workspace: Path) -> None:
    light = workspace / "a" / "src"
    heavy = workspace / "b" / "src"
    light.mkdir(parents=True)
    heavy.mkdir(parents=True)
    runner.invoke(cli, ["--add", str(light)])
    runner.invoke(cli, ["--add", str(heavy)])
    runner.invoke(cli, ["--add", str(heavy)])

    result = runner.invoke(cli, ["src"])
    assert result.output.strip() == str(heavy)


def test_jump_without_match_prints_dot(workspace: Path) -> None:
    result = runner.invoke(cli, ["nothing-like-this"])
    assert result.exit_code == 0
    assert result.output == ".\n"


def test_refuses_to_run_when_not_sourced(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FASTJUMP_SOURCED", "false")
    result = runner.invoke(cli, ["foo"])
    assert result.exit_code == 1
    assert "Please source the correct fastjump file" in result.output


def test_is_sourced_values() -> None:
    assert is_sourced({"FASTJUMP_SOURCED": "1"})
    assert not is_sourced({"FASTJUMP_SOURCED": "0"})
    assert not is_sourced({"FASTJUMP_SOURCED": "false"})
    assert not is_sourced({})


@pytest.mark.skipif(os.name == "nt", reason="check is skipped on Windows")
def test_environment_check_raises() -> None:
    with pytest.raises(EnvironmentCheckError):
        environment_check({})


def test_increase_and_decrease_current_directory(workspace: Path) -> None:
    cwd = os.getcwd()
    result = runner.invoke(cli, ["-i"])
    assert result.exit_code == 0, result.output
    assert result.output == f"10.00\t\t{cwd}\n"

    result = runner.invoke(cli, ["-d", "4"])
    assert result.output == f"6.00\t\t{cwd}\n"

    result = runner.invoke(cli, ["-d"])
    assert result.output == f"0.00\t\t{cwd}\n"


def test_huge_increase_does_not_crash(workspace: Path) -> None:
    result = runner.invoke(cli, ["-i", "1e39", "--dryrun"])
    assert result.exit_code == 0, result.output
    assert result.output == f"inf\t\t{os.getcwd()}\n"


def test_stat_lists_entries(workspace: Path) -> None:
    target = workspace / "projects"
    target.mkdir()
    runner.invoke(cli, ["--add", str(target)])

    result = runner.invoke(cli, ["--stat"])
    assert result.exit_code == 0
    assert f"10.00\t\t{target}" in result.output
    assert "1\t\ttotal entries" in result.output
    assert f"database file:\t{_db(workspace)}" in result.output


def test_stat_table_on_terminal(capsys: pytest.CaptureFixture[str]) -> None:
    stats = Stats(entries=[("/srv/app", 14.14)], total_weight=14.14, total_entries=1, cwd_weight=0.0)
    cfg = FastjumpConfig(store=StoreConfig.in_dir(Path("/data")))

    _print_stats_table(stats, cfg)
    out = capsys.readouterr().out
    assert "/srv/app" in out
    assert "14.14" in out
    assert "total entries" in out


def test_complete_prints_menu(workspace: Path) -> None:
    for name in ("foo1", "foo2"):
        (workspace / name).mkdir()
        runner.invoke(cli, ["--add", str(workspace / name)])

    result = runner.invoke(cli, ["--complete", "foo"])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines == [f"foo__1__{workspace / 'foo2'}", f"foo__2__{workspace / 'foo1'}"]

    result = runner.invoke(cli, ["foo__1"])
    assert result.output.strip() == str(workspace / "foo1")

    result = runner.invoke(cli, ["foo__0"])
    assert result.output.strip() == str(workspace / "foo2")


def test_bad_tab_index_fails(workspace: Path) -> None:
    (workspace / "foo1").mkdir()
    runner.invoke(cli, ["--add", str(workspace / "foo1")])
    result = runner.invoke(cli, ["foo__7"])
    assert result.exit_code == 1
    assert "out of range" in result.output


def test_purge(workspace: Path) -> None:
    doomed = workspace / "doomed"
    doomed.mkdir()
    runner.invoke(cli, ["--add", str(doomed)])
    doomed.rmdir()

    result = runner.invoke(cli, ["--purge"])
    assert result.exit_code == 0
    assert result.output == "Purged 1 entries.\n"


def test_dryrun_does_not_write(workspace: Path) -> None:
    target = workspace / "projects"
    target.mkdir()
    result = runner.invoke(cli, ["--dryrun", "--add", str(target)])
    assert result.exit_code == 0
    assert not _db(workspace).exists()


def test_corrupt_store_is_reported(workspace: Path) -> None:
    db = _db(workspace)
    db.parent.mkdir(parents=True)
    db.write_bytes(b"definitely not a store file")
    result = runner.invoke(cli, ["foo"])
    assert result.exit_code == 1
    assert "not a fastjump store" in result.output


def test_init_config(workspace: Path) -> None:
    result = runner.invoke(cli, ["--init-config"])
    assert result.exit_code == 0
    assert (workspace / "config" / "fastjump" / "fastjump.toml").exists()

    result = runner.invoke(cli, ["--init-config"])
    assert "already exists" in result.output
