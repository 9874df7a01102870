"""Tests for the ``docsplice`` command-line entrypoints."""

from __future__ import annotations

import logging
import typing as typ

import pytest

from docsplice import cli

if typ.TYPE_CHECKING:
    from pathlib import Path


def _project(tmp_path: Path, index: str) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    (src / "index.md").write_text(index, encoding="utf-8")
    config = tmp_path / "docsplice.yaml"
    config.write_text("pages: [index.md]\n", encoding="utf-8")
    return config


def test_build_prints_written_paths(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    config = _project(tmp_path, "# Home\n\n[Home](@ref)\n")
    cli.build(config=config, report=tmp_path / "report.json")
    captured = capsys.readouterr()
    assert captured.out.splitlines() == ["wrote build/index.html", "wrote report.json"]
    assert captured.err.strip() == "0 error(s), 0 warning(s)"
    assert (tmp_path / "build" / "index.html").is_file()


def test_build_output_dir_override(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = _project(tmp_path, "# Home\n")
    cli.build(config=config, output_dir=tmp_path / "site")
    assert (tmp_path / "site" / "index.html").is_file()
    assert "index.html" in capsys.readouterr().out


def test_build_exits_non_zero_on_errors(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = _project(tmp_path, "[Missing](@ref)\n")
    with pytest.raises(SystemExit) as excinfo:
        cli.build(config=config)
    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "index.md:1: error[unresolved_ref]" in err
    assert "1 error(s), 0 warning(s)" in err


def test_check_reports_without_writing(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = _project(tmp_path, "```@contents\nColour = red\n```\n")
    cli.check(config=config)
    err = capsys.readouterr().err
    assert "warning[unknown_setting]" in err
    assert "0 error(s), 1 warning(s)" in err
    assert not (tmp_path / "build").exists()


def test_check_exits_non_zero_on_errors(tmp_path: Path) -> None:
    config = _project(tmp_path, "```@docs\nBase.length\n```\n")
    with pytest.raises(SystemExit) as excinfo:
        cli.check(config=config)
    assert excinfo.value.code == 1


def test_main_configures_logging_and_runs_app(
    mocker: typ.Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DOCSPLICE_LOG_LEVEL", "debug")
    basic_config = mocker.patch.object(logging, "basicConfig")
    app = mocker.patch.object(cli, "app")
    cli.main()
    assert basic_config.call_args.kwargs["level"] == "DEBUG"
    app.assert_called_once_with()
