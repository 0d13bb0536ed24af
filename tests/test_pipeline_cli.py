from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from promptgather import pipeline
from promptgather.config import COPILOT_INSTRUCTIONS

from helper import make_tree


@pytest.fixture(autouse=True)
def isolated_run(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Run from an empty directory and drop the handler each CLI call installs."""
    monkeypatch.chdir(tmp_path)
    for key in ("GATHER_SEARCH_ROOTS", "GATHER_OUTPUT_ROOT", "GATHER_TARGETS", "GATHER_REPORT_JSON", "GATHER_DRY_RUN"):
        monkeypatch.delenv(key, raising=False)
    yield
    logger = logging.getLogger(pipeline.LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True


@pytest.fixture
def repos(tmp_path: Path) -> Path:
    return make_tree(
        tmp_path / "repos",
        {
            "alpha/.github/copilot-instructions.md": "alpha copilot",
            "alpha/AGENTS.md": "alpha agents",
            "beta/GEMINI.md": "beta gemini",
        },
    )


def test_list_prints_steps(capsys) -> None:
    assert pipeline.main(["list"]) == 0

    out = capsys.readouterr().out
    assert "scan" in out
    assert "collect" in out


def test_default_run_collects(repos: Path, tmp_path: Path, capsys) -> None:
    out = tmp_path / "from"

    code = pipeline.main(["--root", str(repos), "--output", str(out)])

    assert code == 0
    assert (out / "alpha" / COPILOT_INSTRUCTIONS).read_text() == "alpha copilot"
    assert (out / "alpha" / "AGENTS.md").read_text() == "alpha agents"
    assert (out / "beta" / "GEMINI.md").read_text() == "beta gemini"
    assert "Copied 3 file(s) from 2 source(s)." in capsys.readouterr().out


def test_output_defaults_to_from_in_working_directory(repos: Path, tmp_path: Path) -> None:
    assert pipeline.main(["--root", str(repos)]) == 0

    assert (tmp_path / "from" / "beta" / "GEMINI.md").exists()


def test_target_override_limits_collection(repos: Path, tmp_path: Path) -> None:
    out = tmp_path / "from"

    assert pipeline.main(["--root", str(repos), "--output", str(out), "--target", "GEMINI.md"]) == 0

    assert [p.relative_to(out).as_posix() for p in sorted(out.rglob("*.md"))] == ["beta/GEMINI.md"]


def test_config_file_is_honoured(repos: Path, tmp_path: Path) -> None:
    cfg = tmp_path / "gather.yaml"
    cfg.write_text(f"search_roots: ['{repos}']\noutput_root: '{tmp_path / 'collected'}'\ntargets: [AGENTS.md]\n")

    assert pipeline.main(["--config", str(cfg)]) == 0

    assert (tmp_path / "collected" / "alpha" / "AGENTS.md").read_text() == "alpha agents"
    assert not (tmp_path / "collected" / "beta").exists()


def test_nothing_found_exits_zero(tmp_path: Path, capsys) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()

    assert pipeline.main(["--root", str(empty), "--output", str(tmp_path / "from")]) == 0
    assert "Nothing found." in capsys.readouterr().out


def test_uncreatable_output_exits_one(repos: Path, tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("")

    assert pipeline.main(["--root", str(repos), "--output", str(blocker / "from")]) == 1


def test_unknown_step_exits_one() -> None:
    assert pipeline.main(["bogus"]) == 1


def test_invalid_config_exits_one(tmp_path: Path) -> None:
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("targets:\n  - path_segment: .github\n")

    assert pipeline.main(["--config", str(cfg)]) == 1


def test_scan_does_not_write(repos: Path, tmp_path: Path, capsys) -> None:
    out = tmp_path / "from"

    assert pipeline.main(["--root", str(repos), "--output", str(out), "scan"]) == 0

    assert not out.exists()
    printed = capsys.readouterr().out
    assert "alpha" in printed
    assert "3 match(es)" in printed


def test_dry_run_and_json_report(repos: Path, tmp_path: Path) -> None:
    out = tmp_path / "from"
    report = tmp_path / "report.json"

    code = pipeline.main(["--root", str(repos), "--output", str(out), "--dry-run", "--report-json", str(report)])

    assert code == 0
    assert not out.exists()
    data = json.loads(report.read_text())
    assert data["dry_run"] is True
    assert {o["status"] for o in data["outcomes"]} == {"planned"}


def test_scan_counts_roots_actually_scanned(repos: Path, tmp_path: Path, capsys) -> None:
    args = ["--root", str(repos), "--root", str(repos / "."), "--root", str(tmp_path / "missing"), "scan"]

    assert pipeline.main(args) == 0

    assert "3 match(es) across 1 root(s)" in capsys.readouterr().out


def test_empty_run_reports_nothing_found_once(tmp_path: Path, capsys) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()

    assert pipeline.main(["--root", str(empty), "--output", str(tmp_path / "from")]) == 0

    assert capsys.readouterr().out.count("Nothing found.") == 1
