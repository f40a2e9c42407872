import json
from pathlib import Path

import pytest
from omegaconf import OmegaConf

from pprof_md.runners.report_runner import run

from pprof_fixtures import cpu_builder


def _cfg(**overrides):
    base = {
        "mode": "show",
        "input": None,
        "base": None,
        "new": None,
        "top_n": 10,
        "include_prompt": True,
        "category": None,
        "base_category": None,
        "new_category": None,
        "formats": ["markdown", "json"],
    }
    base.update(overrides)
    return OmegaConf.create(base)


def test_show_run_writes_artifacts(tmp_path: Path, cpu_capture_file: Path):
    run_root = tmp_path / "runs" / "r1"
    # relative input resolves against the given cwd
    artifacts = run(_cfg(input=cpu_capture_file.name), run_root, cpu_capture_file.parent)

    assert artifacts.config_yaml.is_file()
    md = artifacts.report_md.read_text(encoding="utf-8")
    assert "cpu Profile Analysis" in md
    data = json.loads(artifacts.report_json.read_text(encoding="utf-8"))
    assert data["category"] == "cpu"
    assert data["stats"]["sample_rate"] == 100


def test_diff_run_markdown_only(tmp_path: Path):
    base = tmp_path / "base.pprof"
    new = tmp_path / "new.pprof"
    base.write_bytes(cpu_builder().sample(["a.f"], [1, 0]).build())
    new.write_bytes(cpu_builder().sample(["a.f"], [3, 0]).build())

    artifacts = run(
        _cfg(mode="diff", base=str(base), new=str(new), formats=["markdown"]),
        tmp_path / "diff-run",
        tmp_path,
    )
    assert "Profile Diff" in artifacts.report_md.read_text(encoding="utf-8")
    assert not artifacts.report_json.exists()


def test_run_requires_input(tmp_path: Path):
    with pytest.raises(ValueError):
        run(_cfg(), tmp_path / "r", tmp_path)


def test_run_rejects_unknown_mode(tmp_path: Path):
    with pytest.raises(ValueError):
        run(_cfg(mode="explain"), tmp_path / "r", tmp_path)
