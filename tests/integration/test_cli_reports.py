import json
from pathlib import Path

from pprof_md.runners.pprof_md_main import main

from pprof_fixtures import CaptureBuilder, cpu_builder


def _write(tmp_path: Path, name: str, data: bytes) -> str:
    p = tmp_path / name
    p.write_bytes(data)
    return str(p)


def test_show_writes_markdown_file(tmp_path: Path, cpu_capture_file: Path):
    out = tmp_path / "report.md"
    rc = main(["show", str(cpu_capture_file), "-o", str(out), "-n", "5"])
    assert rc == 0
    text = out.read_text(encoding="utf-8")
    assert "cpu Profile Analysis" in text
    assert "`main.compute`" in text
    assert "AI Analysis Request" in text


def test_show_to_stdout_without_prompt(cpu_capture_file: Path, capsys):
    rc = main(["analyze", str(cpu_capture_file), "--no-ai-prompt"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "Top cpu Functions" in out
    assert "AI Analysis Request" not in out


def test_show_json_with_explicit_type(tmp_path: Path, cpu_capture_file: Path):
    out = tmp_path / "report.json"
    rc = main(["show", str(cpu_capture_file), "-t", "cpu", "--format", "json", "-o", str(out)])
    assert rc == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["category"] == "cpu"
    assert data["functions"][0]["name"] == "main.compute"


def test_show_errors_exit_one(tmp_path: Path, cpu_capture_file: Path, capsys):
    assert main(["show", str(tmp_path / "missing.pprof")]) == 1
    assert "ERROR: file not found" in capsys.readouterr().err

    assert main(["show", str(cpu_capture_file), "-t", "disk"]) == 1
    assert main(["show", str(cpu_capture_file), "-n", "-1"]) == 1

    junk = _write(tmp_path, "junk.bin", bytes([0x07, 0x07, 0x07, 0x07]))
    assert main(["show", junk]) == 1
    assert "unknown profile type" in capsys.readouterr().err


def test_diff_markdown_and_json(tmp_path: Path):
    base = cpu_builder().sample(["main.old", "main.main"], [4, 0]).build()
    new = cpu_builder().sample(["main.new", "main.main"], [2, 0]).build()
    base_p = _write(tmp_path, "base.pprof", base)
    new_p = _write(tmp_path, "new.pprof", new)

    md_out = tmp_path / "diff.md"
    assert main(["diff", base_p, new_p, "-o", str(md_out)]) == 0
    text = md_out.read_text(encoding="utf-8")
    assert "cpu Profile Diff: Base vs New" in text
    assert "`main.old`" in text and "`main.new`" in text

    js_out = tmp_path / "diff.json"
    assert main(["diff", base_p, new_p, "--format", "json", "-o", str(js_out)]) == 0
    data = json.loads(js_out.read_text(encoding="utf-8"))
    names = [f["name"] for f in data["functions"]]
    assert names[0] == "main.old"
    assert set(names) == {"main.old", "main.new", "main.main"}


def test_diff_category_mismatch_exits_one(tmp_path: Path, cpu_capture_file: Path, capsys):
    heap = CaptureBuilder().sample_type("alloc_objects", "count").sample_type("alloc_space", "bytes")
    heap.sample(["main.alloc"], [1, 64])
    heap_p = _write(tmp_path, "heap.pprof", heap.build())
    assert main(["diff", str(cpu_capture_file), heap_p]) == 1
    assert "profile types do not match" in capsys.readouterr().err
