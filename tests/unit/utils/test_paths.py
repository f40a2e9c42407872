from pathlib import Path

from pprof_md.utils.paths import resolve_hydra_path


def test_resolve_hydra_path_empty_values():
    cwd = Path("/tmp")
    assert resolve_hydra_path(None, cwd) is None
    assert resolve_hydra_path("  ", cwd) is None
    assert resolve_hydra_path("null", cwd) is None


def test_resolve_hydra_path_relative_and_absolute(tmp_path: Path):
    assert resolve_hydra_path("caps/cpu.pprof", tmp_path) == str((tmp_path / "caps" / "cpu.pprof").resolve())
    abs_in = str(tmp_path / "x.pprof")
    assert resolve_hydra_path(abs_in, Path("/elsewhere")) == str(Path(abs_in).resolve())

