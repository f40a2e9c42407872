from pathlib import Path

import pytest

from pprof_fixtures import CaptureBuilder, cpu_builder


@pytest.fixture()
def builder() -> CaptureBuilder:
    return CaptureBuilder()


@pytest.fixture()
def cpu_capture_file(tmp_path: Path) -> Path:
    """Gzip-wrapped CPU capture with two hot leaves under main.main."""

    b = cpu_builder()
    b.duration(2_000_000_000)
    b.sample(["main.compute", "main.main"], [3, 30_000_000])
    b.sample(["main.parse", "main.main"], [1, 10_000_000])
    p = tmp_path / "cpu.pprof"
    p.write_bytes(b.build(compress=True))
    return p
