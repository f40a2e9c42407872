"""Hydra entry point for report runs.

Each run writes its artifacts into the Hydra run directory::

    tmp/pprof-md/<run_id>/
        config.yaml     # resolved configuration
        report.md       # Markdown report (formats includes "markdown")
        report.json     # JSON view (formats includes "json")
        pprof_md.log    # run log
"""

from __future__ import annotations

import logging
from pathlib import Path

import hydra
from hydra.core.hydra_config import HydraConfig
from omegaconf import DictConfig

from pprof_md.contracts.convert import diffs_to_dict, profile_to_dict
from pprof_md.contracts.models import DiffRequest, ReportRequest
from pprof_md.profiling.artifacts import Artifacts, write_config_yaml, write_json
from pprof_md.profiling.export import write_diff_markdown, write_profile_markdown
from pprof_md.runners.report_tools import run_diff, run_show
from pprof_md.utils.paths import resolve_hydra_path


def _attach_file_log(artifacts: Artifacts) -> logging.Handler:
    fh = logging.FileHandler(artifacts.log_file, encoding="utf-8")
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(fh)
    return fh


def _require(cfg: DictConfig, key: str, cwd: Path) -> str:
    value = resolve_hydra_path(cfg.get(key), cwd)
    if value is None:
        raise ValueError(f"config key '{key}' is required for mode={cfg.mode}")
    return value


def run(cfg: DictConfig, run_root: Path, cwd: Path) -> Artifacts:
    """Execute one report run described by ``cfg`` into ``run_root``.

    Parameters
    ----------
    cfg : DictConfig
        Composed configuration (see ``conf/config.yaml``).
    run_root : Path
        Destination run directory.
    cwd : Path
        Directory relative capture paths are resolved against.

    Returns
    -------
    Artifacts
        Manager for the populated run directory.
    """

    logger = logging.getLogger(__name__)
    artifacts = Artifacts.from_root(run_root)
    write_config_yaml(artifacts.config_yaml, cfg)
    formats = {str(f) for f in cfg.get("formats", ["markdown"])}
    top_n = int(cfg.get("top_n", 20))
    mode = str(cfg.get("mode", "show"))

    if mode == "show":
        req = ReportRequest(
            top_n=top_n,
            include_prompt=bool(cfg.get("include_prompt", True)),
            category=cfg.get("category"),
        )
        profile, _ = run_show(_require(cfg, "input", cwd), req)
        if "markdown" in formats:
            write_profile_markdown(profile, artifacts.report_md, top_n=req.top_n, include_prompt=req.include_prompt)
        if "json" in formats:
            write_json(artifacts.report_json, profile_to_dict(profile, top_n=req.top_n))
    elif mode == "diff":
        dreq = DiffRequest(
            top_n=top_n,
            base_category=cfg.get("base_category"),
            new_category=cfg.get("new_category"),
        )
        base, new, diffs, _ = run_diff(_require(cfg, "base", cwd), _require(cfg, "new", cwd), dreq)
        if "markdown" in formats:
            write_diff_markdown(base, new, diffs, artifacts.report_md)
        if "json" in formats:
            write_json(artifacts.report_json, diffs_to_dict(base, new, diffs))
    else:
        raise ValueError(f"unknown mode {mode!r} (expected 'show' or 'diff')")

    logger.info("Report run complete | mode=%s artifacts_dir=%s", mode, str(artifacts.root))
    return artifacts


@hydra.main(version_base=None, config_path="../../../conf", config_name="config")
def main(cfg: DictConfig) -> None:  # pragma: no cover - CLI orchestrator
    """Hydra entry point; see the module docstring for the output layout."""

    logging.captureWarnings(True)
    run_dir_cfg = Path(HydraConfig.get().run.dir)
    base_cwd = Path(HydraConfig.get().runtime.cwd)
    run_root = run_dir_cfg if run_dir_cfg.is_absolute() else (base_cwd / run_dir_cfg)
    artifacts = Artifacts.from_root(run_root)
    fh = _attach_file_log(artifacts)
    try:
        run(cfg, run_root, base_cwd)
    finally:
        logging.getLogger().removeHandler(fh)
        fh.close()


if __name__ == "__main__":
    main()
