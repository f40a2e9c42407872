"""Run-directory management for report runs.

Classes
-------
Artifacts
    Manager for one run directory (config, reports, log) with read-only
    property access and explicit setters/factories.

Functions
---------
new_run_id
    Build a timestamp-based run identifier (YYYYMMDD-HHMMSS).
write_config_yaml
    Serialize a Hydra/OmegaConf config to YAML.
write_json
    Write a JSON-serializable payload.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Type, TypeVar

from omegaconf import OmegaConf  # type: ignore[import-untyped]

T = TypeVar("T", bound="Artifacts")

REPORT_MD = "report.md"
REPORT_JSON = "report.json"
CONFIG_YAML = "config.yaml"
LOG_FILE = "pprof_md.log"


def new_run_id(dt: Optional[datetime] = None) -> str:
    """Return a timestamped run identifier.

    Parameters
    ----------
    dt : datetime or None, optional
        Datetime to format; defaults to ``datetime.now()``.

    Returns
    -------
    str
        Identifier in the form ``YYYYMMDD-HHMMSS``.

    Examples
    --------
    >>> new_run_id(datetime(2024, 1, 2, 3, 4, 5))
    '20240102-030405'
    """

    ts = (dt or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return ts


class Artifacts:
    """Artifacts manager for a report run.

    The constructor takes no arguments; use :meth:`from_root` or
    :meth:`set_root` to configure the target directory.

    Attributes
    ----------
    root : pathlib.Path
        Read-only property for the run directory.
    """

    def __init__(self) -> None:
        self.m_root: Optional[Path] = None

    @property
    def root(self) -> Path:
        """Run directory (read-only)."""

        if self.m_root is None:
            raise RuntimeError("Artifacts root not set. Use from_root() or set_root().")
        return self.m_root

    def set_root(self, root: Path | str) -> None:
        """Set and create the run directory."""

        rp = Path(root).resolve()
        rp.mkdir(parents=True, exist_ok=True)
        self.m_root = rp

    @classmethod
    def from_root(cls: Type[T], root: Path | str) -> T:
        """Factory that returns an initialized manager for ``root``.

        Examples
        --------
        >>> a = Artifacts.from_root('tmp/pprof-md/demo')
        >>> a.root.name == 'demo'
        True
        """

        obj = cls()
        obj.set_root(root)
        return obj

    def path(self, name: str) -> Path:
        """Return a path within the run directory."""

        return self.root / name

    @property
    def report_md(self) -> Path:
        return self.path(REPORT_MD)

    @property
    def report_json(self) -> Path:
        return self.path(REPORT_JSON)

    @property
    def config_yaml(self) -> Path:
        return self.path(CONFIG_YAML)

    @property
    def log_file(self) -> Path:
        return self.path(LOG_FILE)


def write_config_yaml(path: Path, cfg: Any) -> None:
    """Serialize a Hydra/OmegaConf config object to YAML at ``path``.

    Parameters
    ----------
    path : Path
        Destination file path.
    cfg : Any
        Hydra/OmegaConf configuration object (or any OmegaConf-serializable object).
    """

    yml = OmegaConf.to_yaml(cfg)
    path.write_text(yml, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    """Write ``payload`` as indented JSON at ``path``."""

    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
