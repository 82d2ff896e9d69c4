"""Run folders: every generation request gets its own directory.

    <runs_root>/
        latest -> <run_id>          most recent run (symlink, or a folder
                                    holding latest_run.txt)
        <run_id>/
            manifest.json           request, config and artifact paths
            metrics.json            counts, bounds, timings, price
            summary.md              human-readable recap
            artifacts/              STL / GLB / geometry.json
"""

from __future__ import annotations

import json
import os
import re
import shutil
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

DEFAULT_SLUG = "jewelry"
LATEST_LINK = "latest"
LATEST_MARKER = "latest_run.txt"


@dataclass(frozen=True)
class RunPaths:
    """File locations inside one run folder."""
    run_id: str
    run_dir: Path

    @property
    def artifacts_dir(self) -> Path:
        return self.run_dir / "artifacts"

    @property
    def manifest_path(self) -> Path:
        return self.run_dir / "manifest.json"

    @property
    def metrics_path(self) -> Path:
        return self.run_dir / "metrics.json"

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.md"

    def artifact(self, filename: str) -> Path:
        return self.artifacts_dir / filename


def slugify(value: str) -> str:
    """Lowercase, non-alphanumeric runs collapsed to single hyphens."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or DEFAULT_SLUG


def create_run_id(design_name: str) -> str:
    """UTC timestamp, design slug, and a 6-hex-digit random suffix.

    Two requests for the same design within one second still get distinct
    folders.
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{stamp}_{slugify(design_name)}_{uuid.uuid4().hex[:6]}"


def prepare_run_dir(runs_root: str, design_name: str) -> RunPaths:
    """Create a fresh run folder (and its artifacts dir) under runs_root.

    Raises:
        FileExistsError: The generated run id is already taken.
    """
    run_id = create_run_id(design_name)
    paths = RunPaths(run_id=run_id, run_dir=Path(runs_root) / run_id)
    paths.artifacts_dir.mkdir(parents=True, exist_ok=False)
    return paths


def write_json(path: Path, payload: Dict[str, Any]) -> None:
    write_text(path, json.dumps(payload, indent=2) + "\n")


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def update_latest_pointer(runs_root: str, run_dir: Path) -> None:
    """Repoint <runs_root>/latest at run_dir.

    Uses a relative symlink; where symlinks are unavailable, ``latest`` is a
    directory containing the run folder name in latest_run.txt.
    """
    root = Path(runs_root)
    latest = root / LATEST_LINK

    if latest.is_symlink() or latest.is_file():
        latest.unlink()
    elif latest.is_dir():
        shutil.rmtree(latest)

    try:
        latest.symlink_to(os.path.relpath(run_dir, root), target_is_directory=True)
    except OSError:
        latest.mkdir()
        (latest / LATEST_MARKER).write_text(run_dir.name, encoding="utf-8")
