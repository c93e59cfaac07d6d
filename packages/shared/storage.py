"""
Local disk storage for compiled dossiers (the download sink outside the browser).
"""
from __future__ import annotations

import hashlib
import logging
import os
import re
from pathlib import Path

DATA_DIR = Path(os.environ.get("DATA_DIR", "data"))
ARTIFACTS_DIR = DATA_DIR / "artifacts"

logger = logging.getLogger(__name__)


def ensure_dirs(base_dir: Path | None = None) -> Path:
    """Create the artifacts directory if it doesn't exist."""
    target = base_dir or ARTIFACTS_DIR
    target.mkdir(parents=True, exist_ok=True)
    return target


def sha256_bytes(data: bytes) -> str:
    """Compute sha256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def safe_file_name(file_name: str) -> str:
    name = os.path.basename(file_name.replace("\\", "/"))
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._")
    return name or "dossier.pdf"


def save_artifact(file_name: str, data: bytes, base_dir: Path | None = None) -> Path:
    """Write a compiled artifact to disk. Returns the file path."""
    target_dir = ensure_dirs(base_dir)
    path = target_dir / safe_file_name(file_name)
    path.write_bytes(data)
    logger.info(f"Saved {path} ({len(data)} bytes, sha256={sha256_bytes(data)[:12]})")
    return path


def get_artifact_path(file_name: str, base_dir: Path | None = None) -> Path:
    """Return the full path to a previously saved artifact."""
    return (base_dir or ARTIFACTS_DIR) / safe_file_name(file_name)


class DiskSink:
    """Download sink that saves each artifact under a directory."""

    def __init__(self, base_dir: Path | None = None):
        self.base_dir = base_dir
        self.saved: list[Path] = []

    def __call__(self, data: bytes, file_name: str) -> None:
        self.saved.append(save_artifact(file_name, data, self.base_dir))
