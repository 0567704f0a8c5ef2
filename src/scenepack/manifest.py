"""JSON manifest describing one ``scenepack pack`` run."""

from __future__ import annotations

import hashlib
import platform
from datetime import datetime, timezone
from pathlib import Path

from scenepack import __version__

MANIFEST_VERSION = 1


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _file_entry(path: Path) -> dict:
    return {"path": str(path), "sha256": _digest(path.read_bytes())}


def build_manifest(
    *,
    input_path: Path,
    output_path: Path,
    resources: dict[str, bytes] | None = None,
    command_args: list[str] | None = None,
) -> dict:
    """Describe a pack run: the scene file read, the document written, and
    every external resource stored beside it (sorted by URI).

    ``output_path`` must already exist.
    """
    manifest: dict = {
        "manifest_version": MANIFEST_VERSION,
        "tool": {
            "name": "scenepack",
            "version": __version__,
            "python": platform.python_version(),
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "input": _file_entry(input_path),
        "output": _file_entry(output_path),
        "resources": [
            {"uri": uri, "byte_length": len(payload), "sha256": _digest(payload)}
            for uri, payload in sorted((resources or {}).items())
        ],
    }
    if command_args is not None:
        manifest["command_args"] = list(command_args)
    return manifest
