"""Build manifest for gltfscene compile output."""

from __future__ import annotations

import hashlib
import sys
from datetime import datetime, timezone
from pathlib import Path

from gltfscene import __version__
from gltfscene.document import Document


def _sha256_of_file(path: Path) -> str:
    """Return the hex SHA-256 digest of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(65536)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def build_manifest(
    *,
    input_path: Path,
    output_path: Path,
    doc: Document | None = None,
    command_args: list[str] | None = None,
) -> dict:
    """Build a manifest dict describing a compile run.

    Should be called *after* the output file has been written. When ``doc``
    is given, document section sizes and external image files are recorded.
    """
    manifest: dict = {
        "manifest_version": 1,
        "tool": {
            "name": "gltfscene",
            "version": __version__,
            "python": sys.version.split()[0],
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "input": {
            "path": str(input_path),
            "sha256": _sha256_of_file(input_path),
        },
        "output": {
            "path": str(output_path),
            "sha256": _sha256_of_file(output_path),
        },
    }

    if doc is not None:
        gltf = doc.gltf
        manifest["document"] = {
            "nodes": len(gltf.nodes),
            "meshes": len(gltf.meshes),
            "accessors": len(gltf.accessors),
            "buffer_views": len(gltf.bufferViews),
            "buffers": len(gltf.buffers),
            "skins": len(gltf.skins),
            "animations": len(gltf.animations),
        }
        if doc.external_files:
            manifest["external_files"] = [
                {
                    "path": str(output_path.parent / uri),
                    "sha256": _sha256_of_file(output_path.parent / uri),
                }
                for uri in sorted(doc.external_files)
            ]

    if command_args is not None:
        manifest["command_args"] = command_args

    return manifest
