"""Summaries of exported ``.glb`` / ``.gltf`` files for ``gltfscene inspect``."""

from __future__ import annotations

from pathlib import Path

import pygltflib

from gltfscene.errors import ParseError


def load_gltf(path: Path) -> pygltflib.GLTF2:
    try:
        gltf = pygltflib.GLTF2().load(str(path))
    except Exception as e:
        raise ParseError(f"Cannot load glTF file {path}: {e}") from e
    if gltf is None:
        raise ParseError(f"Cannot load glTF file {path}")
    return gltf


def inspect_gltf(gltf: pygltflib.GLTF2) -> dict:
    """Summarize section counts, animation samplers/channels and skins."""
    animations = []
    for anim in gltf.animations:
        animations.append(
            {
                "name": anim.name,
                "samplers": [
                    {
                        "input": s.input,
                        "output": s.output,
                        "interpolation": s.interpolation,
                        "tangents": (s.extras or {}).get("tangents"),
                    }
                    for s in anim.samplers
                ],
                "channels": [
                    {
                        "sampler": c.sampler,
                        "node": c.target.node,
                        "path": c.target.path,
                        "include": (c.extras or {}).get("include"),
                    }
                    for c in anim.channels
                ],
            }
        )

    return {
        "counts": {
            "scenes": len(gltf.scenes),
            "nodes": len(gltf.nodes),
            "meshes": len(gltf.meshes),
            "materials": len(gltf.materials),
            "textures": len(gltf.textures),
            "images": len(gltf.images),
            "accessors": len(gltf.accessors),
            "buffer_views": len(gltf.bufferViews),
            "buffers": len(gltf.buffers),
            "skins": len(gltf.skins),
            "animations": len(gltf.animations),
        },
        "default_scene": gltf.scene,
        "animations": animations,
        "skins": [
            {
                "name": skin.name,
                "joints": len(skin.joints),
                "skeleton": skin.skeleton,
                "inverse_bind_matrices": skin.inverseBindMatrices,
            }
            for skin in gltf.skins
        ],
    }


def render_text(payload: dict) -> str:
    lines = ["Counts:"]
    for key, value in payload["counts"].items():
        lines.append(f"  {key}: {value}")
    lines.append(f"Default scene: {payload['default_scene']}")

    for i, anim in enumerate(payload["animations"]):
        lines.append(f"Animation {i} ({anim['name'] or 'unnamed'}):")
        for j, sampler in enumerate(anim["samplers"]):
            extra = f" tangents={sampler['tangents']}" if sampler["tangents"] is not None else ""
            lines.append(
                f"  sampler {j}: {sampler['interpolation']} "
                f"input={sampler['input']} output={sampler['output']}{extra}"
            )
        for channel in anim["channels"]:
            lines.append(
                f"  channel: node {channel['node']} {channel['path']} "
                f"<- sampler {channel['sampler']}"
            )

    for i, skin in enumerate(payload["skins"]):
        ibm = "yes" if skin["inverse_bind_matrices"] is not None else "no"
        lines.append(
            f"Skin {i} ({skin['name'] or 'unnamed'}): {skin['joints']} joint(s), "
            f"inverse bind matrices: {ibm}"
        )
    return "\n".join(lines) + "\n"
