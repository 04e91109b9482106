"""Document assembly: scene graph traversal into a glTF document."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pygltflib

from gltfscene.animation import add_animations
from gltfscene.document import Document, ExportOptions
from gltfscene.errors import ExportError, GltfSceneError, UsageError
from gltfscene.mesh import add_mesh
from gltfscene.node import (
    IDENTITY_ROTATION,
    IDENTITY_SCALE,
    IDENTITY_TRANSLATION,
    GLTFAsset,
    Node,
    Scene,
)
from gltfscene.skin import add_skin
from gltfscene.writer import save_glb, save_gltf


def add_scenes(doc: Document, asset: GLTFAsset) -> None:
    """Emit every scene of ``asset``; the bin chunk is sealed on the barrier."""
    doc.gltf.scene = asset.default_scene

    if doc.options.uses_bin_chunk and doc.bin_chunk_buffer is None:
        doc.bin_chunk_buffer = doc.create_buffer()

    for scene in asset.scenes:
        add_scene(doc, scene)

    if doc.bin_chunk_buffer is not None:
        doc.defer(doc.bin_chunk_buffer.finalize())


def add_scene(doc: Document, scene: Scene) -> int:
    gltf_scene = pygltflib.Scene(name=scene.name or None)
    roots = [add_node(doc, node) for node in scene]
    if roots:
        gltf_scene.nodes = roots

    index = len(doc.gltf.scenes)
    doc.gltf.scenes.append(gltf_scene)
    return index


def add_node(doc: Document, node: Node) -> int:
    """Emit ``node`` and its subtree once, returning the node's document index.

    The index is recorded before the children are visited, so a node reached
    again through another parent resolves to the same entry.
    """
    if node in doc.visiting:
        raise UsageError(f"Scene graph contains a cycle through node {node.name or node!r}")

    existing = doc.get_node_index(node)
    if existing is not None:
        return existing

    gltf_node = pygltflib.Node(name=node.name or None)

    translation = node.get_translation()
    if translation != IDENTITY_TRANSLATION:
        gltf_node.translation = list(translation)
    rotation = node.get_rotation_quaternion()
    if rotation != IDENTITY_ROTATION:
        gltf_node.rotation = list(rotation)
    scale = node.get_scale()
    if scale != IDENTITY_SCALE:
        gltf_node.scale = list(scale)

    index = len(doc.gltf.nodes)
    doc.gltf.nodes.append(gltf_node)
    doc.set_node_index(node, index)

    doc.visiting.add(node)
    try:
        add_animations(doc, node.animations, index)

        if node.mesh is not None:
            gltf_node.mesh = add_mesh(doc, node.mesh)

        children = [add_node(doc, child) for child in node]
        if children:
            gltf_node.children = children

        if node.skin is not None:
            gltf_node.skin = add_skin(doc, node.skin, node, add_node)
    finally:
        doc.visiting.discard(node)

    return index


async def build_document(asset: GLTFAsset, options: ExportOptions | None = None) -> Document:
    """Traverse ``asset`` and wait for every deferred buffer and image step."""
    doc = Document(options)
    try:
        add_scenes(doc, asset)
    except BaseException:
        doc.discard_pending()
        raise
    await doc.complete()
    return doc


def export_gltf(
    asset: GLTFAsset,
    output_path: Path,
    *,
    options: ExportOptions | None = None,
) -> Document:
    """Export ``asset`` to ``output_path``; ``.gltf`` writes JSON, anything else GLB."""
    output_path = Path(output_path)
    try:
        doc = asyncio.run(build_document(asset, options))
        if output_path.suffix.lower() == ".gltf":
            save_gltf(doc, output_path)
        else:
            save_glb(doc, output_path)
    except GltfSceneError:
        raise
    except Exception as e:
        raise ExportError(f"Failed to export glTF: {e}") from e
    return doc
