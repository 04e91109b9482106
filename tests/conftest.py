"""Shared fixtures for gltfscene tests."""

from __future__ import annotations

import asyncio

import numpy as np
import pytest

from gltfscene.document import Document, ExportOptions
from gltfscene.exporter import build_document
from gltfscene.gltf_types import BufferOutputType, ComponentType, ElementShape, ImageOutputType
from gltfscene.material import Material
from gltfscene.mesh import Mesh, Vertex
from gltfscene.node import GLTFAsset, Node, Scene


def _decode_accessor(doc: Document, accessor_index: int) -> np.ndarray:
    gltf = doc.gltf
    accessor = gltf.accessors[accessor_index]
    view = gltf.bufferViews[accessor.bufferView]
    buffer = next(b for b in doc.buffers if b.index == view.buffer)
    width = ElementShape(accessor.type).width
    dtype = ComponentType(accessor.componentType).dtype
    start = view.byteOffset + accessor.byteOffset
    flat = np.frombuffer(buffer.data, dtype=dtype, count=accessor.count * width, offset=start)
    return flat.reshape(accessor.count, width)


@pytest.fixture
def read_accessor():
    """Decode an accessor of a completed document into a (count, width) array."""
    return _decode_accessor


@pytest.fixture
def export_document():
    """Run the full asynchronous build of an asset and return the document."""

    def _export(asset: GLTFAsset, options: ExportOptions | None = None) -> Document:
        return asyncio.run(build_document(asset, options))

    return _export


@pytest.fixture
def separate_options():
    return ExportOptions(
        buffer_output=BufferOutputType.SEPARATE, image_output=ImageOutputType.DATA_URI
    )


@pytest.fixture
def single_node_asset():
    """Scenario A: one scene holding one translated node."""
    asset = GLTFAsset()
    scene = Scene("main")
    node = Node("box")
    node.set_translation(1, 2, 3)
    scene.add_node(node)
    asset.add_scene(scene)
    return asset


@pytest.fixture
def triangle_mesh():
    red = Material(name="red", base_color_factor=(1.0, 0.0, 0.0, 1.0))
    mesh = Mesh(material=[red])
    mesh.add_face(
        Vertex(0, 0, 0, 0, 0, 1, 0, 0),
        Vertex(1, 0, 0, 0, 0, 1, 1, 0),
        Vertex(0, 1, 0, 0, 0, 1, 0, 1),
        material_index=0,
    )
    return mesh


@pytest.fixture
def skeleton_chain():
    """Owner -> Spine -> Pelvis -> (LeftLeg, RightLeg), with the skin on the owner."""
    owner = Node("Body")
    spine = Node("Spine")
    pelvis = Node("Pelvis")
    left = Node("LeftLeg")
    right = Node("RightLeg")
    owner.add_node(spine)
    spine.add_node(pelvis)
    pelvis.add_node(left)
    pelvis.add_node(right)
    return owner, spine, pelvis, left, right


@pytest.fixture
def minimal_scene_yaml():
    return """\
version: "0.1"
scenes:
  - name: main
    nodes: [root]
nodes:
  root:
    name: Root
    translation: [0, 1, 0]
    children: [tri]
  tri:
    mesh: tri
meshes:
  tri:
    materials: [red]
    faces:
      - material: 0
        vertices:
          - {position: [0, 0, 0], normal: [0, 0, 1], uv: [0, 0]}
          - {position: [1, 0, 0], normal: [0, 0, 1], uv: [1, 0]}
          - {position: [0, 1, 0], normal: [0, 0, 1], uv: [0, 1]}
materials:
  red:
    name: red
    base_color_factor: [1, 0, 0, 1]
"""


@pytest.fixture
def animated_skin_yaml():
    return """\
version: "0.1"
scenes:
  - nodes: [body]
nodes:
  body:
    name: Body
    skin: rig
    children: [hip]
  hip:
    name: Hip
    children: [knee]
    inverse_bind_matrix: [1, 0, 0, 0,  0, 1, 0, -1,  0, 0, 1, 0,  0, 0, 0, 1]
    animations:
      - path: rotation
        name: bend
        keyframes:
          - {time: 0, value: [0, 0, 0, 1]}
          - {time: 0.5, value: [0, 0, 0.38268, 0.92388], interpolation: STEP}
  knee:
    name: Knee
skins:
  rig:
    name: rig
"""
