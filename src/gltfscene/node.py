"""Authoring-side scene graph: nodes, scenes and the asset that owns them."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from gltfscene.matrix import Matrix4x4

if TYPE_CHECKING:
    from gltfscene.animation import Track
    from gltfscene.mesh import Mesh
    from gltfscene.skin import Skin

IDENTITY_TRANSLATION = (0.0, 0.0, 0.0)
IDENTITY_ROTATION = (0.0, 0.0, 0.0, 1.0)
IDENTITY_SCALE = (1.0, 1.0, 1.0)


def euler_to_quaternion(rx: float, ry: float, rz: float) -> tuple[float, float, float, float]:
    """Convert Euler angles (radians, XYZ order) to a quaternion (x, y, z, w)."""
    cx, sx = math.cos(rx / 2), math.sin(rx / 2)
    cy, sy = math.cos(ry / 2), math.sin(ry / 2)
    cz, sz = math.cos(rz / 2), math.sin(rz / 2)

    # Rotation order: X then Y then Z (q = qz * qy * qx)
    return (
        sx * cy * cz - cx * sy * sz,
        cx * sy * cz + sx * cy * sz,
        cx * cy * sz - sx * sy * cz,
        cx * cy * cz + sx * sy * sz,
    )


class Node:
    """A scene graph node.

    Nodes compare and hash by identity. The same node may be added under
    several parents; it is emitted once and referenced by one index.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.mesh: Mesh | None = None
        self.skin: Skin | None = None
        self.inverse_bind_matrix: Matrix4x4 | None = None
        self.animations: list[Track] = []
        self._children: list[Node] = []
        self._translation = IDENTITY_TRANSLATION
        self._rotation = IDENTITY_ROTATION
        self._scale = IDENTITY_SCALE

    def __repr__(self) -> str:
        return f"Node(name={self.name!r})"

    # -- transforms --------------------------------------------------------

    def set_translation(self, x: float, y: float, z: float) -> None:
        self._translation = (float(x), float(y), float(z))

    def get_translation(self) -> tuple[float, float, float]:
        return self._translation

    def set_rotation_quaternion(self, x: float, y: float, z: float, w: float) -> None:
        self._rotation = (float(x), float(y), float(z), float(w))

    def set_rotation_radians(self, x: float, y: float, z: float) -> None:
        self._rotation = euler_to_quaternion(x, y, z)

    def set_rotation_degrees(self, x: float, y: float, z: float) -> None:
        self.set_rotation_radians(math.radians(x), math.radians(y), math.radians(z))

    def get_rotation_quaternion(self) -> tuple[float, float, float, float]:
        return self._rotation

    def set_scale(self, x: float, y: float, z: float) -> None:
        self._scale = (float(x), float(y), float(z))

    def get_scale(self) -> tuple[float, float, float]:
        return self._scale

    # -- hierarchy ---------------------------------------------------------

    @property
    def children(self) -> tuple[Node, ...]:
        return tuple(self._children)

    def add_node(self, node: Node) -> None:
        self._children.append(node)

    def remove_node(self, node: Node) -> None:
        self._children = [child for child in self._children if child is not node]

    def node_count(self) -> int:
        return len(self._children)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._children)

    # -- attachments -------------------------------------------------------

    def add_animations(self, tracks: Iterable[Track]) -> None:
        self.animations.extend(tracks)


class Scene:
    def __init__(self, name: str = "") -> None:
        self.name = name
        self._nodes: list[Node] = []

    @property
    def nodes(self) -> tuple[Node, ...]:
        return tuple(self._nodes)

    def add_node(self, node: Node) -> None:
        self._nodes.append(node)

    def remove_node(self, node: Node) -> None:
        self._nodes = [n for n in self._nodes if n is not node]

    def node_count(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)


class GLTFAsset:
    """Top-level authored asset: an ordered list of scenes and a default scene."""

    def __init__(self) -> None:
        self.default_scene = 0
        self._scenes: list[Scene] = []

    @property
    def scenes(self) -> tuple[Scene, ...]:
        return tuple(self._scenes)

    def add_scene(self, scene: Scene) -> None:
        self._scenes.append(scene)

    def remove_scene(self, scene: Scene) -> None:
        self._scenes = [s for s in self._scenes if s is not scene]

    def scene_count(self) -> int:
        return len(self._scenes)
