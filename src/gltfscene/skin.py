"""Skins: joint hierarchy flattening and inverse bind matrix encoding."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import pygltflib

from gltfscene.document import Document
from gltfscene.gltf_types import ComponentType, ElementShape
from gltfscene.matrix import Matrix, Matrix4x4
from gltfscene.node import Node
from gltfscene.warning_policy import emit_warning


@dataclass(eq=False)
class Skin:
    """Binds a mesh node to a joint hierarchy.

    Joints are not stored: they are the preorder traversal of ``skeleton``
    (or of the owning node when unset). Per-joint inverse bind matrices live
    on the joint nodes as ``Node.inverse_bind_matrix``.
    """

    name: str = ""
    skeleton: Node | None = None


def collect_joints(doc: Document, root: Node) -> tuple[list[int], list[Matrix | None]]:
    """Preorder walk of ``root``'s subtree: (document indices, inverse bind matrices)."""
    joints: list[int] = []
    matrices: list[Matrix | None] = []
    stack = [root]
    while stack:
        node = stack.pop()
        joints.append(doc.require_node_index(node))
        matrices.append(node.inverse_bind_matrix)
        stack.extend(reversed(node.children))
    return joints, matrices


def _has_inverse_bind_matrices(matrices: list[Matrix | None]) -> bool:
    return any(m is not None and m.size == 4 and not m.is_identity() for m in matrices)


def add_skin(
    doc: Document,
    skin: Skin,
    node: Node,
    emit_node: Callable[[Document, Node], int],
) -> int:
    """Append a glTF skin for ``node`` and return its index.

    ``emit_node`` is used to add a skeleton root that the traversal has not
    reached yet. The inverse bind matrix accessor is only written when some
    joint has a non-identity matrix; otherwise consumers assume identity.

    Every joint must already have a document index, apart from a skeleton
    root that is emitted here. A skeleton that is an ancestor of ``node``
    with joints traversed after ``node`` (for example an armature whose
    children are the skinned mesh followed by the hip) therefore raises
    ``UsageError``; put the skinned node after its joints.
    """
    index = len(doc.gltf.skins)
    gltf_skin = pygltflib.Skin(joints=[])
    doc.gltf.skins.append(gltf_skin)

    if skin.name:
        gltf_skin.name = skin.name

    if skin.skeleton is not None:
        skeleton_index = doc.get_node_index(skin.skeleton)
        if skeleton_index is None:
            emit_warning(
                "W02",
                f"Skeleton root {skin.skeleton.name or skin.skeleton!r} of skin "
                f"{skin.name or index!r} is not in the traversed graph yet; emitting it now",
                policy=doc.options.warning_policy,
            )
            skeleton_index = emit_node(doc, skin.skeleton)
        gltf_skin.skeleton = skeleton_index

    root = skin.skeleton if skin.skeleton is not None else node
    joints, matrices = collect_joints(doc, root)
    gltf_skin.joints = joints

    if not _has_inverse_bind_matrices(matrices):
        return index

    buffer, owned = doc.subsystem_buffer()
    view = buffer.add_view(ComponentType.FLOAT, ElementShape.MAT4)

    # glTF matrices are column-major; Matrix stores rows
    view.start_accessor("inverseBindMatrices")
    for m in matrices:
        if m is None or m.size != 4:
            m = Matrix4x4()
        view.extend(m.to_column_major())
    gltf_skin.inverseBindMatrices = doc.add_accessor(view.index, view.end_accessor())

    view.finalize()
    if owned:
        doc.defer(buffer.finalize())

    return index
