"""Triangle meshes and their encoding into POSITION/NORMAL/TEXCOORD_0/COLOR_0."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import pygltflib

from gltfscene.buffer import BufferView
from gltfscene.document import Document
from gltfscene.errors import UnsupportedError
from gltfscene.gltf_types import ComponentType, ElementShape, MeshMode, VertexColorMode
from gltfscene.material import Material, add_materials
from gltfscene.warning_policy import emit_warning

Color = tuple[float, ...]  # (r, g, b) or (r, g, b, a), components in [0, 1]

WHITE: Color = (1.0, 1.0, 1.0)


@dataclass
class Vertex:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    normal_x: float = 0.0
    normal_y: float = 0.0
    normal_z: float = 0.0
    u: float = 0.0
    v: float = 0.0
    color: Color | None = None


@dataclass
class Face:
    v1: Vertex
    v2: Vertex
    v3: Vertex
    color: Color | None = None
    material_index: int = -1

    @property
    def vertices(self) -> tuple[Vertex, Vertex, Vertex]:
        return (self.v1, self.v2, self.v3)


@dataclass(eq=False)
class Mesh:
    """Triangle soup grouped into primitives by consecutive material index."""

    mode: MeshMode = MeshMode.TRIANGLES
    material: list[Material] = field(default_factory=list)
    faces: list[Face] = field(default_factory=list)

    def add_face(
        self,
        v1: Vertex,
        v2: Vertex,
        v3: Vertex,
        color: Color | None = None,
        material_index: int = -1,
    ) -> None:
        self.faces.append(Face(v1, v2, v3, color, material_index))

    def iter_faces(self) -> Iterator[Face]:
        return iter(self.faces)


def _push_color(view: BufferView, color: Color) -> None:
    view.push(int(color[0] * 255))
    view.push(int(color[1] * 255))
    view.push(int(color[2] * 255))
    view.push(int(color[3] * 255) if len(color) > 3 else 0xFF)


class _PrimitiveWriter:
    """Owns the attribute views of one mesh and closes primitives on demand."""

    def __init__(self, doc: Document, mesh: Mesh, material_indices: list[int]) -> None:
        self.doc = doc
        self.mesh = mesh
        self.material_indices = material_indices
        self.buffer, self.owned = doc.subsystem_buffer()
        self.positions = self.buffer.add_view(ComponentType.FLOAT, ElementShape.VEC3)
        self.normals = self.buffer.add_view(ComponentType.FLOAT, ElementShape.VEC3)
        self.uvs = self.buffer.add_view(ComponentType.FLOAT, ElementShape.VEC2)
        self.colors: BufferView | None = None
        self.current_material: Material | None = None

    def _color_view(self) -> BufferView:
        if self.colors is None:
            self.colors = self.buffer.add_view(
                ComponentType.UNSIGNED_BYTE, ElementShape.VEC4, normalized=True
            )
        return self.colors

    def _has_colors(self) -> bool:
        material = self.current_material
        return material is not None and material.vertex_color_mode is not VertexColorMode.NO_COLORS

    def start(self, material_index: int) -> None:
        self.current_material = self.mesh.material[material_index] if material_index >= 0 else None
        self.positions.start_accessor("POSITION")
        self.normals.start_accessor("NORMAL")
        self.uvs.start_accessor("TEXCOORD_0")
        if self._has_colors():
            self._color_view().start_accessor("COLOR_0")

    def write(self, face: Face) -> None:
        for vert in face.vertices:
            self.positions.extend((vert.x, vert.y, vert.z))
            self.normals.extend((vert.normal_x, vert.normal_y, vert.normal_z))
            self.uvs.extend((vert.u, vert.v))

        mode = self.current_material.vertex_color_mode if self.current_material else None
        if mode is VertexColorMode.FACE_COLORS:
            for _ in range(3):
                _push_color(self.colors, face.color or WHITE)
        elif mode is VertexColorMode.VERTEX_COLORS:
            for vert in face.vertices:
                _push_color(self.colors, vert.color or WHITE)

    def close(self, material_index: int) -> pygltflib.Primitive:
        doc = self.doc
        attributes = pygltflib.Attributes(
            POSITION=doc.add_accessor(self.positions.index, self.positions.end_accessor()),
            NORMAL=doc.add_accessor(self.normals.index, self.normals.end_accessor()),
            TEXCOORD_0=doc.add_accessor(self.uvs.index, self.uvs.end_accessor()),
        )
        primitive = pygltflib.Primitive(attributes=attributes, mode=int(self.mesh.mode))
        if material_index >= 0:
            primitive.material = self.material_indices[material_index]
            if self._has_colors():
                attributes.COLOR_0 = doc.add_accessor(self.colors.index, self.colors.end_accessor())
        return primitive

    def finish(self) -> None:
        for view in (self.positions, self.normals, self.uvs, self.colors):
            if view is not None:
                view.finalize()
        if self.owned:
            self.doc.defer(self.buffer.finalize())


def add_mesh(doc: Document, mesh: Mesh) -> int:
    """Encode ``mesh`` once per document and return its glTF mesh index."""
    existing = doc.mesh_indices.get(mesh)
    if existing is not None:
        return existing

    if mesh.mode != MeshMode.TRIANGLES:
        raise UnsupportedError(f"Mesh mode {mesh.mode!r} is not supported; only TRIANGLES is")

    material_indices = add_materials(doc, mesh.material)

    gltf_mesh = pygltflib.Mesh(primitives=[])
    index = len(doc.gltf.meshes)
    doc.gltf.meshes.append(gltf_mesh)
    doc.mesh_indices[mesh] = index

    if not mesh.faces:
        emit_warning(
            "W03",
            f"Mesh {index} has no faces; emitted without primitives",
            policy=doc.options.warning_policy,
        )
        return index

    writer = _PrimitiveWriter(doc, mesh, material_indices)
    last_material: int | None = None
    for face in mesh.iter_faces():
        if face.material_index != last_material:
            if last_material is not None:
                gltf_mesh.primitives.append(writer.close(last_material))
            writer.start(face.material_index)
            last_material = face.material_index
        writer.write(face)

    if last_material is not None:
        gltf_mesh.primitives.append(writer.close(last_material))
    writer.finish()

    return index
