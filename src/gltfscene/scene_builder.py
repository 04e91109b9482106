"""Semantic validation of scene descriptions and construction of the node graph."""

from __future__ import annotations

from pathlib import Path

from gltfscene.document import ExportOptions
from gltfscene.errors import ValidationError
from gltfscene.gltf_types import BufferOutputType, ImageOutputType
from gltfscene.material import Material, Texture
from gltfscene.matrix import Matrix4x4
from gltfscene.mesh import Mesh, Vertex
from gltfscene.models import MaterialSpec, MeshSpec, NodeSpec, SceneFileSpec
from gltfscene.node import GLTFAsset, Node, Scene
from gltfscene.skin import Skin
from gltfscene.warning_policy import WARNING_CODES, WarningPolicy, describe_codes


def validate(spec: SceneFileSpec) -> None:
    """Run all semantic checks on a parsed scene description.

    Raises:
        ValidationError: On any unknown reference or a cyclic node hierarchy.
    """
    _check_default_scene(spec)
    _check_scene_refs(spec)
    _check_node_refs(spec)
    _check_mesh_material_refs(spec)
    _check_skeleton_refs(spec)
    _check_node_hierarchy_acyclic(spec)
    _check_warning_codes(spec)


def _check_default_scene(spec: SceneFileSpec) -> None:
    if spec.scenes and not 0 <= spec.default_scene < len(spec.scenes):
        raise ValidationError(
            f"default_scene {spec.default_scene} is out of range ({len(spec.scenes)} scene(s))"
        )


def _check_scene_refs(spec: SceneFileSpec) -> None:
    for i, scene in enumerate(spec.scenes):
        label = scene.name or i
        for node_id in scene.nodes:
            if node_id not in spec.nodes:
                raise ValidationError(f"Scene {label!r} references unknown node: {node_id!r}")


def _check_node_refs(spec: SceneFileSpec) -> None:
    for node_id, node in spec.nodes.items():
        for child in node.children:
            if child not in spec.nodes:
                raise ValidationError(f"Node {node_id!r} references unknown child: {child!r}")
        if node.mesh is not None and node.mesh not in spec.meshes:
            raise ValidationError(f"Node {node_id!r} references unknown mesh: {node.mesh!r}")
        if node.skin is not None and node.skin not in spec.skins:
            raise ValidationError(f"Node {node_id!r} references unknown skin: {node.skin!r}")


def _check_mesh_material_refs(spec: SceneFileSpec) -> None:
    for mesh_id, mesh in spec.meshes.items():
        for material_id in mesh.materials:
            if material_id not in spec.materials:
                raise ValidationError(
                    f"Mesh {mesh_id!r} references unknown material: {material_id!r}"
                )


def _check_skeleton_refs(spec: SceneFileSpec) -> None:
    for skin_id, skin in spec.skins.items():
        if skin.skeleton is not None and skin.skeleton not in spec.nodes:
            raise ValidationError(
                f"Skin {skin_id!r} references unknown skeleton node: {skin.skeleton!r}"
            )


def _check_node_hierarchy_acyclic(spec: SceneFileSpec) -> None:
    # Shared children (a DAG) are allowed; only a path back to an ancestor is rejected.
    done: set[str] = set()

    for start in spec.nodes:
        if start in done:
            continue
        path: list[str] = []
        on_path: set[str] = set()
        stack: list[tuple[str, int]] = [(start, 0)]
        while stack:
            node_id, child_pos = stack.pop()
            if child_pos == 0:
                path.append(node_id)
                on_path.add(node_id)
            children = spec.nodes[node_id].children
            if child_pos < len(children):
                stack.append((node_id, child_pos + 1))
                child = children[child_pos]
                if child in on_path:
                    cycle = " -> ".join(path[path.index(child) :] + [child])
                    raise ValidationError(f"Cycle detected in node hierarchy: {cycle}")
                if child not in done:
                    stack.append((child, 0))
            else:
                path.pop()
                on_path.discard(node_id)
                done.add(node_id)


def _check_warning_codes(spec: SceneFileSpec) -> None:
    for code in (*spec.options.warn_as_error, *spec.options.suppress_warnings):
        if code.upper() not in WARNING_CODES:
            raise ValidationError(
                f"Unknown warning code in options: {code!r}; known codes: {describe_codes()}"
            )


def build_options(
    spec: SceneFileSpec,
    *,
    buffer_output: BufferOutputType | None = None,
    image_output: ImageOutputType | None = None,
    warning_policy: WarningPolicy | None = None,
) -> ExportOptions:
    """Combine the scene's ``options:`` block with explicit overrides."""
    opts = spec.options
    if warning_policy is None and (opts.warn_as_error or opts.suppress_warnings):
        warning_policy = WarningPolicy(
            warn_as_error=frozenset(c.upper() for c in opts.warn_as_error),
            suppress=frozenset(c.upper() for c in opts.suppress_warnings),
        )
    return ExportOptions(
        buffer_output=buffer_output or opts.buffer_output,
        image_output=image_output or opts.image_output,
        warning_policy=warning_policy,
    )


class _GraphBuilder:
    def __init__(self, spec: SceneFileSpec, base_dir: Path | None) -> None:
        self.spec = spec
        self.base_dir = base_dir
        self.nodes: dict[str, Node] = {}
        self.meshes: dict[str, Mesh] = {}
        self.materials: dict[str, Material] = {}
        self.skins: dict[str, Skin] = {}
        self.images: dict[str, Path] = {}

    def image(self, ref: str) -> Path:
        # One Path per reference so identical textures share a glTF image.
        if ref not in self.images:
            path = Path(ref)
            if not path.is_absolute() and self.base_dir is not None:
                path = self.base_dir / path
            self.images[ref] = path
        return self.images[ref]

    def material(self, material_id: str) -> Material:
        if material_id not in self.materials:
            ms: MaterialSpec = self.spec.materials[material_id]
            texture = None
            if ms.base_color_texture is not None:
                texture = Texture(
                    image=self.image(ms.base_color_texture.image),
                    wrap_s=ms.base_color_texture.wrap_s,
                    wrap_t=ms.base_color_texture.wrap_t,
                )
            self.materials[material_id] = Material(
                name=ms.name or "",
                alpha_mode=ms.alpha_mode,
                alpha_cutoff=ms.alpha_cutoff,
                double_sided=ms.double_sided,
                base_color_factor=ms.base_color_factor,
                base_color_texture=texture,
                vertex_color_mode=ms.vertex_colors,
            )
        return self.materials[material_id]

    def mesh(self, mesh_id: str) -> Mesh:
        if mesh_id not in self.meshes:
            ms: MeshSpec = self.spec.meshes[mesh_id]
            mesh = Mesh(mode=ms.mode, material=[self.material(m) for m in ms.materials])
            for face in ms.faces:
                v1, v2, v3 = (
                    Vertex(*v.position, *v.normal, *v.uv, color=v.color) for v in face.vertices
                )
                mesh.add_face(v1, v2, v3, color=face.color, material_index=face.material)
            self.meshes[mesh_id] = mesh
        return self.meshes[mesh_id]

    def skin(self, skin_id: str) -> Skin:
        if skin_id not in self.skins:
            ss = self.spec.skins[skin_id]
            skeleton = self.nodes[ss.skeleton] if ss.skeleton is not None else None
            self.skins[skin_id] = Skin(name=ss.name or "", skeleton=skeleton)
        return self.skins[skin_id]

    def build(self) -> GLTFAsset:
        for node_id, ns in self.spec.nodes.items():
            self.nodes[node_id] = self._make_node(node_id, ns)

        for node_id, ns in self.spec.nodes.items():
            node = self.nodes[node_id]
            for child in ns.children:
                node.add_node(self.nodes[child])
            if ns.mesh is not None:
                node.mesh = self.mesh(ns.mesh)
            if ns.skin is not None:
                node.skin = self.skin(ns.skin)

        asset = GLTFAsset()
        asset.default_scene = self.spec.default_scene
        for scene_spec in self.spec.scenes:
            scene = Scene(scene_spec.name or "")
            for node_id in scene_spec.nodes:
                scene.add_node(self.nodes[node_id])
            asset.add_scene(scene)
        return asset

    @staticmethod
    def _make_node(node_id: str, ns: NodeSpec) -> Node:
        node = Node(ns.name if ns.name is not None else node_id)
        if ns.translation is not None:
            node.set_translation(*ns.translation)
        if ns.rotation is not None:
            node.set_rotation_quaternion(*ns.rotation)
        elif ns.rotation_euler is not None:
            node.set_rotation_radians(*ns.rotation_euler)
        elif ns.rotation_degrees is not None:
            node.set_rotation_degrees(*ns.rotation_degrees)
        if ns.scale is not None:
            node.set_scale(*ns.scale)
        if ns.inverse_bind_matrix is not None:
            node.inverse_bind_matrix = Matrix4x4.from_row_major(ns.inverse_bind_matrix)
        node.add_animations(ns.animations)
        return node


def build_asset(spec: SceneFileSpec, *, base_dir: Path | None = None) -> GLTFAsset:
    """Validate ``spec`` and build the authoring graph.

    A node id listed as a child in several places maps to one shared
    :class:`Node`. Relative texture paths resolve against ``base_dir``.
    """
    validate(spec)
    return _GraphBuilder(spec, base_dir).build()
