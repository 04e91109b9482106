"""Pydantic v2 schema models for ``.scene.yaml`` scene descriptions."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gltfscene.animation import Track
from gltfscene.gltf_types import (
    AlphaMode,
    BufferOutputType,
    ImageOutputType,
    MeshMode,
    VertexColorMode,
    WrappingMode,
)


class VertexSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    position: tuple[float, float, float]
    normal: tuple[float, float, float] = (0.0, 0.0, 0.0)
    uv: tuple[float, float] = (0.0, 0.0)
    color: tuple[float, float, float] | tuple[float, float, float, float] | None = None


class FaceSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vertices: tuple[VertexSpec, VertexSpec, VertexSpec]
    color: tuple[float, float, float] | tuple[float, float, float, float] | None = None
    material: int = -1


class MeshSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: MeshMode = MeshMode.TRIANGLES
    materials: list[str] = Field(default_factory=list)
    faces: list[FaceSpec] = Field(default_factory=list)

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_by_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            try:
                return MeshMode[v.upper()]
            except KeyError:
                raise ValueError(f"Unknown mesh mode: {v!r}") from None
        return v

    @model_validator(mode="after")
    def _check_face_materials(self) -> MeshSpec:
        for i, face in enumerate(self.faces):
            if face.material >= len(self.materials):
                raise ValueError(
                    f"Face {i} uses material {face.material}, but the mesh lists "
                    f"{len(self.materials)} material(s)"
                )
        return self


class TextureSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    image: str
    wrap_s: WrappingMode = WrappingMode.REPEAT
    wrap_t: WrappingMode = WrappingMode.REPEAT

    @field_validator("wrap_s", "wrap_t", mode="before")
    @classmethod
    def _wrap_by_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            try:
                return WrappingMode[v.upper()]
            except KeyError:
                raise ValueError(f"Unknown wrapping mode: {v!r}") from None
        return v


class MaterialSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    alpha_mode: AlphaMode = AlphaMode.OPAQUE
    alpha_cutoff: float = 0.5
    double_sided: bool = False
    base_color_factor: tuple[float, float, float, float] | None = None
    base_color_texture: TextureSpec | None = None
    vertex_colors: VertexColorMode = VertexColorMode.NO_COLORS


class SkinSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    skeleton: str | None = None


class NodeSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    translation: tuple[float, float, float] | None = None
    rotation: tuple[float, float, float, float] | None = None  # (x, y, z, w)
    rotation_euler: tuple[float, float, float] | None = None  # radians, XYZ
    rotation_degrees: tuple[float, float, float] | None = None
    scale: tuple[float, float, float] | None = None
    children: list[str] = Field(default_factory=list)
    mesh: str | None = None
    skin: str | None = None
    inverse_bind_matrix: list[float] | None = None  # 16 floats, row-major
    animations: list[Track] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_fields(self) -> NodeSpec:
        forms = [
            self.rotation is not None,
            self.rotation_euler is not None,
            self.rotation_degrees is not None,
        ]
        if sum(forms) > 1:
            raise ValueError(
                "Node must set at most one rotation form (rotation, rotation_euler, rotation_degrees)"
            )
        if self.inverse_bind_matrix is not None and len(self.inverse_bind_matrix) != 16:
            raise ValueError(
                f"inverse_bind_matrix must have 16 values, got {len(self.inverse_bind_matrix)}"
            )
        return self


class SceneSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    nodes: list[str] = Field(default_factory=list)


class OptionsSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    buffer_output: BufferOutputType = BufferOutputType.GLB
    image_output: ImageOutputType = ImageOutputType.GLB
    warn_as_error: list[str] = Field(default_factory=list)
    suppress_warnings: list[str] = Field(default_factory=list)


class SceneFileSpec(BaseModel):
    """Top-level ``.scene.yaml`` document."""

    model_config = ConfigDict(extra="forbid")

    version: str
    default_scene: int = 0
    scenes: list[SceneSpec] = Field(default_factory=list)
    nodes: dict[str, NodeSpec] = Field(default_factory=dict)
    meshes: dict[str, MeshSpec] = Field(default_factory=dict)
    materials: dict[str, MaterialSpec] = Field(default_factory=dict)
    skins: dict[str, SkinSpec] = Field(default_factory=dict)
    options: OptionsSpec = Field(default_factory=OptionsSpec)

    @field_validator("version", mode="before")
    @classmethod
    def _version_to_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, (int, float)) else v
