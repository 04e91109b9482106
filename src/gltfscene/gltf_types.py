"""Enumerations shared by the packer, encoders and the YAML front end."""

from __future__ import annotations

from enum import Enum, IntEnum

import numpy as np
import pygltflib


class ComponentType(IntEnum):
    """glTF accessor component types, with their little-endian numpy storage."""

    BYTE = pygltflib.BYTE
    UNSIGNED_BYTE = pygltflib.UNSIGNED_BYTE
    SHORT = pygltflib.SHORT
    UNSIGNED_SHORT = pygltflib.UNSIGNED_SHORT
    UNSIGNED_INT = pygltflib.UNSIGNED_INT
    FLOAT = pygltflib.FLOAT

    @property
    def dtype(self) -> np.dtype:
        return _COMPONENT_DTYPES[self]

    @property
    def size(self) -> int:
        return self.dtype.itemsize


_COMPONENT_DTYPES: dict[ComponentType, np.dtype] = {
    ComponentType.BYTE: np.dtype("<i1"),
    ComponentType.UNSIGNED_BYTE: np.dtype("<u1"),
    ComponentType.SHORT: np.dtype("<i2"),
    ComponentType.UNSIGNED_SHORT: np.dtype("<u2"),
    ComponentType.UNSIGNED_INT: np.dtype("<u4"),
    ComponentType.FLOAT: np.dtype("<f4"),
}


class ElementShape(str, Enum):
    """Accessor element types (glTF ``accessor.type``)."""

    SCALAR = pygltflib.SCALAR
    VEC2 = pygltflib.VEC2
    VEC3 = pygltflib.VEC3
    VEC4 = pygltflib.VEC4
    MAT2 = pygltflib.MAT2
    MAT3 = pygltflib.MAT3
    MAT4 = pygltflib.MAT4

    @property
    def width(self) -> int:
        return _SHAPE_WIDTHS[self]

    @classmethod
    def for_width(cls, width: int) -> ElementShape:
        """Classify an animation value arity (1, 3 or 4 components)."""
        try:
            return _TRACK_SHAPES[width]
        except KeyError:
            raise ValueError(f"Unsupported animation value arity: {width}") from None


_SHAPE_WIDTHS: dict[ElementShape, int] = {
    ElementShape.SCALAR: 1,
    ElementShape.VEC2: 2,
    ElementShape.VEC3: 3,
    ElementShape.VEC4: 4,
    ElementShape.MAT2: 4,
    ElementShape.MAT3: 9,
    ElementShape.MAT4: 16,
}

_TRACK_SHAPES: dict[int, ElementShape] = {
    1: ElementShape.SCALAR,
    3: ElementShape.VEC3,
    4: ElementShape.VEC4,
}


class InterpolationMode(str, Enum):
    LINEAR = "LINEAR"
    STEP = "STEP"
    CUBICSPLINE = "CUBICSPLINE"


class Transformation(str, Enum):
    """Animation channel target paths."""

    TRANSLATION = "translation"
    ROTATION = "rotation"
    SCALE = "scale"
    WEIGHTS = "weights"


class MeshMode(IntEnum):
    POINTS = 0
    LINES = 1
    LINE_LOOP = 2
    LINE_STRIP = 3
    TRIANGLES = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6


class AlphaMode(str, Enum):
    OPAQUE = "OPAQUE"
    MASK = "MASK"
    BLEND = "BLEND"


class VertexColorMode(str, Enum):
    NO_COLORS = "no_colors"
    FACE_COLORS = "face_colors"
    VERTEX_COLORS = "vertex_colors"


class WrappingMode(IntEnum):
    CLAMP_TO_EDGE = 33071
    MIRRORED_REPEAT = 33648
    REPEAT = 10497


class BufferOutputType(str, Enum):
    """Whether mesh/animation/skin data share the GLB binary chunk."""

    SEPARATE = "separate"
    GLB = "glb"


class ImageOutputType(str, Enum):
    GLB = "glb"
    DATA_URI = "data_uri"
    EXTERNAL = "external"
