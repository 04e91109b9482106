"""Materials, textures, samplers and images."""

from __future__ import annotations

from dataclasses import dataclass

import pygltflib

from gltfscene.document import Document
from gltfscene.errors import UsageError
from gltfscene.gltf_types import (
    AlphaMode,
    ComponentType,
    ElementShape,
    ImageOutputType,
    VertexColorMode,
    WrappingMode,
)
from gltfscene.imageutils import ImageSource, image_to_data_uri, image_to_png_bytes


@dataclass(eq=False)
class Texture:
    image: ImageSource
    wrap_s: WrappingMode = WrappingMode.REPEAT
    wrap_t: WrappingMode = WrappingMode.REPEAT


@dataclass(eq=False)
class Material:
    name: str = ""
    alpha_mode: AlphaMode = AlphaMode.OPAQUE
    alpha_cutoff: float = 0.5
    double_sided: bool = False
    base_color_factor: tuple[float, float, float, float] | None = None
    base_color_texture: Texture | None = None
    vertex_color_mode: VertexColorMode = VertexColorMode.NO_COLORS


def add_materials(doc: Document, materials: list[Material]) -> list[int]:
    return [add_material(doc, material) for material in materials]


def add_material(doc: Document, material: Material) -> int:
    """Register a material once per document; only non-default fields are written."""
    existing = doc.material_indices.get(material)
    if existing is not None:
        return existing

    gltf_material = pygltflib.Material(
        name=material.name or None,
        alphaMode=None,
        alphaCutoff=None,
        doubleSided=None,
    )
    if material.alpha_mode is not AlphaMode.OPAQUE:
        gltf_material.alphaMode = material.alpha_mode.value
    if material.alpha_cutoff != 0.5:
        gltf_material.alphaCutoff = material.alpha_cutoff
    if material.double_sided:
        gltf_material.doubleSided = True

    if material.base_color_factor is not None or material.base_color_texture is not None:
        pbr = pygltflib.PbrMetallicRoughness()
        if material.base_color_factor is not None:
            pbr.baseColorFactor = [float(c) for c in material.base_color_factor]
        if material.base_color_texture is not None:
            pbr.baseColorTexture = pygltflib.TextureInfo(
                index=add_texture(doc, material.base_color_texture)
            )
        gltf_material.pbrMetallicRoughness = pbr

    index = len(doc.gltf.materials)
    doc.gltf.materials.append(gltf_material)
    doc.material_indices[material] = index
    return index


def add_texture(doc: Document, texture: Texture) -> int:
    gltf_texture = pygltflib.Texture(
        sampler=add_sampler(doc, texture),
        source=add_image(doc, texture.image),
    )
    index = len(doc.gltf.textures)
    doc.gltf.textures.append(gltf_texture)
    return index


def add_sampler(doc: Document, texture: Texture) -> int:
    """Return the index of an identical (wrapS, wrapT) sampler, adding one if needed."""
    wrap = (int(texture.wrap_s), int(texture.wrap_t))
    for i, sampler in enumerate(doc.gltf.samplers):
        if (sampler.wrapS, sampler.wrapT) == wrap:
            return i

    index = len(doc.gltf.samplers)
    doc.gltf.samplers.append(pygltflib.Sampler(wrapS=wrap[0], wrapT=wrap[1]))
    return index


def add_image(doc: Document, image: ImageSource) -> int:
    """Add an image according to the image output mode, deduplicated by identity."""
    for i, source in enumerate(doc.image_sources):
        if source is image:
            return i

    index = len(doc.gltf.images)
    gltf_image = pygltflib.Image()
    mode = doc.options.image_output

    if mode is ImageOutputType.GLB:
        if doc.bin_chunk_buffer is None:
            raise UsageError("Binary-chunk images require the document's bin chunk buffer")
        view = doc.bin_chunk_buffer.add_view(ComponentType.UNSIGNED_BYTE, ElementShape.SCALAR)
        view.write_async(image_to_png_bytes(image))
        gltf_image.bufferView = view.index
        gltf_image.mimeType = "image/png"
    elif mode is ImageOutputType.DATA_URI:
        gltf_image.uri = image_to_data_uri(image)
    else:
        uri = f"image{index}.png"
        gltf_image.uri = uri

        async def _store_external() -> None:
            doc.external_files[uri] = await image_to_png_bytes(image)

        doc.defer(_store_external())

    doc.image_sources.append(image)
    doc.gltf.images.append(gltf_image)
    return index
