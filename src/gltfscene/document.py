"""Export state: the glTF document under construction plus its bookkeeping."""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import pygltflib

from gltfscene import __version__
from gltfscene.buffer import AccessorInfo, Buffer
from gltfscene.errors import ExportError, UsageError
from gltfscene.gltf_types import BufferOutputType, ImageOutputType
from gltfscene.warning_policy import WarningPolicy

if TYPE_CHECKING:
    from gltfscene.node import Node


@dataclass(frozen=True)
class ExportOptions:
    """Output layout options consumed by the encoders."""

    buffer_output: BufferOutputType = BufferOutputType.GLB
    image_output: ImageOutputType = ImageOutputType.GLB
    warning_policy: WarningPolicy | None = None

    @property
    def single_buffer(self) -> bool:
        """True when mesh, animation and skin data share the binary chunk."""
        return self.buffer_output is BufferOutputType.GLB

    @property
    def uses_bin_chunk(self) -> bool:
        return self.single_buffer or self.image_output is ImageOutputType.GLB


class Document:
    """A ``pygltflib.GLTF2`` being assembled, with node/mesh/material lookups.

    ``node_indices`` is keyed on node identity and holds nodes weakly: it only
    guarantees that a node reached through several parents is emitted once.
    Asynchronous work (buffer sealing, image conversion) is collected in
    ``pending`` and joined by :meth:`complete`.
    """

    def __init__(self, options: ExportOptions | None = None) -> None:
        self.options = options or ExportOptions()
        self.gltf = pygltflib.GLTF2(
            asset=pygltflib.Asset(version="2.0", generator=f"gltfscene {__version__}"),
            scenes=[],
            nodes=[],
            meshes=[],
            materials=[],
            textures=[],
            images=[],
            samplers=[],
            accessors=[],
            bufferViews=[],
            buffers=[],
            skins=[],
            animations=[],
        )
        self.buffers: list[Buffer] = []
        self.bin_chunk_buffer: Buffer | None = None
        self.pending: list[Coroutine[Any, Any, Any]] = []
        self.external_files: dict[str, bytes] = {}

        self.node_indices: weakref.WeakKeyDictionary[Node, int] = weakref.WeakKeyDictionary()
        self.mesh_indices: weakref.WeakKeyDictionary[Any, int] = weakref.WeakKeyDictionary()
        self.material_indices: weakref.WeakKeyDictionary[Any, int] = weakref.WeakKeyDictionary()
        self.image_sources: list[object] = []
        self.visiting: set[Node] = set()

    # -- buffers -----------------------------------------------------------

    def create_buffer(self) -> Buffer:
        buffer = Buffer(self.gltf)
        self.buffers.append(buffer)
        return buffer

    def subsystem_buffer(self) -> tuple[Buffer, bool]:
        """Return the buffer a mesh/animation/skin encoder should write into.

        The second element is True when the caller owns the buffer and must
        defer its finalization itself.
        """
        if self.options.single_buffer:
            if self.bin_chunk_buffer is None:
                self.bin_chunk_buffer = self.create_buffer()
            return self.bin_chunk_buffer, False
        return self.create_buffer(), True

    def add_accessor(self, buffer_view_index: int, info: AccessorInfo) -> int:
        """Append an accessor for a completed pass, returning its index."""
        accessor = pygltflib.Accessor(
            bufferView=buffer_view_index,
            byteOffset=info.byte_offset,
            componentType=int(info.component_type),
            count=info.count,
            type=info.type.value,
            min=list(info.min) if info.min is not None else None,
            max=list(info.max) if info.max is not None else None,
            normalized=True if info.normalized else None,
        )

        index = len(self.gltf.accessors)
        self.gltf.accessors.append(accessor)
        return index

    # -- node index table --------------------------------------------------

    def get_node_index(self, node: Node) -> int | None:
        return self.node_indices.get(node)

    def set_node_index(self, node: Node, index: int) -> None:
        self.node_indices[node] = index

    def require_node_index(self, node: Node) -> int:
        index = self.node_indices.get(node)
        if index is None:
            raise UsageError(
                f"Node {node.name or node!r} must be added to the document before it is referenced"
            )
        return index

    # -- animation aggregate -----------------------------------------------

    @property
    def animation(self) -> pygltflib.Animation:
        """The document's single animation; all node tracks merge into it."""
        if not self.gltf.animations:
            self.gltf.animations = [pygltflib.Animation(channels=[], samplers=[])]
        return self.gltf.animations[0]

    # -- asynchronous completion -------------------------------------------

    def defer(self, work: Coroutine[Any, Any, Any]) -> None:
        self.pending.append(work)

    async def complete(self) -> None:
        """Wait for every deferred operation; the first failure fails the export."""
        while self.pending:
            batch, self.pending = self.pending, []
            try:
                async with asyncio.TaskGroup() as group:
                    for work in batch:
                        group.create_task(work)
            except BaseExceptionGroup as group_error:
                first = group_error.exceptions[0]
                if isinstance(first, ExportError):
                    raise first from None
                raise ExportError(f"Asynchronous export step failed: {first}") from first

    def discard_pending(self) -> None:
        """Close deferred work that will never be awaited (traversal failed).

        This covers both the deferred coroutines and image bytes queued on
        buffer views by ``write_async``.
        """
        for work in self.pending:
            work.close()
        self.pending = []
        for buffer in self.buffers:
            for view in buffer.views:
                view.discard_pending_writes()
