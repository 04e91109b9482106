"""Numeric buffer packer: buffers, typed buffer views and accessor passes.

A ``Buffer`` owns ``BufferView`` regions. Each view accumulates little-endian
component values between ``start_accessor`` / ``end_accessor`` calls and
returns an ``AccessorInfo`` per pass, with per-lane min/max computed while
values are pushed. ``Buffer.finalize`` is a coroutine: it waits for any
asynchronously written view content (image bytes) and then lays the views
out back to back, recording offsets on the owning ``pygltflib.GLTF2``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any
from dataclasses import dataclass

import numpy as np
import pygltflib

from gltfscene.errors import UsageError
from gltfscene.gltf_types import ComponentType, ElementShape

# bufferView starts are padded so every component type is aligned.
VIEW_ALIGNMENT = 4


@dataclass(frozen=True)
class AccessorInfo:
    """Descriptor of one completed accessor pass, relative to its view."""

    component_type: ComponentType
    type: ElementShape
    byte_offset: int
    count: int
    min: tuple[float, ...] | None
    max: tuple[float, ...] | None
    normalized: bool = False
    semantic: str | None = None


class BufferView:
    """A typed, append-only region of a :class:`Buffer`."""

    def __init__(
        self,
        buffer: Buffer,
        index: int,
        component_type: ComponentType,
        element_shape: ElementShape,
        *,
        normalized: bool = False,
    ) -> None:
        self.buffer = buffer
        self.index = index
        self.component_type = ComponentType(component_type)
        self.element_shape = ElementShape(element_shape)
        self.normalized = normalized

        self._data = bytearray()
        self._finalized = False
        self._pending_writes: list[Coroutine[Any, Any, bytes]] = []

        self._pass_open = False
        self._pass_offset = 0
        self._pass_values = 0
        self._pass_semantic: str | None = None
        self._min: list[float | None] = []
        self._max: list[float | None] = []

    @property
    def byte_length(self) -> int:
        """Current cursor position (total bytes written so far)."""
        return len(self._data)

    @property
    def data(self) -> bytes:
        return bytes(self._data)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def start_accessor(self, semantic: str | None = None) -> None:
        if self._pass_open:
            raise UsageError(
                f"bufferView {self.index}: start_accessor called while a pass is already open"
            )
        if self._finalized:
            raise UsageError(f"bufferView {self.index}: cannot start an accessor after finalize")
        width = self.element_shape.width
        self._pass_open = True
        self._pass_offset = len(self._data)
        self._pass_values = 0
        self._pass_semantic = semantic
        self._min = [None] * width
        self._max = [None] * width

    def push(self, value: float) -> None:
        if not self._pass_open:
            raise UsageError(f"bufferView {self.index}: push outside of an accessor pass")

        stored = np.asarray(value, dtype=self.component_type.dtype)
        self._data += stored.tobytes()

        typed = stored.item()
        lane = self._pass_values % self.element_shape.width
        current_min = self._min[lane]
        current_max = self._max[lane]
        if current_min is None or typed < current_min:
            self._min[lane] = typed
        if current_max is None or typed > current_max:
            self._max[lane] = typed
        self._pass_values += 1

    def extend(self, values) -> None:
        for value in values:
            self.push(value)

    def end_accessor(self) -> AccessorInfo:
        if not self._pass_open:
            raise UsageError(f"bufferView {self.index}: end_accessor called with no open pass")

        width = self.element_shape.width
        if self._pass_values % width:
            raise UsageError(
                f"bufferView {self.index}: {self._pass_values} values pushed, "
                f"not a multiple of {self.element_shape.value} width {width}"
            )
        self._pass_open = False

        count = self._pass_values // width
        return AccessorInfo(
            component_type=self.component_type,
            type=self.element_shape,
            byte_offset=self._pass_offset,
            count=count,
            min=tuple(self._min) if count else None,
            max=tuple(self._max) if count else None,
            normalized=self.normalized,
            semantic=self._pass_semantic,
        )

    def write_async(self, content: Coroutine[Any, Any, bytes]) -> None:
        """Append raw bytes once ``content`` resolves; the view seals itself afterwards."""
        if self._finalized:
            raise UsageError(f"bufferView {self.index}: cannot write after finalize")
        self._pending_writes.append(content)

    async def flush(self) -> None:
        """Await pending asynchronous writes, appending their bytes in order."""
        if not self._pending_writes:
            return
        pending, self._pending_writes = self._pending_writes, []
        for chunk in await asyncio.gather(*pending):
            self._data += chunk
        self.finalize()

    def discard_pending_writes(self) -> None:
        for content in self._pending_writes:
            content.close()
        self._pending_writes = []

    def finalize(self) -> None:
        if self._finalized:
            return
        if self._pass_open:
            raise UsageError(f"bufferView {self.index}: finalize called with an open pass")
        self._finalized = True


class Buffer:
    """An append-only byte region made of buffer views, sealed by ``finalize``."""

    def __init__(self, gltf: pygltflib.GLTF2) -> None:
        self._gltf = gltf
        if gltf.buffers is None:
            gltf.buffers = []
        self.index = len(gltf.buffers)
        gltf.buffers.append(pygltflib.Buffer(byteLength=0))

        self.views: list[BufferView] = []
        self.data: bytes | None = None
        self._sealing: asyncio.Future | None = None

    def add_view(
        self,
        component_type: ComponentType,
        element_shape: ElementShape,
        *,
        normalized: bool = False,
    ) -> BufferView:
        """Create a view; its bufferView index is assigned now, not at finalize."""
        if self._sealing is not None:
            raise UsageError(f"buffer {self.index}: cannot add a view after finalize")
        if self._gltf.bufferViews is None:
            self._gltf.bufferViews = []
        index = len(self._gltf.bufferViews)
        self._gltf.bufferViews.append(
            pygltflib.BufferView(buffer=self.index, byteOffset=0, byteLength=0)
        )
        view = BufferView(self, index, component_type, element_shape, normalized=normalized)
        self.views.append(view)
        return view

    @property
    def byte_length(self) -> int:
        return len(self.data) if self.data is not None else 0

    @property
    def finalized(self) -> bool:
        return self.data is not None

    async def finalize(self) -> int:
        """Seal the buffer and return its byte length. Safe to await repeatedly."""
        if self._sealing is None:
            self._sealing = asyncio.ensure_future(self._seal())
        await self._sealing
        return self.byte_length

    async def _seal(self) -> None:
        await asyncio.gather(*(view.flush() for view in self.views))

        blob = bytearray()
        for view in self.views:
            view.finalize()
            blob += b"\x00" * (-len(blob) % VIEW_ALIGNMENT)

            gltf_view = self._gltf.bufferViews[view.index]
            gltf_view.buffer = self.index
            gltf_view.byteOffset = len(blob)
            gltf_view.byteLength = view.byte_length
            blob += view.data

        self.data = bytes(blob)
        self._gltf.buffers[self.index].byteLength = len(self.data)
