"""Tests for the buffer / bufferView / accessor packer."""

import asyncio
import inspect

import numpy as np
import pygltflib
import pytest

from gltfscene.buffer import VIEW_ALIGNMENT, Buffer
from gltfscene.errors import UsageError
from gltfscene.gltf_types import ComponentType, ElementShape


def _gltf():
    return pygltflib.GLTF2(buffers=[], bufferViews=[])


class TestAccessorPass:
    def test_count_and_min_max_per_lane(self):
        view = Buffer(_gltf()).add_view(ComponentType.FLOAT, ElementShape.VEC3)
        view.start_accessor("POSITION")
        view.extend([1, -2, 3, -4, 5, 0.5])
        info = view.end_accessor()
        assert info.count == 2
        assert info.byte_offset == 0
        assert info.min == (-4.0, -2.0, 0.5)
        assert info.max == (1.0, 5.0, 3.0)
        assert info.semantic == "POSITION"

    def test_second_pass_offset(self):
        view = Buffer(_gltf()).add_view(ComponentType.FLOAT, ElementShape.VEC4)
        view.start_accessor()
        view.extend(range(12))
        first = view.end_accessor()
        view.start_accessor()
        view.extend(range(4))
        second = view.end_accessor()
        assert first.count == 3
        assert second.byte_offset == first.count * 4 * 4
        assert second.count == 1

    def test_min_max_of_stored_float32(self):
        view = Buffer(_gltf()).add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        view.start_accessor()
        view.push(0.1)
        info = view.end_accessor()
        assert info.min == (float(np.float32(0.1)),)
        assert info.max == info.min

    def test_integer_components(self):
        view = Buffer(_gltf()).add_view(ComponentType.UNSIGNED_SHORT, ElementShape.SCALAR)
        view.start_accessor()
        view.extend([7, 3, 65535])
        info = view.end_accessor()
        assert info.min == (3,)
        assert info.max == (65535,)
        assert view.byte_length == 6
        assert view.data == np.array([7, 3, 65535], dtype="<u2").tobytes()

    def test_empty_pass_has_no_bounds(self):
        view = Buffer(_gltf()).add_view(ComponentType.FLOAT, ElementShape.VEC3)
        view.start_accessor()
        info = view.end_accessor()
        assert info.count == 0
        assert info.min is None
        assert info.max is None

    def test_normalized_flag_carried(self):
        view = Buffer(_gltf()).add_view(
            ComponentType.UNSIGNED_BYTE, ElementShape.VEC4, normalized=True
        )
        view.start_accessor()
        view.extend([255, 0, 0, 255])
        assert view.end_accessor().normalized is True


class TestUsageErrors:
    def test_nested_start_rejected(self):
        view = Buffer(_gltf()).add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        view.start_accessor()
        with pytest.raises(UsageError, match="already open"):
            view.start_accessor()

    def test_end_without_start_rejected(self):
        view = Buffer(_gltf()).add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        with pytest.raises(UsageError, match="no open pass"):
            view.end_accessor()

    def test_push_outside_pass_rejected(self):
        view = Buffer(_gltf()).add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        with pytest.raises(UsageError, match="outside of an accessor pass"):
            view.push(1.0)

    def test_partial_element_rejected(self):
        view = Buffer(_gltf()).add_view(ComponentType.FLOAT, ElementShape.VEC3)
        view.start_accessor()
        view.extend([1.0, 2.0])
        with pytest.raises(UsageError, match="not a multiple"):
            view.end_accessor()

    def test_start_after_finalize_rejected(self):
        view = Buffer(_gltf()).add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        view.finalize()
        with pytest.raises(UsageError, match="after finalize"):
            view.start_accessor()

    def test_finalize_with_open_pass_rejected(self):
        view = Buffer(_gltf()).add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        view.start_accessor()
        with pytest.raises(UsageError, match="open pass"):
            view.finalize()

    def test_add_view_after_buffer_finalize_rejected(self):
        buffer = Buffer(_gltf())
        asyncio.run(buffer.finalize())
        with pytest.raises(UsageError):
            buffer.add_view(ComponentType.FLOAT, ElementShape.SCALAR)


class TestBufferLayout:
    def test_indices_assigned_at_creation(self):
        gltf = _gltf()
        first = Buffer(gltf)
        second = Buffer(gltf)
        a = first.add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        b = second.add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        c = first.add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        assert (first.index, second.index) == (0, 1)
        assert (a.index, b.index, c.index) == (0, 1, 2)
        assert len(gltf.bufferViews) == 3
        assert gltf.bufferViews[1].buffer == 1

    def test_views_laid_out_with_alignment(self):
        gltf = _gltf()
        buffer = Buffer(gltf)
        bytes_view = buffer.add_view(ComponentType.UNSIGNED_BYTE, ElementShape.SCALAR)
        floats_view = buffer.add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        bytes_view.start_accessor()
        bytes_view.extend([1, 2, 3])
        bytes_view.end_accessor()
        floats_view.start_accessor()
        floats_view.push(2.5)
        floats_view.end_accessor()

        length = asyncio.run(buffer.finalize())

        assert VIEW_ALIGNMENT == 4
        assert gltf.bufferViews[0].byteOffset == 0
        assert gltf.bufferViews[0].byteLength == 3
        assert gltf.bufferViews[1].byteOffset == 4
        assert gltf.bufferViews[1].byteLength == 4
        assert length == 8
        assert gltf.buffers[0].byteLength == 8
        assert buffer.data[:4] == b"\x01\x02\x03\x00"
        assert np.frombuffer(buffer.data, dtype="<f4", offset=4)[0] == 2.5

    def test_finalize_is_idempotent(self):
        buffer = Buffer(_gltf())
        view = buffer.add_view(ComponentType.FLOAT, ElementShape.SCALAR)
        view.start_accessor()
        view.push(1.0)
        view.end_accessor()

        async def _twice():
            return await buffer.finalize(), await buffer.finalize()

        assert asyncio.run(_twice()) == (4, 4)

    def test_async_write_appended_before_seal(self):
        buffer = Buffer(_gltf())
        view = buffer.add_view(ComponentType.UNSIGNED_BYTE, ElementShape.SCALAR)

        async def _payload():
            await asyncio.sleep(0)
            return b"PNGDATA"

        view.write_async(_payload())
        asyncio.run(buffer.finalize())
        assert view.finalized
        assert buffer.data == b"PNGDATA"

    def test_discarded_async_write_is_closed(self):
        buffer = Buffer(_gltf())
        view = buffer.add_view(ComponentType.UNSIGNED_BYTE, ElementShape.SCALAR)

        async def _payload():
            return b"PNGDATA"

        content = _payload()
        view.write_async(content)
        view.discard_pending_writes()
        assert inspect.getcoroutinestate(content) == inspect.CORO_CLOSED

        asyncio.run(buffer.finalize())
        assert buffer.data == b""
