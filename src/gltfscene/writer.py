"""Serialize a completed :class:`Document` to ``.glb`` or ``.gltf``."""

from __future__ import annotations

import base64
import struct
from pathlib import Path

from gltfscene.buffer import Buffer
from gltfscene.document import Document
from gltfscene.errors import ExportError

DATA_URI_PREFIX = "data:application/octet-stream;base64,"

GLB_MAGIC = 0x46546C67  # "glTF"
GLB_VERSION = 2
CHUNK_JSON = 0x4E4F534A
CHUNK_BIN = 0x004E4942


def _data_uri(payload: bytes) -> str:
    return DATA_URI_PREFIX + base64.b64encode(payload).decode("ascii")


def _require_sealed(buffer: Buffer) -> bytes:
    if buffer.data is None:
        raise ExportError(f"buffer {buffer.index} was never finalized")
    return buffer.data


def _pad4(payload: bytes, fill: bytes) -> bytes:
    return payload + fill * ((4 - len(payload) % 4) % 4)


def _drop_empty_bin_chunk(doc: Document) -> None:
    """Remove a bin chunk buffer that ended up with no views and no bytes."""
    bin_buffer = doc.bin_chunk_buffer
    if bin_buffer is None or bin_buffer.views or bin_buffer.byte_length:
        return

    gltf = doc.gltf
    del gltf.buffers[bin_buffer.index]
    for view in gltf.bufferViews:
        if view.buffer > bin_buffer.index:
            view.buffer -= 1
    for buffer in doc.buffers:
        if buffer.index > bin_buffer.index:
            buffer.index -= 1
    doc.buffers.remove(bin_buffer)
    doc.bin_chunk_buffer = None


def _write_external_files(doc: Document, output_dir: Path) -> None:
    for uri, payload in doc.external_files.items():
        (output_dir / uri).write_bytes(payload)


def save_glb(doc: Document, output_path: Path) -> None:
    """Write a GLB; the bin chunk buffer (always buffer 0) becomes the BIN chunk.

    Buffers owned by individual meshes, animations or skins keep their own
    entries and are embedded as base64 data URIs.
    """
    _drop_empty_bin_chunk(doc)
    gltf = doc.gltf

    bin_payload: bytes | None = None
    for buffer in doc.buffers:
        payload = _require_sealed(buffer)
        if buffer is doc.bin_chunk_buffer:
            gltf.buffers[buffer.index].uri = None
            bin_payload = payload
        else:
            gltf.buffers[buffer.index].uri = _data_uri(payload)

    json_bytes = _pad4(gltf.gltf_to_json(separators=(",", ":"), indent=None).encode("utf-8"), b"\x20")

    out = bytearray()
    out += struct.pack("<II", len(json_bytes), CHUNK_JSON)
    out += json_bytes
    if bin_payload is not None:
        bin_bytes = _pad4(bin_payload, b"\x00")
        out += struct.pack("<II", len(bin_bytes), CHUNK_BIN)
        out += bin_bytes

    header = struct.pack("<III", GLB_MAGIC, GLB_VERSION, 12 + len(out))
    output_path.write_bytes(header + bytes(out))
    _write_external_files(doc, output_path.parent)


def save_gltf(doc: Document, output_path: Path) -> None:
    """Write a self-contained JSON ``.gltf``; every buffer becomes a data URI."""
    _drop_empty_bin_chunk(doc)
    gltf = doc.gltf

    for buffer in doc.buffers:
        gltf.buffers[buffer.index].uri = _data_uri(_require_sealed(buffer))

    gltf.save_json(str(output_path))
    _write_external_files(doc, output_path.parent)
