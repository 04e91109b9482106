"""Keyframe tracks and their encoding into the document's animation."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from itertools import groupby
from operator import attrgetter
from typing import Any

import pygltflib
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from gltfscene.buffer import BufferView
from gltfscene.document import Document
from gltfscene.gltf_types import ComponentType, ElementShape, InterpolationMode, Transformation
from gltfscene.warning_policy import emit_warning

DEFAULT_TANGENT = 0.0
DEFAULT_TANGENT_WEIGHT = 1 / 3

_TANGENT_DEFAULTS = {
    "right_tangent": DEFAULT_TANGENT,
    "right_tangent_weight": DEFAULT_TANGENT_WEIGHT,
    "left_tangent": DEFAULT_TANGENT,
    "left_tangent_weight": DEFAULT_TANGENT_WEIGHT,
}


def _as_tuple(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return (value,)
    return value


class Keyframe(BaseModel):
    """One sample of a track.

    For cubic-spline keyframes, ``right_tangent`` is the out-tangent of this
    keyframe and ``left_tangent`` the in-tangent of the next one. Missing
    tangent components default to 0 and missing weights to 1/3.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    time: float
    value: tuple[float, ...]
    interpolation: InterpolationMode = InterpolationMode.LINEAR
    include: tuple[int, ...] = ()
    right_tangent: tuple[float, ...] | None = None
    right_tangent_weight: tuple[float, ...] | None = None
    left_tangent: tuple[float, ...] | None = None
    left_tangent_weight: tuple[float, ...] | None = None

    @field_validator(
        "value",
        "right_tangent",
        "right_tangent_weight",
        "left_tangent",
        "left_tangent_weight",
        mode="before",
    )
    @classmethod
    def _scalar_to_tuple(cls, v: Any) -> Any:
        return _as_tuple(v)

    @model_validator(mode="before")
    @classmethod
    def _fill_default_tangents(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        mode = InterpolationMode(data.get("interpolation", InterpolationMode.LINEAR))
        if mode is not InterpolationMode.CUBICSPLINE:
            return data

        width = len(_as_tuple(data.get("value", ())))
        filled = dict(data)
        for key, default in _TANGENT_DEFAULTS.items():
            given = list(_as_tuple(filled.get(key)) or ())
            filled[key] = tuple(given[:width]) + (default,) * (width - len(given[:width]))
        return filled

    @model_validator(mode="after")
    def _check_arity(self) -> Keyframe:
        if len(self.value) not in (1, 3, 4):
            raise ValueError(
                f"Keyframe at t={self.time} has {len(self.value)} components; expected 1, 3 or 4"
            )
        return self

    def tangent_record(self) -> list[float]:
        """Per component: (right tangent, right weight, left tangent, left weight)."""
        record: list[float] = []
        for d in range(len(self.value)):
            record.extend(
                (
                    self.right_tangent[d],
                    self.right_tangent_weight[d],
                    self.left_tangent[d],
                    self.left_tangent_weight[d],
                )
            )
        return record


class Track(BaseModel):
    """An immutable, ordered keyframe sequence for one node transformation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: Transformation
    name: str = ""
    keyframes: tuple[Keyframe, ...] = ()

    @model_validator(mode="after")
    def _check_consistent_arity(self) -> Track:
        if self.keyframes:
            width = len(self.keyframes[0].value)
            for kf in self.keyframes[1:]:
                if len(kf.value) != width:
                    raise ValueError(
                        f"Track {self.name or self.path.value!r} changes value arity from "
                        f"{width} to {len(kf.value)} at t={kf.time}"
                    )
        return self

    @property
    def element_shape(self) -> ElementShape | None:
        """Shape of the track's values, decided from the first keyframe."""
        if not self.keyframes:
            return None
        return ElementShape.for_width(len(self.keyframes[0].value))


def add_animations(doc: Document, tracks: Sequence[Track], node_index: int) -> None:
    """Encode a node's tracks into the document's single animation.

    One time view is shared by all of the node's tracks and one value view
    per element shape. Each track is split into runs of equal interpolation;
    every run yields one sampler and one channel.

    The animation is named after the first track of the first encoded node,
    when that track has a name.
    """
    encodable: list[Track] = []
    for track in tracks:
        if not track.keyframes:
            emit_warning(
                "W01",
                f"Track {track.name or track.path.value!r} on node {node_index} has no keyframes; "
                f"skipped",
                policy=doc.options.warning_policy,
            )
            continue
        encodable.append(track)
    if not encodable:
        return

    buffer, owned = doc.subsystem_buffer()
    time_view = buffer.add_view(ComponentType.FLOAT, ElementShape.SCALAR)
    value_views: dict[ElementShape, BufferView] = {}

    def _value_view(shape: ElementShape) -> BufferView:
        if shape not in value_views:
            value_views[shape] = buffer.add_view(ComponentType.FLOAT, shape)
        return value_views[shape]

    animation = doc.animation
    if tracks[0].name and not animation.name:
        animation.name = tracks[0].name

    for track in encodable:
        value_view = _value_view(track.element_shape)
        for mode, run in groupby(track.keyframes, key=attrgetter("interpolation")):
            _encode_run(
                doc,
                animation,
                list(run),
                mode,
                track.path,
                node_index,
                time_view,
                value_view,
                _value_view,
            )

    time_view.finalize()
    for view in value_views.values():
        view.finalize()
    if owned:
        doc.defer(buffer.finalize())


def _encode_run(
    doc: Document,
    animation: pygltflib.Animation,
    run: list[Keyframe],
    mode: InterpolationMode,
    path: Transformation,
    node_index: int,
    time_view: BufferView,
    value_view: BufferView,
    value_view_for: Callable[[ElementShape], BufferView],
) -> None:
    """Flush one run of equal interpolation into a sampler/channel pair."""
    time_view.start_accessor("input")
    value_view.start_accessor("output")
    for kf in run:
        time_view.push(kf.time)
        value_view.extend(kf.value)
    input_idx = doc.add_accessor(time_view.index, time_view.end_accessor())
    output_idx = doc.add_accessor(value_view.index, value_view.end_accessor())

    sampler = pygltflib.AnimationSampler(
        input=input_idx,
        output=output_idx,
        interpolation=mode.value,
    )
    channel = pygltflib.AnimationChannel(
        sampler=len(animation.samplers),
        target=pygltflib.AnimationChannelTarget(node=node_index, path=path.value),
    )

    includes = [list(kf.include) for kf in run]
    if any(includes):
        channel.extras = {"include": includes}

    # Tangents share the VEC4 float view: 4-float records, D per keyframe
    if mode is InterpolationMode.CUBICSPLINE:
        tangent_view = value_view_for(ElementShape.VEC4)
        tangent_view.start_accessor("tangents")
        for kf in run:
            tangent_view.extend(kf.tangent_record())
        sampler.extras = {
            "tangents": doc.add_accessor(tangent_view.index, tangent_view.end_accessor())
        }

    animation.samplers.append(sampler)
    animation.channels.append(channel)
