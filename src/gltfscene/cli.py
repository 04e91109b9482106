"""Click CLI entry point for the gltfscene compiler."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from gltfscene import __version__
from gltfscene.errors import GltfSceneError
from gltfscene.exporter import export_gltf
from gltfscene.gltf_types import BufferOutputType, ImageOutputType
from gltfscene.inspection import inspect_gltf, load_gltf, render_text
from gltfscene.manifest import build_manifest
from gltfscene.parser import parse_yaml
from gltfscene.scene_builder import build_asset, build_options
from gltfscene.warning_policy import WarningPolicy, parse_code_list


def _build_warning_policy(
    warn_as_error: str | None, suppress_warning: str | None
) -> WarningPolicy | None:
    """Parse CLI warning options into a WarningPolicy, or None if unset."""
    if warn_as_error is None and suppress_warning is None:
        return None
    try:
        wae = parse_code_list(warn_as_error) if warn_as_error else frozenset()
        sup = parse_code_list(suppress_warning) if suppress_warning else frozenset()
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    return WarningPolicy(warn_as_error=wae, suppress=sup)


def _default_output(input_file: Path) -> Path:
    # Strip .scene.yaml or .yaml and add .glb
    stem = input_file.name
    for suffix in [".scene.yaml", ".scene.yml", ".yaml", ".yml"]:
        if stem.endswith(suffix):
            stem = stem[: -len(suffix)]
            break
    return input_file.parent / f"{stem}.glb"


@click.group()
@click.version_option(version=__version__, prog_name="gltfscene")
def main() -> None:
    """gltfscene: compile YAML scene graphs to glTF 2.0."""


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output .glb or .gltf path. Defaults to input name with .glb extension.",
)
@click.option(
    "--buffer-output",
    type=click.Choice([m.value for m in BufferOutputType]),
    default=None,
    help="Share one binary chunk (glb) or give each mesh/animation/skin its own buffer.",
)
@click.option(
    "--image-output",
    type=click.Choice([m.value for m in ImageOutputType]),
    default=None,
    help="Store images in the binary chunk, as data URIs, or as external PNG files.",
)
@click.option(
    "--warn-as-error",
    "warn_as_error",
    type=str,
    default=None,
    help="Comma-separated W-codes to treat as errors (e.g. W01,W02).",
)
@click.option(
    "--suppress-warning",
    "suppress_warning",
    type=str,
    default=None,
    help="Comma-separated W-codes to suppress (e.g. W03).",
)
@click.option(
    "--emit-manifest",
    "emit_manifest",
    type=click.Path(path_type=Path),
    default=None,
    help="Write a JSON build manifest to this path after successful compile.",
)
def compile(
    input_file: Path,
    output: Path | None,
    buffer_output: str | None = None,
    image_output: str | None = None,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
    emit_manifest: Path | None = None,
) -> None:
    """Compile a .scene.yaml description to GLB or glTF."""
    warning_policy = _build_warning_policy(warn_as_error, suppress_warning)
    if output is None:
        output = _default_output(input_file)

    try:
        spec = parse_yaml(input_file)
        asset = build_asset(spec, base_dir=input_file.parent)
        options = build_options(
            spec,
            buffer_output=BufferOutputType(buffer_output) if buffer_output else None,
            image_output=ImageOutputType(image_output) if image_output else None,
            warning_policy=warning_policy,
        )
        doc = export_gltf(asset, output, options=options)

        if emit_manifest is not None:
            manifest = build_manifest(
                input_path=input_file,
                output_path=output,
                doc=doc,
                command_args=sys.argv[1:],
            )
            emit_manifest.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        click.echo(f"Compiled {input_file} -> {output}")
    except GltfSceneError as e:
        raise click.ClickException(str(e))


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Inspection output format.",
)
def inspect(input_file: Path, output_format: str = "text") -> None:
    """Summarize an exported .glb or .gltf file."""
    try:
        payload = inspect_gltf(load_gltf(input_file))
    except GltfSceneError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(render_text(payload), nl=False)
