"""YAML loading and version checking for scene descriptions."""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError as PydanticValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from gltfscene.errors import ParseError
from gltfscene.models import SceneFileSpec

SUPPORTED_VERSION = (0, 1)


def _make_yaml() -> YAML:
    """Create a ruamel.yaml safe loader that errors on duplicate keys."""
    yml = YAML(typ="safe")
    yml.allow_duplicate_keys = False
    return yml


def _read_source_text(source: str | Path) -> str:
    if isinstance(source, Path):
        try:
            return source.read_text(encoding="utf-8")
        except OSError as e:
            raise ParseError(f"Cannot read file: {e}") from e
    return source


def load_yaml_data(source: str | Path) -> dict:
    """Load YAML and run top-level shape/version checks."""
    text = _read_source_text(source)
    try:
        data = _make_yaml().load(text)
    except YAMLError as e:
        raise ParseError(f"Invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Top-level YAML value must be a mapping")

    version = data.get("version")
    if version is None:
        raise ParseError("Missing required field: version")
    _check_version(str(version))
    return data


def parse_yaml(source: str | Path) -> SceneFileSpec:
    """Parse a scene description from a YAML string or a file path.

    Raises:
        ParseError: On YAML syntax errors, schema violations or version mismatches.
    """
    data = load_yaml_data(source)
    try:
        return SceneFileSpec(**data)
    except PydanticValidationError as e:
        raise ParseError(f"Schema validation failed:\n{e}") from e


def _check_version(version: str) -> None:
    parts = version.split(".")
    if len(parts) != 2:
        raise ParseError(f"Invalid version format: {version!r}")

    try:
        major = int(parts[0])
        minor = int(parts[1])
    except ValueError:
        raise ParseError(f"Invalid version format: {version!r}")

    if (major, minor) > SUPPORTED_VERSION:
        supported = ".".join(str(p) for p in SUPPORTED_VERSION)
        raise ParseError(f"Unsupported version: {version!r} (latest supported is {supported})")
