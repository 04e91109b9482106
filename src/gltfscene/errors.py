"""Custom exception hierarchy for gltfscene."""


class GltfSceneError(Exception):
    """Base exception for all gltfscene errors."""


class ParseError(GltfSceneError):
    """Raised when YAML parsing or schema deserialization fails."""


class ValidationError(GltfSceneError):
    """Raised when semantic validation fails (cycles, bad refs, mixed track arity)."""


class UsageError(GltfSceneError):
    """Raised when the packer or assembler is driven in an invalid order."""


class UnsupportedError(GltfSceneError):
    """Raised for input the exporter does not encode (e.g. non-triangle meshes)."""


class ExportError(GltfSceneError):
    """Raised when glTF/GLB export fails."""
