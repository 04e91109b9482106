"""gltfscene: serialize authored scene graphs to glTF 2.0 / GLB."""

__version__ = "0.1.0"
