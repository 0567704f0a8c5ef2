"""Output definition document: a glTF tree plus external resources."""

from __future__ import annotations

from dataclasses import dataclass, field

import pygltflib

from scenepack import __version__

DEFINITION_ARRAYS: tuple[str, ...] = (
    "scenes",
    "nodes",
    "meshes",
    "materials",
    "samplers",
    "textures",
    "images",
    "accessors",
    "bufferViews",
    "buffers",
    "skins",
    "cameras",
)


@dataclass
class NativeDocument:
    """Definition tree under construction.

    ``json`` holds the append-only definition arrays. ``resources`` maps
    external resource names to their bytes and stays empty in embedded mode.
    """

    json: pygltflib.GLTF2
    resources: dict[str, bytes] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> NativeDocument:
        gltf = pygltflib.GLTF2(
            asset=pygltflib.Asset(generator=f"scenepack {__version__}", version="2.0"),
        )
        for name in DEFINITION_ARRAYS:
            setattr(gltf, name, [])
        return cls(json=gltf)

    def definitions(self, name: str) -> list:
        """Return the definition array ``name``, creating it if pygltflib left it unset."""
        array = getattr(self.json, name)
        if array is None:
            array = []
            setattr(self.json, name, array)
        return array

    def counts(self) -> dict[str, int]:
        return {name: len(self.definitions(name)) for name in DEFINITION_ARRAYS}
