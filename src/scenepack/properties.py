"""In-memory property graph handed to the writer.

Every property class uses identity equality (``eq=False``) so two objects with
identical fields stay distinct graph nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pygltflib

COMPONENT_TYPES: dict[np.dtype, int] = {
    np.dtype(np.int8): pygltflib.BYTE,
    np.dtype(np.uint8): pygltflib.UNSIGNED_BYTE,
    np.dtype(np.int16): pygltflib.SHORT,
    np.dtype(np.uint16): pygltflib.UNSIGNED_SHORT,
    np.dtype(np.uint32): pygltflib.UNSIGNED_INT,
    np.dtype(np.float32): pygltflib.FLOAT,
}

ELEMENT_TYPES: dict[int, str] = {
    1: pygltflib.SCALAR,
    2: pygltflib.VEC2,
    3: pygltflib.VEC3,
    4: pygltflib.VEC4,
    9: pygltflib.MAT3,
    16: pygltflib.MAT4,
}


@dataclass(eq=False)
class Property:
    name: str = ""
    extras: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Buffer(Property):
    uri: str = ""


@dataclass(eq=False)
class Accessor(Property):
    """Typed element array. Rows are elements, columns are components."""

    array: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    normalized: bool = False
    buffer: Buffer | None = None
    target: int | None = None

    def get_type(self) -> str:
        width = 1 if self.array.ndim == 1 else self.array.shape[1]
        try:
            return ELEMENT_TYPES[width]
        except KeyError:
            raise ValueError(f"Unsupported accessor element width: {width}") from None

    def get_component_type(self) -> int:
        try:
            return COMPONENT_TYPES[self.array.dtype]
        except KeyError:
            raise ValueError(f"Unsupported accessor dtype: {self.array.dtype}") from None

    def get_count(self) -> int:
        return int(self.array.shape[0])

    def get_min(self) -> list:
        if self.get_count() == 0:
            return []
        return np.atleast_1d(self.array.min(axis=0)).tolist()

    def get_max(self) -> list:
        if self.get_count() == 0:
            return []
        return np.atleast_1d(self.array.max(axis=0)).tolist()


@dataclass(eq=False)
class TextureSampler:
    """Filter and wrap settings, using the glTF enum values."""

    NEAREST = 9728
    LINEAR = 9729
    NEAREST_MIPMAP_NEAREST = 9984
    LINEAR_MIPMAP_NEAREST = 9985
    NEAREST_MIPMAP_LINEAR = 9986
    LINEAR_MIPMAP_LINEAR = 9987
    CLAMP_TO_EDGE = 33071
    MIRRORED_REPEAT = 33648
    REPEAT = 10497

    mag_filter: int | None = None
    min_filter: int | None = None
    wrap_s: int = REPEAT
    wrap_t: int = REPEAT


@dataclass(eq=False)
class TextureInfo:
    """How a material slot samples its texture."""

    tex_coord: int = 0
    sampler: TextureSampler = field(default_factory=TextureSampler)


@dataclass(eq=False)
class Texture(Property):
    """Encoded image bytes plus the URI they were loaded from, if any."""

    image: bytes = b""
    mime_type: str = ""
    uri: str = ""


MATERIAL_TEXTURE_SLOTS: tuple[str, ...] = (
    "base_color",
    "metallic_roughness",
    "normal",
    "occlusion",
    "emissive",
)


@dataclass(eq=False)
class Material(Property):
    base_color_factor: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    metallic_factor: float = 1.0
    roughness_factor: float = 1.0
    emissive_factor: tuple[float, float, float] = (0.0, 0.0, 0.0)
    normal_scale: float = 1.0
    occlusion_strength: float = 1.0
    alpha_mode: str = "OPAQUE"
    alpha_cutoff: float = 0.5
    double_sided: bool = False

    base_color_texture: Texture | None = None
    base_color_texture_info: TextureInfo = field(default_factory=TextureInfo)
    metallic_roughness_texture: Texture | None = None
    metallic_roughness_texture_info: TextureInfo = field(default_factory=TextureInfo)
    normal_texture: Texture | None = None
    normal_texture_info: TextureInfo = field(default_factory=TextureInfo)
    occlusion_texture: Texture | None = None
    occlusion_texture_info: TextureInfo = field(default_factory=TextureInfo)
    emissive_texture: Texture | None = None
    emissive_texture_info: TextureInfo = field(default_factory=TextureInfo)

    def texture_slots(self) -> list[tuple[str, Texture, TextureInfo]]:
        """Return ``(slot, texture, info)`` for every slot with a texture set."""
        slots = []
        for slot in MATERIAL_TEXTURE_SLOTS:
            texture = getattr(self, f"{slot}_texture")
            if texture is not None:
                slots.append((slot, texture, getattr(self, f"{slot}_texture_info")))
        return slots


@dataclass(eq=False)
class Primitive(Property):
    attributes: dict[str, Accessor] = field(default_factory=dict)
    indices: Accessor | None = None
    material: Material | None = None
    mode: int = 4  # TRIANGLES


@dataclass(eq=False)
class Mesh(Property):
    primitives: list[Primitive] = field(default_factory=list)
    weights: list[float] = field(default_factory=list)


@dataclass(eq=False)
class Camera(Property):
    type: str = "perspective"
    yfov: float = 0.8
    aspect_ratio: float | None = None
    znear: float = 0.1
    zfar: float | None = None
    xmag: float = 1.0
    ymag: float = 1.0


@dataclass(eq=False)
class Node(Property):
    translation: tuple[float, float, float] | None = None
    rotation: tuple[float, float, float, float] | None = None  # (x, y, z, w)
    scale: tuple[float, float, float] | None = None
    mesh: Mesh | None = None
    camera: Camera | None = None
    skin: Skin | None = None
    children: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class Skin(Property):
    joints: list[Node] = field(default_factory=list)
    inverse_bind_matrices: Accessor | None = None
    skeleton: Node | None = None


@dataclass(eq=False)
class Scene(Property):
    children: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class Document:
    """Root container listing every property to be written."""

    buffers: list[Buffer] = field(default_factory=list)
    accessors: list[Accessor] = field(default_factory=list)
    textures: list[Texture] = field(default_factory=list)
    materials: list[Material] = field(default_factory=list)
    meshes: list[Mesh] = field(default_factory=list)
    cameras: list[Camera] = field(default_factory=list)
    skins: list[Skin] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)
    scenes: list[Scene] = field(default_factory=list)
    default_scene: Scene | None = None
