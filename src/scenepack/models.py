"""Pydantic v2 models for writer options and YAML scene descriptions."""

from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

SUPPORTED_VERSION: tuple[int, int] = (1, 0)


class WriterOptions(BaseModel):
    """Per-session export settings.

    ``multiple_buffers`` left as None is decided by the writer from the
    number of buffers actually written.
    """

    model_config = ConfigDict(extra="forbid")

    mode: Literal["embedded", "external"] = "embedded"
    image_basename: str = "texture"
    buffer_basename: str = "buffer"
    multiple_images: bool = True
    multiple_buffers: bool | None = None

    @field_validator("image_basename", "buffer_basename")
    @classmethod
    def _check_basename(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"basename must be a non-empty file name, got {v!r}")
        return v


class BufferSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    uri: str | None = None


class ImageSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    path: str
    uri: str | None = None
    mime_type: str | None = None


class SamplerSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mag_filter: Literal["nearest", "linear"] | None = None
    min_filter: (
        Literal[
            "nearest",
            "linear",
            "nearest_mipmap_nearest",
            "linear_mipmap_nearest",
            "nearest_mipmap_linear",
            "linear_mipmap_linear",
        ]
        | None
    ) = None
    wrap_s: Literal["clamp_to_edge", "mirrored_repeat", "repeat"] = "repeat"
    wrap_t: Literal["clamp_to_edge", "mirrored_repeat", "repeat"] = "repeat"


class TextureRef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    image: str
    tex_coord: int = 0
    sampler: SamplerSpec = SamplerSpec()

    @field_validator("tex_coord")
    @classmethod
    def _check_tex_coord(cls, v: int) -> int:
        if v < 0:
            raise ValueError("tex_coord must be >= 0")
        return v


class MaterialSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    base_color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    metallic: float = 1.0
    roughness: float = 1.0
    emissive: tuple[float, float, float] = (0.0, 0.0, 0.0)
    alpha_mode: Literal["OPAQUE", "MASK", "BLEND"] = "OPAQUE"
    alpha_cutoff: float = 0.5
    double_sided: bool = False
    normal_scale: float = 1.0
    occlusion_strength: float = 1.0
    base_color_texture: TextureRef | None = None
    metallic_roughness_texture: TextureRef | None = None
    normal_texture: TextureRef | None = None
    occlusion_texture: TextureRef | None = None
    emissive_texture: TextureRef | None = None

    @field_validator("base_color")
    @classmethod
    def _check_base_color(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        if any(c < 0.0 or c > 1.0 for c in v):
            raise ValueError(f"base_color components must be in [0, 1], got {list(v)}")
        return v


class PrimitiveSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    positions: list[tuple[float, float, float]]
    normals: list[tuple[float, float, float]] | None = None
    uvs: list[tuple[float, float]] | None = None
    indices: list[int] | None = None
    material: str | None = None
    buffer: str | None = None

    @model_validator(mode="after")
    def _check_lengths(self) -> PrimitiveSpec:
        count = len(self.positions)
        if count == 0:
            raise ValueError("primitive must have at least one position")
        for name in ("normals", "uvs"):
            values = getattr(self, name)
            if values is not None and len(values) != count:
                raise ValueError(f"{name} has {len(values)} entries, expected {count}")
        if self.indices is not None:
            bad = [i for i in self.indices if i < 0 or i >= count]
            if bad:
                raise ValueError(f"indices out of range [0, {count}): {bad[:5]}")
        for p in self.positions:
            if any(math.isnan(c) or math.isinf(c) for c in p):
                raise ValueError("positions must be finite")
        return self


class MeshSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    primitives: list[PrimitiveSpec]


class CameraSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    type: Literal["perspective", "orthographic"] = "perspective"
    yfov: float = 0.8
    aspect_ratio: float | None = None
    znear: float = 0.1
    zfar: float | None = None
    xmag: float = 1.0
    ymag: float = 1.0

    @model_validator(mode="after")
    def _check_planes(self) -> CameraSpec:
        if self.znear <= 0.0 and self.type == "perspective":
            raise ValueError("perspective znear must be > 0")
        if self.zfar is not None and self.zfar <= self.znear:
            raise ValueError("zfar must be greater than znear")
        if self.type == "orthographic" and self.zfar is None:
            raise ValueError("orthographic cameras require zfar")
        return self


class NodeSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    translation: tuple[float, float, float] | None = None
    rotation: tuple[float, float, float, float] | None = None  # (x, y, z, w)
    scale: tuple[float, float, float] | None = None
    mesh: str | None = None
    camera: str | None = None
    skin: str | None = None
    children: list[str] = []
    extras: dict[str, Any] = {}


class SkinSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    joints: list[str]
    skeleton: str | None = None
    inverse_bind_matrices: list[list[float]] | None = None

    @model_validator(mode="after")
    def _check_matrices(self) -> SkinSpec:
        if not self.joints:
            raise ValueError("skin must list at least one joint")
        if self.inverse_bind_matrices is not None:
            if len(self.inverse_bind_matrices) != len(self.joints):
                raise ValueError("inverse_bind_matrices must have one matrix per joint")
            if any(len(m) != 16 for m in self.inverse_bind_matrices):
                raise ValueError("each inverse bind matrix must have 16 values (column-major)")
        return self


class SceneDef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    nodes: list[str] = []


class SceneSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str
    export: WriterOptions = WriterOptions()
    buffers: list[BufferSpec] = []
    images: list[ImageSpec] = []
    materials: list[MaterialSpec] = []
    meshes: list[MeshSpec] = []
    cameras: list[CameraSpec] = []
    skins: list[SkinSpec] = []
    nodes: list[NodeSpec] = []
    scenes: list[SceneDef] = []
    scene: str | None = None
