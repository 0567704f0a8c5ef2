"""Build a property graph from a validated scene description."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pygltflib

from scenepack.errors import ValidationError
from scenepack.models import PrimitiveSpec, SamplerSpec, SceneSpec, TextureRef
from scenepack.properties import (
    Accessor,
    Buffer,
    Camera,
    Document,
    Material,
    Mesh,
    Node,
    Primitive,
    Scene,
    Skin,
    Texture,
    TextureInfo,
    TextureSampler,
)
from scenepack.uri import extension_to_mime_type

MAG_FILTERS: dict[str, int] = {
    "nearest": TextureSampler.NEAREST,
    "linear": TextureSampler.LINEAR,
}

MIN_FILTERS: dict[str, int] = {
    **MAG_FILTERS,
    "nearest_mipmap_nearest": TextureSampler.NEAREST_MIPMAP_NEAREST,
    "linear_mipmap_nearest": TextureSampler.LINEAR_MIPMAP_NEAREST,
    "nearest_mipmap_linear": TextureSampler.NEAREST_MIPMAP_LINEAR,
    "linear_mipmap_linear": TextureSampler.LINEAR_MIPMAP_LINEAR,
}

WRAP_MODES: dict[str, int] = {
    "clamp_to_edge": TextureSampler.CLAMP_TO_EDGE,
    "mirrored_repeat": TextureSampler.MIRRORED_REPEAT,
    "repeat": TextureSampler.REPEAT,
}


def build_document(spec: SceneSpec, base_dir: Path | None = None) -> Document:
    """Turn a validated ``SceneSpec`` into a ``Document``.

    Image paths are resolved against ``base_dir`` (the current directory when
    omitted). Objects are appended in declaration order, which is also the
    order the writer assigns indices in.
    """
    base_dir = base_dir or Path.cwd()
    doc = Document()

    buffers = {}
    for buf in spec.buffers:
        buffers[buf.id] = Buffer(name=buf.id, uri=buf.uri or "")
        doc.buffers.append(buffers[buf.id])

    textures = {}
    for img in spec.images:
        image_path = base_dir / img.path
        try:
            data = image_path.read_bytes()
        except OSError as e:
            raise ValidationError(f"Image {img.id!r}: cannot read {image_path}: {e}") from e
        textures[img.id] = Texture(
            name=img.id,
            image=data,
            mime_type=img.mime_type or extension_to_mime_type(image_path.suffix),
            uri=img.uri or "",
        )
        doc.textures.append(textures[img.id])

    materials = {}
    for mat in spec.materials:
        material = Material(
            name=mat.id,
            base_color_factor=mat.base_color,
            metallic_factor=mat.metallic,
            roughness_factor=mat.roughness,
            emissive_factor=mat.emissive,
            alpha_mode=mat.alpha_mode,
            alpha_cutoff=mat.alpha_cutoff,
            double_sided=mat.double_sided,
            normal_scale=mat.normal_scale,
            occlusion_strength=mat.occlusion_strength,
        )
        for slot in ("base_color", "metallic_roughness", "normal", "occlusion", "emissive"):
            ref: TextureRef | None = getattr(mat, f"{slot}_texture")
            if ref is None:
                continue
            setattr(material, f"{slot}_texture", textures[ref.image])
            setattr(material, f"{slot}_texture_info", _texture_info(ref))
        materials[mat.id] = material
        doc.materials.append(material)

    meshes = {}
    for mesh_def in spec.meshes:
        mesh = Mesh(name=mesh_def.id)
        for prim_def in mesh_def.primitives:
            buffer = buffers[prim_def.buffer] if prim_def.buffer else None
            mesh.primitives.append(_build_primitive(doc, prim_def, buffer, materials))
        meshes[mesh_def.id] = mesh
        doc.meshes.append(mesh)

    cameras = {}
    for cam in spec.cameras:
        cameras[cam.id] = Camera(
            name=cam.id,
            type=cam.type,
            yfov=cam.yfov,
            aspect_ratio=cam.aspect_ratio,
            znear=cam.znear,
            zfar=cam.zfar,
            xmag=cam.xmag,
            ymag=cam.ymag,
        )
        doc.cameras.append(cameras[cam.id])

    nodes = {}
    for node_def in spec.nodes:
        nodes[node_def.id] = Node(
            name=node_def.id,
            extras=dict(node_def.extras),
            translation=node_def.translation,
            rotation=node_def.rotation,
            scale=node_def.scale,
            mesh=meshes[node_def.mesh] if node_def.mesh else None,
            camera=cameras[node_def.camera] if node_def.camera else None,
        )
        doc.nodes.append(nodes[node_def.id])
    for node_def in spec.nodes:
        nodes[node_def.id].children = [nodes[child] for child in node_def.children]

    skins = {}
    for skin_def in spec.skins:
        ibm = None
        if skin_def.inverse_bind_matrices is not None:
            ibm = Accessor(
                name=f"{skin_def.id}.inverseBindMatrices",
                array=np.asarray(skin_def.inverse_bind_matrices, dtype=np.float32),
            )
            doc.accessors.append(ibm)
        skins[skin_def.id] = Skin(
            name=skin_def.id,
            joints=[nodes[j] for j in skin_def.joints],
            inverse_bind_matrices=ibm,
            skeleton=nodes[skin_def.skeleton] if skin_def.skeleton else None,
        )
        doc.skins.append(skins[skin_def.id])
    for node_def in spec.nodes:
        if node_def.skin:
            nodes[node_def.id].skin = skins[node_def.skin]

    scenes = {}
    for scene_def in spec.scenes:
        scenes[scene_def.id] = Scene(
            name=scene_def.id, children=[nodes[n] for n in scene_def.nodes]
        )
        doc.scenes.append(scenes[scene_def.id])
    if spec.scene is not None:
        doc.default_scene = scenes[spec.scene]
    elif doc.scenes:
        doc.default_scene = doc.scenes[0]

    return doc


def _sampler(spec: SamplerSpec) -> TextureSampler:
    return TextureSampler(
        mag_filter=MAG_FILTERS[spec.mag_filter] if spec.mag_filter else None,
        min_filter=MIN_FILTERS[spec.min_filter] if spec.min_filter else None,
        wrap_s=WRAP_MODES[spec.wrap_s],
        wrap_t=WRAP_MODES[spec.wrap_t],
    )


def _texture_info(ref: TextureRef) -> TextureInfo:
    return TextureInfo(tex_coord=ref.tex_coord, sampler=_sampler(ref.sampler))


def _build_primitive(
    doc: Document,
    prim_def: PrimitiveSpec,
    buffer: Buffer | None,
    materials: dict[str, Material],
) -> Primitive:
    def add(array: np.ndarray, target: int) -> Accessor:
        accessor = Accessor(array=array, buffer=buffer, target=target)
        doc.accessors.append(accessor)
        return accessor

    prim = Primitive(material=materials[prim_def.material] if prim_def.material else None)
    prim.attributes["POSITION"] = add(
        np.asarray(prim_def.positions, dtype=np.float32), pygltflib.ARRAY_BUFFER
    )
    if prim_def.normals is not None:
        prim.attributes["NORMAL"] = add(
            np.asarray(prim_def.normals, dtype=np.float32), pygltflib.ARRAY_BUFFER
        )
    if prim_def.uvs is not None:
        prim.attributes["TEXCOORD_0"] = add(
            np.asarray(prim_def.uvs, dtype=np.float32), pygltflib.ARRAY_BUFFER
        )
    if prim_def.indices is not None:
        dtype = np.uint16 if len(prim_def.positions) < 65536 else np.uint32
        prim.indices = add(
            np.asarray(prim_def.indices, dtype=dtype), pygltflib.ELEMENT_ARRAY_BUFFER
        )
    return prim
