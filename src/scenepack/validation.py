"""Semantic validation for parsed scene descriptions."""

from __future__ import annotations

from scenepack.errors import ValidationError
from scenepack.models import MaterialSpec, SceneSpec

_TEXTURE_SLOTS = (
    "base_color_texture",
    "metallic_roughness_texture",
    "normal_texture",
    "occlusion_texture",
    "emissive_texture",
)


def validate(spec: SceneSpec) -> None:
    """Run all semantic checks on a parsed scene description.

    Raises:
        ValidationError: On duplicate ids, unknown references or a bad node hierarchy.
    """
    _check_unique_ids(spec)
    _check_material_image_refs(spec)
    _check_primitive_refs(spec)
    _check_node_refs(spec)
    _check_node_hierarchy(spec)
    _check_skin_refs(spec)
    _check_scene_refs(spec)


def _check_unique_ids(spec: SceneSpec) -> None:
    for label, items in (
        ("buffer", spec.buffers),
        ("image", spec.images),
        ("material", spec.materials),
        ("mesh", spec.meshes),
        ("camera", spec.cameras),
        ("skin", spec.skins),
        ("node", spec.nodes),
        ("scene", spec.scenes),
    ):
        seen: set[str] = set()
        for item in items:
            if item.id in seen:
                raise ValidationError(f"Duplicate {label} id: {item.id!r}")
            seen.add(item.id)


def _texture_refs(material: MaterialSpec) -> list[tuple[str, str]]:
    refs = []
    for slot in _TEXTURE_SLOTS:
        ref = getattr(material, slot)
        if ref is not None:
            refs.append((slot, ref.image))
    return refs


def _check_material_image_refs(spec: SceneSpec) -> None:
    image_ids = {img.id for img in spec.images}
    for material in spec.materials:
        for slot, image_id in _texture_refs(material):
            if image_id not in image_ids:
                raise ValidationError(
                    f"Material {material.id!r} {slot} references unknown image {image_id!r}"
                )


def _check_primitive_refs(spec: SceneSpec) -> None:
    material_ids = {m.id for m in spec.materials}
    buffer_ids = {b.id for b in spec.buffers}
    for mesh in spec.meshes:
        for i, prim in enumerate(mesh.primitives):
            if prim.material is not None and prim.material not in material_ids:
                raise ValidationError(
                    f"Mesh {mesh.id!r} primitive {i} references unknown material {prim.material!r}"
                )
            if prim.buffer is not None and prim.buffer not in buffer_ids:
                raise ValidationError(
                    f"Mesh {mesh.id!r} primitive {i} references unknown buffer {prim.buffer!r}"
                )


def _check_node_refs(spec: SceneSpec) -> None:
    mesh_ids = {m.id for m in spec.meshes}
    camera_ids = {c.id for c in spec.cameras}
    skin_ids = {s.id for s in spec.skins}
    node_ids = {n.id for n in spec.nodes}
    for node in spec.nodes:
        if node.mesh is not None and node.mesh not in mesh_ids:
            raise ValidationError(f"Node {node.id!r} references unknown mesh {node.mesh!r}")
        if node.camera is not None and node.camera not in camera_ids:
            raise ValidationError(f"Node {node.id!r} references unknown camera {node.camera!r}")
        if node.skin is not None and node.skin not in skin_ids:
            raise ValidationError(f"Node {node.id!r} references unknown skin {node.skin!r}")
        for child in node.children:
            if child not in node_ids:
                raise ValidationError(f"Node {node.id!r} references unknown child {child!r}")


def _check_node_hierarchy(spec: SceneSpec) -> None:
    """Each node has at most one parent and the hierarchy has no cycles."""
    parent_of: dict[str, str] = {}
    for node in spec.nodes:
        for child in node.children:
            if child == node.id:
                raise ValidationError(f"Node {node.id!r} lists itself as a child")
            if child in parent_of:
                raise ValidationError(
                    f"Node {child!r} has two parents: {parent_of[child]!r} and {node.id!r}"
                )
            parent_of[child] = node.id

    for node in spec.nodes:
        visited = {node.id}
        current = node.id
        while current in parent_of:
            current = parent_of[current]
            if current in visited:
                raise ValidationError(f"Cycle in node hierarchy involving {node.id!r}")
            visited.add(current)


def _check_skin_refs(spec: SceneSpec) -> None:
    node_ids = {n.id for n in spec.nodes}
    for skin in spec.skins:
        for joint in skin.joints:
            if joint not in node_ids:
                raise ValidationError(f"Skin {skin.id!r} references unknown joint {joint!r}")
        if skin.skeleton is not None and skin.skeleton not in node_ids:
            raise ValidationError(
                f"Skin {skin.id!r} references unknown skeleton {skin.skeleton!r}"
            )


def _check_scene_refs(spec: SceneSpec) -> None:
    node_ids = {n.id for n in spec.nodes}
    scene_ids = {s.id for s in spec.scenes}
    for scene in spec.scenes:
        for node_id in scene.nodes:
            if node_id not in node_ids:
                raise ValidationError(f"Scene {scene.id!r} references unknown node {node_id!r}")
    if spec.scene is not None and spec.scene not in scene_ids:
        raise ValidationError(f"Default scene {spec.scene!r} is not defined")
