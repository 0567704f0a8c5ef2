"""Export driver: walks a property graph and fills a NativeDocument."""

from __future__ import annotations

import pygltflib

from scenepack.context import WriterContext
from scenepack.document import NativeDocument
from scenepack.errors import ExportError
from scenepack.models import WriterOptions
from scenepack.properties import Accessor, Buffer, Document, Material, Node
from scenepack.registry import PropertyKind
from scenepack.uri import ResourceKind
from scenepack.warning_policy import WarningPolicy, emit_warning


def _pad4(data: bytes) -> bytes:
    """Zero-pad to a multiple of 4 bytes so following accessors stay aligned."""
    return data + b"\x00" * ((4 - len(data) % 4) % 4)


def write_document(
    document: Document,
    options: WriterOptions | None = None,
    *,
    warning_policy: WarningPolicy | None = None,
) -> NativeDocument:
    """Write ``document`` into a new NativeDocument.

    Visit order is fixed (buffers and accessors, textures, materials, meshes,
    cameras, nodes, skins, scenes) so the same graph always yields the same
    indices. The session is finalized before returning.
    """
    options = options or WriterOptions()
    groups = _group_accessors(document)
    if options.multiple_buffers is None:
        options = options.model_copy(update={"multiple_buffers": len(groups) > 1})

    native = NativeDocument.empty()
    context = WriterContext(native, options, warning_policy=warning_policy)

    if options.mode == "embedded":
        _write_embedded_accessors(context, document)
    else:
        _write_external_buffers(context, groups)
    _write_textures(context, document)
    _write_materials(context, document)
    _write_meshes(context, document)
    _write_cameras(context, document)
    _write_nodes(context, document)
    _write_skins(context, document)
    _write_scenes(context, document)

    context.finalize()
    if context.router.blobs:
        native.json.set_binary_blob(context.router.blob())
    return native


def _group_accessors(document: Document) -> dict[Buffer, list[Accessor]]:
    """Group accessors by buffer; unassigned accessors share an implicit buffer."""
    groups: dict[Buffer, list[Accessor]] = {buf: [] for buf in document.buffers}
    implicit: Buffer | None = None
    seen: set[int] = set()
    for accessor in document.accessors:
        if id(accessor) in seen:
            continue
        seen.add(id(accessor))
        buffer = accessor.buffer
        if buffer is None:
            if implicit is None:
                implicit = Buffer()
                groups[implicit] = []
            buffer = implicit
        groups.setdefault(buffer, []).append(accessor)
    return {buf: accessors for buf, accessors in groups.items() if accessors}


def _write_embedded_accessors(context: WriterContext, document: Document) -> None:
    for accessor in document.accessors:
        if context.registry.contains(PropertyKind.ACCESSOR, accessor):
            continue
        accessor_def = context.create_accessor_def(accessor)
        placement = context.router.place(
            _pad4(accessor.array.tobytes()),
            accessor,
            ResourceKind.BUFFER,
            extension="bin",
            target=accessor.target,
        )
        accessor_def.bufferView = placement.buffer_view
        accessor_def.byteOffset = 0
        context.registry.register(PropertyKind.ACCESSOR, accessor, accessor_def)


def _write_external_buffers(
    context: WriterContext, groups: dict[Buffer, list[Accessor]]
) -> None:
    """Concatenate each buffer's accessors and store it as a named resource.

    Offsets inside an external buffer are known immediately, so these views
    never go through the pending-offset path.
    """
    views = context.native.definitions("bufferViews")
    for buffer, accessors in groups.items():
        buffer_def = pygltflib.Buffer(byteLength=0)
        if buffer.extras:
            buffer_def.extras = dict(buffer.extras)
        buffer_index = context.registry.register(PropertyKind.BUFFER, buffer, buffer_def)

        data = bytearray()
        for accessor in accessors:
            payload = _pad4(accessor.array.tobytes())
            view = pygltflib.BufferView(
                buffer=buffer_index, byteOffset=len(data), byteLength=len(payload)
            )
            if accessor.target is not None:
                view.target = accessor.target
            views.append(view)
            data.extend(payload)

            accessor_def = context.create_accessor_def(accessor)
            accessor_def.bufferView = len(views) - 1
            accessor_def.byteOffset = 0
            context.registry.register(PropertyKind.ACCESSOR, accessor, accessor_def)

        placement = context.router.place(bytes(data), buffer, ResourceKind.BUFFER, extension="bin")
        buffer_def.uri = placement.uri
        buffer_def.byteLength = len(data)


def _write_textures(context: WriterContext, document: Document) -> None:
    used = {
        id(texture)
        for material in document.materials
        for _slot, texture, _info in material.texture_slots()
    }
    for texture in document.textures:
        if context.registry.contains(PropertyKind.IMAGE, texture):
            continue
        if id(texture) not in used:
            emit_warning(
                "W03",
                f"Texture {texture.name or texture.uri or '<unnamed>'!r} is not used by a material",
                policy=context.warning_policy,
            )
        image_def = pygltflib.Image(**context.create_property_def(texture))
        if texture.mime_type:
            image_def.mimeType = texture.mime_type
        context.registry.register(PropertyKind.IMAGE, texture, image_def)
        context.create_image_data(image_def, texture.image, texture)


def _write_materials(context: WriterContext, document: Document) -> None:
    for material in document.materials:
        context.registry.register(
            PropertyKind.MATERIAL, material, _build_material(context, material)
        )


def _build_material(context: WriterContext, material: Material) -> pygltflib.Material:
    pbr = pygltflib.PbrMetallicRoughness(
        baseColorFactor=[float(c) for c in material.base_color_factor],
        metallicFactor=float(material.metallic_factor),
        roughnessFactor=float(material.roughness_factor),
    )
    material_def = pygltflib.Material(
        **context.create_property_def(material),
        pbrMetallicRoughness=pbr,
        alphaMode=material.alpha_mode,
        doubleSided=material.double_sided,
    )
    if material.alpha_mode == "MASK":
        material_def.alphaCutoff = float(material.alpha_cutoff)
    else:
        material_def.alphaCutoff = None
    if any(material.emissive_factor):
        material_def.emissiveFactor = [float(c) for c in material.emissive_factor]

    for slot, texture, info in material.texture_slots():
        texture_info = context.create_texture_info_def(texture, info)
        if slot == "base_color":
            pbr.baseColorTexture = texture_info
        elif slot == "metallic_roughness":
            pbr.metallicRoughnessTexture = texture_info
        elif slot == "normal":
            material_def.normalTexture = pygltflib.NormalMaterialTexture(
                index=texture_info.index,
                texCoord=texture_info.texCoord,
                scale=float(material.normal_scale),
            )
        elif slot == "occlusion":
            material_def.occlusionTexture = pygltflib.OcclusionTextureInfo(
                index=texture_info.index,
                texCoord=texture_info.texCoord,
                strength=float(material.occlusion_strength),
            )
        else:
            material_def.emissiveTexture = texture_info
    return material_def


def _write_meshes(context: WriterContext, document: Document) -> None:
    for mesh in document.meshes:
        primitives = []
        for prim in mesh.primitives:
            attributes = pygltflib.Attributes()
            for semantic, accessor in prim.attributes.items():
                if not hasattr(attributes, semantic):
                    raise ExportError(
                        f"Mesh {mesh.name!r}: unsupported vertex attribute {semantic!r}"
                    )
                index = context.require_index(PropertyKind.ACCESSOR, accessor)
                setattr(attributes, semantic, index)
            prim_def = pygltflib.Primitive(attributes=attributes, mode=prim.mode)
            if prim.extras:
                prim_def.extras = dict(prim.extras)
            if prim.indices is not None:
                prim_def.indices = context.require_index(PropertyKind.ACCESSOR, prim.indices)
            if prim.material is not None:
                prim_def.material = context.require_index(PropertyKind.MATERIAL, prim.material)
            primitives.append(prim_def)

        mesh_def = pygltflib.Mesh(**context.create_property_def(mesh), primitives=primitives)
        if mesh.weights:
            mesh_def.weights = list(mesh.weights)
        context.registry.register(PropertyKind.MESH, mesh, mesh_def)


def _write_cameras(context: WriterContext, document: Document) -> None:
    for camera in document.cameras:
        camera_def = pygltflib.Camera(**context.create_property_def(camera), type=camera.type)
        if camera.type == "perspective":
            camera_def.perspective = pygltflib.Perspective(
                yfov=camera.yfov,
                znear=camera.znear,
                zfar=camera.zfar,
                aspectRatio=camera.aspect_ratio,
            )
        else:
            camera_def.orthographic = pygltflib.Orthographic(
                xmag=camera.xmag, ymag=camera.ymag, znear=camera.znear, zfar=camera.zfar
            )
        context.registry.register(PropertyKind.CAMERA, camera, camera_def)


def _write_nodes(context: WriterContext, document: Document) -> None:
    # Register every node first so children can refer to later nodes.
    node_defs: list[tuple[Node, pygltflib.Node]] = []
    for node in document.nodes:
        node_def = pygltflib.Node(**context.create_property_def(node))
        if node.translation is not None:
            node_def.translation = list(node.translation)
        if node.rotation is not None:
            node_def.rotation = list(node.rotation)
        if node.scale is not None:
            node_def.scale = list(node.scale)
        context.registry.register(PropertyKind.NODE, node, node_def)
        node_defs.append((node, node_def))

    for node, node_def in node_defs:
        if node.mesh is not None:
            node_def.mesh = context.require_index(PropertyKind.MESH, node.mesh)
        if node.camera is not None:
            node_def.camera = context.require_index(PropertyKind.CAMERA, node.camera)
        children = [context.require_index(PropertyKind.NODE, child) for child in node.children]
        node_def.children = children if children else None


def _write_skins(context: WriterContext, document: Document) -> None:
    for skin in document.skins:
        skin_def = pygltflib.Skin(
            **context.create_property_def(skin),
            joints=[context.require_index(PropertyKind.NODE, joint) for joint in skin.joints],
        )
        if skin.inverse_bind_matrices is not None:
            skin_def.inverseBindMatrices = context.require_index(
                PropertyKind.ACCESSOR, skin.inverse_bind_matrices
            )
        if skin.skeleton is not None:
            skin_def.skeleton = context.require_index(PropertyKind.NODE, skin.skeleton)
        context.registry.register(PropertyKind.SKIN, skin, skin_def)

    for node in document.nodes:
        if node.skin is not None:
            node_index = context.require_index(PropertyKind.NODE, node)
            context.gltf.nodes[node_index].skin = context.require_index(
                PropertyKind.SKIN, node.skin
            )


def _write_scenes(context: WriterContext, document: Document) -> None:
    for scene in document.scenes:
        scene_def = pygltflib.Scene(
            **context.create_property_def(scene),
            nodes=[context.require_index(PropertyKind.NODE, node) for node in scene.children],
        )
        context.registry.register(PropertyKind.SCENE, scene, scene_def)
    if document.default_scene is not None:
        context.gltf.scene = context.require_index(PropertyKind.SCENE, document.default_scene)
