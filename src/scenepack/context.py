"""Writer session state shared by every step of one export."""

from __future__ import annotations

from typing import Any

import pygltflib

from scenepack.document import DEFINITION_ARRAYS, NativeDocument
from scenepack.errors import DanglingReferenceError, ExportError, SessionStateError
from scenepack.interner import DefinitionInterner
from scenepack.models import WriterOptions
from scenepack.properties import Accessor, Property, Texture, TextureInfo
from scenepack.registry import IndexRegistry, PropertyKind
from scenepack.router import ResourceRouter
from scenepack.uri import ResourceKind, UniqueURIGenerator, mime_type_to_extension
from scenepack.warning_policy import WarningPolicy, emit_warning

_MATERIAL_TEXTURE_FIELDS: tuple[tuple[str | None, str], ...] = (
    ("pbrMetallicRoughness", "baseColorTexture"),
    ("pbrMetallicRoughness", "metallicRoughnessTexture"),
    (None, "normalTexture"),
    (None, "occlusionTexture"),
    (None, "emissiveTexture"),
)


class WriterContext:
    """One export session.

    Owns the index registry, the definition interner, the resource router
    and one URI generator per resource category. Create a new context for
    every export; nothing here is shared between sessions.
    """

    def __init__(
        self,
        native: NativeDocument,
        options: WriterOptions,
        *,
        warning_policy: WarningPolicy | None = None,
    ) -> None:
        self.native = native
        self.options = options
        self.warning_policy = warning_policy
        self.registry = IndexRegistry(native)
        self.interner = DefinitionInterner(native)
        self.image_uri_generator = UniqueURIGenerator(
            options.multiple_images, options.image_basename
        )
        self.buffer_uri_generator = UniqueURIGenerator(
            bool(options.multiple_buffers), options.buffer_basename
        )
        self.router = ResourceRouter(
            native,
            options.mode,
            {
                ResourceKind.IMAGE: self.image_uri_generator,
                ResourceKind.BUFFER: self.buffer_uri_generator,
            },
            warning_policy=warning_policy,
        )
        self.finalized = False

    @property
    def gltf(self) -> pygltflib.GLTF2:
        return self.native.json

    def require_index(self, kind: PropertyKind, obj: Property) -> int:
        """Return the index of ``obj``, raising if it was never registered."""
        index = self.registry.index_of(kind, obj)
        if index is None:
            label = f"{obj.name!r}" if obj.name else "unnamed"
            raise DanglingReferenceError(
                f"{kind.name.lower()} {label} is referenced before it was written"
            )
        return index

    def create_property_def(self, prop: Property) -> dict[str, Any]:
        """Return keyword arguments common to every definition (name, extras)."""
        fields: dict[str, Any] = {}
        if prop.name:
            fields["name"] = prop.name
        if prop.extras:
            fields["extras"] = dict(prop.extras)
        return fields

    def create_accessor_def(self, accessor: Accessor) -> pygltflib.Accessor:
        accessor_def = pygltflib.Accessor(
            **self.create_property_def(accessor),
            type=accessor.get_type(),
            componentType=accessor.get_component_type(),
            count=accessor.get_count(),
            normalized=accessor.normalized,
        )
        if accessor.get_count():
            accessor_def.min = accessor.get_min()
            accessor_def.max = accessor.get_max()
        return accessor_def

    def create_texture_info_def(
        self, texture: Texture, texture_info: TextureInfo
    ) -> pygltflib.TextureInfo:
        """Return a texture info pointing at a shared texture binding.

        The sampler is interned first and the binding embeds its index, so
        bindings differ exactly when image or sampler content differs. An
        unregistered texture yields a binding without a source; ``finalize``
        rejects it.
        """
        self._require_open()
        image_index = self.registry.index_of(PropertyKind.IMAGE, texture)
        texture_index = self.interner.intern_texture(image_index, texture_info.sampler)
        return pygltflib.TextureInfo(index=texture_index, texCoord=texture_info.tex_coord)

    def create_image_data(self, image_def: pygltflib.Image, data: bytes, texture: Texture) -> None:
        """Store image bytes and point ``image_def`` at them.

        An image stored in a buffer view must carry a MIME type, so a missing
        one is an error in embedded mode and W02 otherwise.
        """
        self._require_open()
        label = texture.name or texture.uri or "<unnamed>"
        if not texture.mime_type and self.options.mode == "embedded":
            raise ExportError(
                f"Texture {label!r} has no MIME type, which an embedded image requires"
            )
        if not texture.mime_type:
            emit_warning(
                "W02",
                f"Texture {label!r} has no MIME type",
                policy=self.warning_policy,
            )
        extension = mime_type_to_extension(texture.mime_type)
        placement = self.router.place(data, texture, ResourceKind.IMAGE, extension=extension)
        if placement.buffer_view is not None:
            image_def.bufferView = placement.buffer_view
        else:
            image_def.uri = placement.uri

    def finalize(self) -> None:
        """Resolve embedded offsets and check every cross-reference.

        Must be called exactly once, after all objects have been written.
        """
        if self.finalized:
            raise SessionStateError("WriterContext.finalize() called more than once")
        self.router.resolve_offsets()
        self.registry.close()
        self.interner.close()
        self.finalized = True
        check_references(self.gltf)

    def _require_open(self) -> None:
        if self.finalized:
            raise SessionStateError("Writer session is already finalized")


def check_references(gltf: pygltflib.GLTF2) -> None:
    """Raise ``DanglingReferenceError`` for any index that points nowhere."""
    sizes = {name: len(getattr(gltf, name) or []) for name in DEFINITION_ARRAYS}

    def check(
        owner: str, field: str, value: int | None, target: str, *, required: bool = False
    ) -> None:
        if value is None:
            if required:
                raise DanglingReferenceError(f"{owner}.{field} is missing")
            return
        if not 0 <= value < sizes[target]:
            raise DanglingReferenceError(
                f"{owner}.{field} = {value} but only {sizes[target]} {target} exist"
            )

    for i, view in enumerate(gltf.bufferViews or []):
        check(f"bufferViews[{i}]", "buffer", view.buffer, "buffers", required=True)
        if view.byteOffset is None:
            raise DanglingReferenceError(f"bufferViews[{i}].byteOffset was never resolved")

    for i, accessor in enumerate(gltf.accessors or []):
        check(f"accessors[{i}]", "bufferView", accessor.bufferView, "bufferViews")

    for i, image in enumerate(gltf.images or []):
        if image.uri is None and image.bufferView is None:
            raise DanglingReferenceError(f"images[{i}] has neither uri nor bufferView")
        check(f"images[{i}]", "bufferView", image.bufferView, "bufferViews")

    for i, texture in enumerate(gltf.textures or []):
        check(f"textures[{i}]", "source", texture.source, "images", required=True)
        check(f"textures[{i}]", "sampler", texture.sampler, "samplers")

    for i, material in enumerate(gltf.materials or []):
        for parent, field in _MATERIAL_TEXTURE_FIELDS:
            holder = getattr(material, parent) if parent else material
            info = getattr(holder, field, None) if holder is not None else None
            if info is not None:
                check(f"materials[{i}]", field, info.index, "textures", required=True)

    for i, mesh in enumerate(gltf.meshes or []):
        for j, prim in enumerate(mesh.primitives or []):
            owner = f"meshes[{i}].primitives[{j}]"
            for semantic, value in vars(prim.attributes).items():
                check(owner, f"attributes.{semantic}", value, "accessors")
            check(owner, "indices", prim.indices, "accessors")
            check(owner, "material", prim.material, "materials")

    for i, node in enumerate(gltf.nodes or []):
        check(f"nodes[{i}]", "mesh", node.mesh, "meshes")
        check(f"nodes[{i}]", "camera", node.camera, "cameras")
        check(f"nodes[{i}]", "skin", node.skin, "skins")
        for child in node.children or []:
            check(f"nodes[{i}]", "children", child, "nodes", required=True)

    for i, skin in enumerate(gltf.skins or []):
        for joint in skin.joints or []:
            check(f"skins[{i}]", "joints", joint, "nodes", required=True)
        check(f"skins[{i}]", "inverseBindMatrices", skin.inverseBindMatrices, "accessors")
        check(f"skins[{i}]", "skeleton", skin.skeleton, "nodes")

    for i, scene in enumerate(gltf.scenes or []):
        for node in scene.nodes or []:
            check(f"scenes[{i}]", "nodes", node, "nodes", required=True)

    check("document", "scene", gltf.scene, "scenes")
