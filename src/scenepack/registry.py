"""Identity-keyed index allocation for graph objects."""

from __future__ import annotations

from enum import Enum

from scenepack.document import NativeDocument
from scenepack.errors import SessionStateError


class PropertyKind(Enum):
    """Graph object kinds, valued by the definition array each one grows.

    Textures own entries in ``images``; the ``textures`` array holds interned
    bindings and is managed by the interner instead.
    """

    SCENE = "scenes"
    NODE = "nodes"
    MESH = "meshes"
    MATERIAL = "materials"
    IMAGE = "images"
    ACCESSOR = "accessors"
    SKIN = "skins"
    CAMERA = "cameras"
    BUFFER = "buffers"


class IndexRegistry:
    """Maps (kind, object) to the object's index in the output document.

    Entries are keyed by ``id(obj)`` and keep a reference to the object so the
    id cannot be recycled while the session is alive. Indices are never stored
    on the objects themselves.
    """

    def __init__(self, native: NativeDocument) -> None:
        self._native = native
        self._entries: dict[PropertyKind, dict[int, tuple[object, int]]] = {
            kind: {} for kind in PropertyKind
        }
        self._closed = False

    def index_of(self, kind: PropertyKind, obj: object) -> int | None:
        entry = self._entries[kind].get(id(obj))
        return None if entry is None else entry[1]

    def register(self, kind: PropertyKind, obj: object, definition: object) -> int:
        """Allocate the next index of ``kind`` for ``obj`` and append ``definition``.

        Registering an object a second time returns its existing index and
        leaves the definition array untouched.
        """
        existing = self.index_of(kind, obj)
        if existing is not None:
            return existing
        if self._closed:
            raise SessionStateError(
                f"Cannot register new {kind.name.lower()} after the session was finalized"
            )
        array = self._native.definitions(kind.value)
        index = len(array)
        array.append(definition)
        self._entries[kind][id(obj)] = (obj, index)
        return index

    def contains(self, kind: PropertyKind, obj: object) -> bool:
        return id(obj) in self._entries[kind]

    def count(self, kind: PropertyKind) -> int:
        return len(self._entries[kind])

    def close(self) -> None:
        self._closed = True
