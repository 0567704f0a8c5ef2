"""Placement of binary payloads: embedded byte ranges or named external files."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import pygltflib

from scenepack.document import NativeDocument
from scenepack.errors import NamingConflictError, SessionStateError
from scenepack.uri import ResourceKind, UniqueURIGenerator
from scenepack.warning_policy import WarningPolicy, emit_warning

EMBEDDED_BUFFER_INDEX = 0


@dataclass(frozen=True)
class Placement:
    """Where a payload ended up: a buffer view index or an external name."""

    buffer_view: int | None = None
    uri: str | None = None


@dataclass
class _PendingRange:
    buffer_view: int
    blob: bytes


class ResourceRouter:
    """Routes payloads for one session.

    Embedded placements are two-phase. ``place`` appends the payload to
    ``blobs`` and a buffer view whose ``byteOffset`` is None, returning the
    view index immediately. ``resolve_offsets`` later assigns every pending
    view its running offset in insertion order. No padding is inserted
    between payloads.
    """

    def __init__(
        self,
        native: NativeDocument,
        mode: Literal["embedded", "external"],
        generators: dict[ResourceKind, UniqueURIGenerator],
        *,
        warning_policy: WarningPolicy | None = None,
    ) -> None:
        self._native = native
        self.mode = mode
        self._generators = generators
        self._warning_policy = warning_policy
        self._pending: list[_PendingRange] = []
        self._claims: dict[str, object] = {}
        self._resolved = False

    @property
    def blobs(self) -> list[bytes]:
        return [pending.blob for pending in self._pending]

    def place(
        self,
        payload: bytes,
        owner: object,
        kind: ResourceKind,
        *,
        extension: str,
        target: int | None = None,
    ) -> Placement:
        if self._resolved:
            raise SessionStateError("Cannot place payloads after offsets were resolved")
        if not payload:
            emit_warning(
                "W01",
                f"Empty {kind.value} payload for {_describe(owner)}",
                policy=self._warning_policy,
            )
        if self.mode == "embedded":
            return Placement(buffer_view=self.embed(payload, target=target))
        return Placement(uri=self.externalize(payload, owner, kind, extension))

    def embed(self, payload: bytes, *, target: int | None = None) -> int:
        buffers = self._native.definitions("buffers")
        if not buffers:
            buffers.append(pygltflib.Buffer(byteLength=0))

        views = self._native.definitions("bufferViews")
        index = len(views)
        view = pygltflib.BufferView(
            buffer=EMBEDDED_BUFFER_INDEX,
            byteOffset=None,
            byteLength=len(payload),
        )
        if target is not None:
            view.target = target
        views.append(view)
        self._pending.append(_PendingRange(buffer_view=index, blob=bytes(payload)))
        return index

    def externalize(
        self, payload: bytes, owner: object, kind: ResourceKind, extension: str
    ) -> str:
        uri = self._generators[kind].create_uri(owner, extension)
        claimant = self._claims.get(uri)
        if claimant is not None and claimant is not owner:
            raise NamingConflictError(
                f"Resource name {uri!r} for {_describe(owner)} is already used by "
                f"{_describe(claimant)}"
            )
        self._claims[uri] = owner
        self._native.resources[uri] = bytes(payload)
        return uri

    def resolve_offsets(self) -> None:
        """Assign each pending buffer view its final offset in the shared blob."""
        if self._resolved:
            raise SessionStateError("Buffer view offsets were already resolved")
        views = self._native.definitions("bufferViews")
        offset = 0
        for pending in self._pending:
            views[pending.buffer_view].byteOffset = offset
            offset += len(pending.blob)
        if self._pending:
            self._native.definitions("buffers")[EMBEDDED_BUFFER_INDEX].byteLength = offset
        self._resolved = True

    def blob(self) -> bytes:
        return b"".join(pending.blob for pending in self._pending)


def _describe(obj: object) -> str:
    name = getattr(obj, "name", "")
    label = type(obj).__name__.lower()
    return f"{label} {name!r}" if name else f"unnamed {label}"
