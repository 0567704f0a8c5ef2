"""Container assembly: GLB bytes, or a .gltf file with sibling resources."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from scenepack.document import NativeDocument
from scenepack.errors import ExportError, ScenepackError
from scenepack.models import WriterOptions
from scenepack.properties import Document
from scenepack.warning_policy import WarningPolicy
from scenepack.writer import write_document


def export_document(
    document: Document,
    output_path: Path,
    options: WriterOptions | None = None,
    *,
    warning_policy: WarningPolicy | None = None,
) -> NativeDocument:
    """Write ``document`` to ``output_path`` as GLB (embedded) or glTF (external).

    Pipeline: write definitions -> finalize -> assemble container.
    """
    options = options or WriterOptions()
    try:
        native = write_document(document, options, warning_policy=warning_policy)
        if options.mode == "embedded":
            write_glb(native, output_path)
        else:
            write_gltf(native, output_path)
        return native
    except Exception as e:
        if isinstance(e, ScenepackError):
            raise
        raise ExportError(f"Failed to export {output_path.name}: {e}") from e


def to_glb_bytes(native: NativeDocument) -> bytes:
    """Assemble the GLB container; the binary chunk is the finalized blob."""
    if native.resources:
        raise ExportError(
            "GLB output cannot carry external resources: " + ", ".join(sorted(native.resources))
        )
    return b"".join(native.json.save_to_bytes())


def write_glb(native: NativeDocument, output_path: Path) -> None:
    output_path.write_bytes(to_glb_bytes(native))


def write_gltf(native: NativeDocument, output_path: Path) -> None:
    """Write the JSON document and every external resource next to it."""
    output_dir = output_path.parent
    for uri in native.resources:
        _check_relative_uri(uri)

    output_path.write_text(native.json.to_json(), encoding="utf-8")
    for uri, data in native.resources.items():
        resource_path = output_dir / uri
        resource_path.parent.mkdir(parents=True, exist_ok=True)
        resource_path.write_bytes(data)


def _check_relative_uri(uri: str) -> None:
    path = PurePosixPath(uri)
    if path.is_absolute() or ".." in path.parts or ":" in uri:
        raise ExportError(
            f"Resource URI {uri!r} must be a relative path inside the output directory"
        )
