"""File naming for externally stored resources."""

from __future__ import annotations

from enum import Enum

_MIME_EXTENSIONS: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/ktx2": "ktx2",
    "application/octet-stream": "bin",
}


class ResourceKind(Enum):
    IMAGE = "image"
    BUFFER = "buffer"


def mime_type_to_extension(mime_type: str) -> str:
    if mime_type in _MIME_EXTENSIONS:
        return _MIME_EXTENSIONS[mime_type]
    if "/" in mime_type:
        return mime_type.split("/", 1)[1]
    return "bin"


def extension_to_mime_type(extension: str) -> str:
    extension = extension.lower().lstrip(".")
    if extension == "jpeg":
        extension = "jpg"
    for mime_type, ext in _MIME_EXTENSIONS.items():
        if ext == extension:
            return mime_type
    return f"image/{extension}"


class UniqueURIGenerator:
    """Names resources of one category.

    A URI already declared on the object is returned as-is. Otherwise the
    name is ``basename.ext`` when only one resource is expected, or
    ``basename_N.ext`` with N counting up from 1.
    """

    def __init__(self, multiple: bool, basename: str) -> None:
        self.multiple = multiple
        self.basename = basename
        self.counter = 1

    def create_uri(self, obj: object, extension: str) -> str:
        declared = getattr(obj, "uri", "")
        if declared:
            return declared
        if not self.multiple:
            return f"{self.basename}.{extension}"
        uri = f"{self.basename}_{self.counter}.{extension}"
        self.counter += 1
        return uri
