"""Content-keyed deduplication of sampler and texture definitions."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

import pygltflib

from scenepack.document import NativeDocument
from scenepack.errors import SessionStateError
from scenepack.properties import TextureSampler


class DefinitionCategory(Enum):
    SAMPLER = "samplers"
    TEXTURE = "textures"


_DEFINITION_TYPES: dict[DefinitionCategory, type] = {
    DefinitionCategory.SAMPLER: pygltflib.Sampler,
    DefinitionCategory.TEXTURE: pygltflib.Texture,
}


def canonical_key(record: dict[str, Any]) -> str:
    """Serialize ``record`` deterministically, ignoring key order and None values."""
    present = {key: value for key, value in record.items() if value is not None}
    return json.dumps(present, sort_keys=True, separators=(",", ":"))


def sampler_record(sampler: TextureSampler) -> dict[str, Any]:
    # Unset (or zero) filters are omitted so implicit and explicit defaults match.
    return {
        "magFilter": sampler.mag_filter or None,
        "minFilter": sampler.min_filter or None,
        "wrapS": sampler.wrap_s,
        "wrapT": sampler.wrap_t,
    }


def texture_record(image_index: int | None, sampler_index: int) -> dict[str, Any]:
    return {"source": image_index, "sampler": sampler_index}


class DefinitionInterner:
    """Appends a definition only the first time its canonical content is seen."""

    def __init__(self, native: NativeDocument) -> None:
        self._native = native
        self._tables: dict[DefinitionCategory, dict[str, int]] = {
            category: {} for category in DefinitionCategory
        }
        self._closed = False

    def intern(self, category: DefinitionCategory, record: dict[str, Any]) -> int:
        key = canonical_key(record)
        table = self._tables[category]
        if key in table:
            return table[key]
        if self._closed:
            raise SessionStateError(
                f"Cannot intern new {category.value} after the session was finalized"
            )

        array = self._native.definitions(category.value)
        index = len(array)
        fields = {name: value for name, value in record.items() if value is not None}
        array.append(_DEFINITION_TYPES[category](**fields))
        table[key] = index
        return index

    def intern_texture(self, image_index: int | None, sampler: TextureSampler) -> int:
        """Intern the sampler, then the texture binding that points at it."""
        sampler_index = self.intern(DefinitionCategory.SAMPLER, sampler_record(sampler))
        return self.intern(DefinitionCategory.TEXTURE, texture_record(image_index, sampler_index))

    def count(self, category: DefinitionCategory) -> int:
        return len(self._tables[category])

    def close(self) -> None:
        self._closed = True
