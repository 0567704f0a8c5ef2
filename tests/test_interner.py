"""Tests for sampler / texture definition interning."""

import pytest

from scenepack.document import NativeDocument
from scenepack.interner import (
    DefinitionCategory,
    DefinitionInterner,
    canonical_key,
    sampler_record,
    texture_record,
)
from scenepack.properties import TextureSampler

SAMPLER = DefinitionCategory.SAMPLER


@pytest.fixture
def native():
    return NativeDocument.empty()


class TestCanonicalKey:
    def test_key_order_independent(self):
        assert canonical_key({"a": 1, "b": 2}) == canonical_key({"b": 2, "a": 1})

    def test_none_values_dropped(self):
        assert canonical_key({"a": 1, "b": None}) == canonical_key({"a": 1})

    def test_different_values_differ(self):
        assert canonical_key({"a": 1}) != canonical_key({"a": 2})


class TestSamplerRecord:
    def test_unset_filters_omitted(self):
        record = sampler_record(TextureSampler())
        assert record["magFilter"] is None
        assert record["minFilter"] is None
        assert record["wrapS"] == TextureSampler.REPEAT

    def test_zero_filter_same_as_unset(self):
        explicit = sampler_record(TextureSampler(mag_filter=0, min_filter=0))
        implicit = sampler_record(TextureSampler())
        assert canonical_key(explicit) == canonical_key(implicit)

    def test_explicit_default_wrap_same_as_implicit(self):
        explicit = TextureSampler(wrap_s=TextureSampler.REPEAT, wrap_t=TextureSampler.REPEAT)
        assert canonical_key(sampler_record(explicit)) == canonical_key(
            sampler_record(TextureSampler())
        )


class TestIntern:
    def test_equal_records_share_index(self, native):
        interner = DefinitionInterner(native)
        a = interner.intern(SAMPLER, sampler_record(TextureSampler(mag_filter=9729)))
        b = interner.intern(SAMPLER, sampler_record(TextureSampler(mag_filter=9729)))
        assert a == b == 0
        assert len(native.json.samplers) == 1

    def test_distinct_records_get_distinct_indices(self, native):
        interner = DefinitionInterner(native)
        a = interner.intern(SAMPLER, sampler_record(TextureSampler(mag_filter=9729)))
        b = interner.intern(SAMPLER, sampler_record(TextureSampler(mag_filter=9728)))
        assert (a, b) == (0, 1)
        assert len(native.json.samplers) == 2

    def test_order_of_interning_does_not_change_sharing(self, native):
        interner = DefinitionInterner(native)
        first = interner.intern(DefinitionCategory.TEXTURE, {"sampler": 0, "source": 1})
        interner.intern(DefinitionCategory.TEXTURE, {"source": 2, "sampler": 0})
        again = interner.intern(DefinitionCategory.TEXTURE, {"source": 1, "sampler": 0})
        assert first == again

    def test_categories_are_separate(self, native):
        interner = DefinitionInterner(native)
        interner.intern(DefinitionCategory.SAMPLER, {"wrapS": 10497, "wrapT": 10497})
        assert interner.intern(DefinitionCategory.TEXTURE, texture_record(0, 0)) == 0
        assert interner.count(DefinitionCategory.SAMPLER) == 1
        assert interner.count(DefinitionCategory.TEXTURE) == 1

    def test_stored_definition_omits_unset_filters(self, native):
        interner = DefinitionInterner(native)
        interner.intern(DefinitionCategory.SAMPLER, sampler_record(TextureSampler()))
        sampler = native.json.samplers[0]
        assert sampler.magFilter is None
        assert sampler.minFilter is None
        assert sampler.wrapS == TextureSampler.REPEAT


class TestInternTexture:
    def test_shared_sampler_distinct_textures(self, native):
        interner = DefinitionInterner(native)
        settings = dict(mag_filter=9729, wrap_s=TextureSampler.CLAMP_TO_EDGE)
        t0 = interner.intern_texture(0, TextureSampler(**settings))
        t1 = interner.intern_texture(1, TextureSampler(**settings))
        assert t0 != t1
        assert len(native.json.samplers) == 1
        assert native.json.textures[0].sampler == native.json.textures[1].sampler == 0

    def test_same_image_different_sampler(self, native):
        interner = DefinitionInterner(native)
        t0 = interner.intern_texture(0, TextureSampler(mag_filter=9729))
        t1 = interner.intern_texture(0, TextureSampler(mag_filter=9728))
        assert t0 != t1
        assert len(native.json.samplers) == 2

    def test_same_image_same_sampler_shared(self, native):
        interner = DefinitionInterner(native)
        assert interner.intern_texture(3, TextureSampler()) == interner.intern_texture(
            3, TextureSampler()
        )
        assert len(native.json.textures) == 1
