"""Tests for external resource naming."""

from scenepack.properties import Buffer, Texture
from scenepack.uri import UniqueURIGenerator, extension_to_mime_type, mime_type_to_extension


class TestUniqueURIGenerator:
    def test_declared_uri_returned_verbatim(self):
        gen = UniqueURIGenerator(True, "texture")
        tex = Texture(uri="maps/wood.png")
        assert gen.create_uri(tex, "png") == "maps/wood.png"
        assert gen.create_uri(tex, "png") == "maps/wood.png"
        assert gen.counter == 1

    def test_declared_uri_does_not_consume_counter(self):
        gen = UniqueURIGenerator(True, "texture")
        gen.create_uri(Texture(uri="named.png"), "png")
        assert gen.create_uri(Texture(), "png") == "texture_1.png"

    def test_single_mode(self):
        gen = UniqueURIGenerator(False, "buffer")
        assert gen.create_uri(Buffer(), "bin") == "buffer.bin"
        assert gen.counter == 1

    def test_multiple_mode_increasing_suffixes(self):
        gen = UniqueURIGenerator(True, "texture")
        names = [gen.create_uri(Texture(), "png") for _ in range(4)]
        assert names == ["texture_1.png", "texture_2.png", "texture_3.png", "texture_4.png"]
        assert len(set(names)) == 4

    def test_extension_taken_per_call(self):
        gen = UniqueURIGenerator(True, "texture")
        assert gen.create_uri(Texture(), "png") == "texture_1.png"
        assert gen.create_uri(Texture(), "jpg") == "texture_2.jpg"

    def test_generators_do_not_share_counters(self):
        images = UniqueURIGenerator(True, "texture")
        buffers = UniqueURIGenerator(True, "buffer")
        images.create_uri(Texture(), "png")
        images.create_uri(Texture(), "png")
        assert buffers.create_uri(Buffer(), "bin") == "buffer_1.bin"


class TestMimeTypes:
    def test_known_extensions(self):
        assert mime_type_to_extension("image/png") == "png"
        assert mime_type_to_extension("image/jpeg") == "jpg"

    def test_unknown_subtype_used(self):
        assert mime_type_to_extension("image/avif") == "avif"

    def test_missing_mime_type(self):
        assert mime_type_to_extension("") == "bin"

    def test_extension_to_mime_type(self):
        assert extension_to_mime_type(".PNG") == "image/png"
        assert extension_to_mime_type("jpeg") == "image/jpeg"
        assert extension_to_mime_type("webp") == "image/webp"
