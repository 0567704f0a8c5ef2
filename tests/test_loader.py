"""Tests for building a property graph from a scene description."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from scenepack.errors import ValidationError
from scenepack.loader import build_document
from scenepack.parser import parse_yaml
from scenepack.properties import TextureSampler


@pytest.fixture
def quad_document(scene_dir):
    spec = parse_yaml(scene_dir / "quad.scene.yaml")
    return build_document(spec, base_dir=scene_dir)


class TestBuildDocument:
    def test_textures_loaded(self, quad_document, png_bytes):
        albedo, detail = quad_document.textures
        assert albedo.image == png_bytes
        assert albedo.mime_type == "image/png"
        assert detail.image.endswith(b"detail")
        assert albedo.uri == ""

    def test_material_sampler_mapped(self, quad_document):
        material = quad_document.materials[0]
        sampler = material.base_color_texture_info.sampler
        assert sampler.mag_filter == TextureSampler.LINEAR
        assert sampler.min_filter is None
        assert sampler.wrap_s == TextureSampler.CLAMP_TO_EDGE
        assert sampler.wrap_t == TextureSampler.REPEAT
        assert material.base_color_factor == (1.0, 0.5, 0.5, 1.0)

    def test_primitive_accessors(self, quad_document):
        prim = quad_document.meshes[0].primitives[0]
        assert set(prim.attributes) == {"POSITION", "TEXCOORD_0"}
        assert prim.attributes["POSITION"].array.dtype == np.float32
        assert prim.indices.array.dtype == np.uint16
        assert_allclose(prim.attributes["POSITION"].array[2], [1, 1, 0])
        assert len(quad_document.accessors) == 3

    def test_node_hierarchy(self, quad_document):
        root = quad_document.nodes[0]
        assert [c.name for c in root.children] == ["quad_node", "camera_node"]
        assert root.children[1].camera is quad_document.cameras[0]
        assert quad_document.default_scene is quad_document.scenes[0]

    def test_missing_image_file(self, tmp_path):
        spec = parse_yaml('version: "1.0"\nimages: [{id: a, path: missing.png}]\n')
        with pytest.raises(ValidationError, match="cannot read"):
            build_document(spec, base_dir=tmp_path)

    def test_skin_matrices(self, tmp_path):
        identity = [1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1]
        spec = parse_yaml(
            'version: "1.0"\n'
            "nodes: [{id: hip, skin: s}, {id: knee}]\n"
            "skins: [{id: s, joints: [hip, knee],\n"
            f"  inverse_bind_matrices: [{identity}, {identity}]}}]\n"
        )
        doc = build_document(spec, base_dir=tmp_path)
        skin = doc.skins[0]
        assert skin.inverse_bind_matrices.array.shape == (2, 16)
        assert doc.nodes[0].skin is skin
        assert skin.inverse_bind_matrices in doc.accessors
