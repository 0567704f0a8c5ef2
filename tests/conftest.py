"""Shared fixtures for Scenepack tests."""

from __future__ import annotations

import numpy as np
import pygltflib
import pytest

from scenepack.properties import (
    Accessor,
    Document,
    Material,
    Mesh,
    Node,
    Primitive,
    Scene,
    Texture,
    TextureInfo,
)

# Only the signature matters; image bytes are never decoded.
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def png_bytes():
    return PNG_SIGNATURE + b"\x00\x00\x00\x0dIHDR" + bytes(range(13))


@pytest.fixture
def triangle_document(png_bytes):
    """One textured triangle under one node in one scene."""
    doc = Document()
    positions = Accessor(
        array=np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype=np.float32),
        target=pygltflib.ARRAY_BUFFER,
    )
    uvs = Accessor(
        array=np.array([[0, 0], [1, 0], [0, 1]], dtype=np.float32),
        target=pygltflib.ARRAY_BUFFER,
    )
    indices = Accessor(
        array=np.array([0, 1, 2], dtype=np.uint16),
        target=pygltflib.ELEMENT_ARRAY_BUFFER,
    )
    doc.accessors.extend([positions, uvs, indices])

    texture = Texture(name="albedo", image=png_bytes, mime_type="image/png")
    doc.textures.append(texture)

    material = Material(
        name="painted",
        base_color_texture=texture,
        base_color_texture_info=TextureInfo(),
    )
    doc.materials.append(material)

    mesh = Mesh(
        name="tri",
        primitives=[
            Primitive(
                attributes={"POSITION": positions, "TEXCOORD_0": uvs},
                indices=indices,
                material=material,
            )
        ],
    )
    doc.meshes.append(mesh)

    node = Node(name="tri_node", mesh=mesh)
    doc.nodes.append(node)
    scene = Scene(name="main", children=[node])
    doc.scenes.append(scene)
    doc.default_scene = scene
    return doc


@pytest.fixture
def scene_dir(tmp_path, png_bytes):
    """A directory holding a textured scene description and its images."""
    (tmp_path / "albedo.png").write_bytes(png_bytes)
    (tmp_path / "detail.png").write_bytes(png_bytes + b"detail")
    (tmp_path / "quad.scene.yaml").write_text(
        """\
version: "1.0"
images:
  - id: albedo
    path: albedo.png
  - id: detail
    path: detail.png
materials:
  - id: painted
    base_color: [1.0, 0.5, 0.5, 1.0]
    base_color_texture:
      image: albedo
      sampler: {mag_filter: linear, wrap_s: clamp_to_edge}
    emissive_texture:
      image: detail
      sampler: {mag_filter: linear, wrap_s: clamp_to_edge}
meshes:
  - id: quad
    primitives:
      - positions: [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]]
        uvs: [[0, 0], [1, 0], [1, 1], [0, 1]]
        indices: [0, 1, 2, 0, 2, 3]
        material: painted
cameras:
  - id: eye
    yfov: 0.9
nodes:
  - id: root
    children: [quad_node, camera_node]
  - id: quad_node
    mesh: quad
    translation: [0, 1, 0]
  - id: camera_node
    camera: eye
scenes:
  - id: main
    nodes: [root]
"""
    )
    return tmp_path
