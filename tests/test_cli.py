"""Tests for CLI entry point."""

import json

import pygltflib
from click.testing import CliRunner

from scenepack.cli import main


class TestCLI:
    def test_version_flag(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_pack_glb(self, scene_dir):
        out = scene_dir / "out.glb"
        args = ["pack", str(scene_dir / "quad.scene.yaml"), "-o", str(out)]
        result = CliRunner().invoke(main, args)
        assert result.exit_code == 0, result.output
        assert "Packed" in result.output
        gltf = pygltflib.GLTF2().load(str(out))
        assert len(gltf.images) == 2
        assert len(gltf.samplers) == 1
        assert len(gltf.textures) == 2
        assert gltf.nodes[1].camera is None and gltf.nodes[2].camera == 0

    def test_pack_default_output_path(self, scene_dir):
        result = CliRunner().invoke(main, ["pack", str(scene_dir / "quad.scene.yaml")])
        assert result.exit_code == 0, result.output
        assert (scene_dir / "quad.glb").exists()

    def test_pack_external(self, scene_dir):
        result = CliRunner().invoke(
            main,
            [
                "pack",
                str(scene_dir / "quad.scene.yaml"),
                "--mode",
                "external",
                "--image-basename",
                "map",
            ],
        )
        assert result.exit_code == 0, result.output
        assert (scene_dir / "quad.gltf").exists()
        assert (scene_dir / "map_1.png").exists()
        assert (scene_dir / "map_2.png").exists()
        assert (scene_dir / "buffer.bin").exists()
        assert "resource: map_1.png" in result.output

    def test_single_image_conflict_reported(self, scene_dir):
        result = CliRunner().invoke(
            main,
            ["pack", str(scene_dir / "quad.scene.yaml"), "--mode", "external", "--single-image"],
        )
        assert result.exit_code != 0
        assert "texture.png" in result.output

    def test_emit_manifest(self, scene_dir):
        manifest_path = scene_dir / "manifest.json"
        result = CliRunner().invoke(
            main,
            [
                "pack",
                str(scene_dir / "quad.scene.yaml"),
                "--mode",
                "external",
                "--emit-manifest",
                str(manifest_path),
            ],
        )
        assert result.exit_code == 0, result.output
        manifest = json.loads(manifest_path.read_text())
        assert manifest["tool"]["name"] == "scenepack"
        assert [r["uri"] for r in manifest["resources"]] == [
            "buffer.bin",
            "texture_1.png",
            "texture_2.png",
        ]

    def test_invalid_scene(self, tmp_path):
        input_file = tmp_path / "bad.scene.yaml"
        input_file.write_text("version: '1.0'\nnodes: [{id: a, children: [ghost]}]\n")
        result = CliRunner().invoke(main, ["pack", str(input_file)])
        assert result.exit_code != 0
        assert "Error" in result.output

    def test_missing_file(self, tmp_path):
        result = CliRunner().invoke(main, ["pack", str(tmp_path / "missing.yaml")])
        assert result.exit_code != 0

    def test_unknown_warning_code(self, scene_dir):
        result = CliRunner().invoke(
            main, ["pack", str(scene_dir / "quad.scene.yaml"), "--warn-as-error", "W99"]
        )
        assert result.exit_code != 0
        assert "W99" in result.output

    def test_warn_as_error(self, tmp_path, png_bytes):
        (tmp_path / "a.png").write_bytes(png_bytes)
        input_file = tmp_path / "unused.scene.yaml"
        input_file.write_text("version: '1.0'\nimages: [{id: a, path: a.png}]\n")
        result = CliRunner().invoke(main, ["pack", str(input_file), "--warn-as-error", "W03"])
        assert result.exit_code != 0
        assert "[W03]" in result.output

    def test_inspect_json(self, scene_dir):
        result = CliRunner().invoke(
            main, ["inspect", str(scene_dir / "quad.scene.yaml"), "--format", "json"]
        )
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["mode"] == "embedded"
        assert payload["definitions"]["images"] == 2
        assert payload["definitions"]["samplers"] == 1
        assert payload["binary_length"] > 0
        assert not list(scene_dir.glob("*.glb"))

    def test_inspect_text(self, scene_dir):
        result = CliRunner().invoke(main, ["inspect", str(scene_dir / "quad.scene.yaml")])
        assert result.exit_code == 0, result.output
        assert "mode: embedded" in result.output
        assert "nodes: 3" in result.output
