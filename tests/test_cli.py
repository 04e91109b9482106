"""Tests for CLI entry point."""

import json

import pygltflib
from click.testing import CliRunner

from gltfscene import __version__
from gltfscene.cli import main


class TestCompile:
    def test_version_flag(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_compile_success(self, minimal_scene_yaml, tmp_path):
        runner = CliRunner()
        input_file = tmp_path / "test.scene.yaml"
        input_file.write_text(minimal_scene_yaml)
        output_file = tmp_path / "test.glb"
        result = runner.invoke(main, ["compile", str(input_file), "-o", str(output_file)])
        assert result.exit_code == 0, result.output
        assert output_file.exists()
        assert f"Compiled {input_file} -> {output_file}" in result.output

        gltf = pygltflib.GLTF2().load(str(output_file))
        assert [n.name for n in gltf.nodes] == ["Root", "tri"]
        assert gltf.nodes[0].translation == [0.0, 1.0, 0.0]

    def test_compile_default_output_path(self, minimal_scene_yaml, tmp_path):
        runner = CliRunner()
        input_file = tmp_path / "model.scene.yaml"
        input_file.write_text(minimal_scene_yaml)
        result = runner.invoke(main, ["compile", str(input_file)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "model.glb").exists()

    def test_compile_to_gltf(self, animated_skin_yaml, tmp_path):
        runner = CliRunner()
        input_file = tmp_path / "rig.scene.yaml"
        input_file.write_text(animated_skin_yaml)
        output_file = tmp_path / "rig.gltf"
        result = runner.invoke(
            main,
            ["compile", str(input_file), "-o", str(output_file), "--buffer-output", "separate"],
        )
        assert result.exit_code == 0, result.output

        data = json.loads(output_file.read_text())
        assert len(data["buffers"]) == 2
        assert data["skins"][0]["joints"] == [0, 1, 2]
        assert "inverseBindMatrices" in data["skins"][0]
        samplers = data["animations"][0]["samplers"]
        assert [s["interpolation"] for s in samplers] == ["LINEAR", "STEP"]

    def test_missing_file(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["compile", str(tmp_path / "missing.yaml")])
        assert result.exit_code != 0

    def test_invalid_spec(self, tmp_path):
        runner = CliRunner()
        input_file = tmp_path / "bad.scene.yaml"
        input_file.write_text("version: '1.0'\n")
        result = runner.invoke(main, ["compile", str(input_file)])
        assert result.exit_code != 0
        assert "Error" in result.output

    def test_unknown_reference(self, tmp_path):
        runner = CliRunner()
        input_file = tmp_path / "bad.scene.yaml"
        input_file.write_text('version: "0.1"\nscenes:\n  - nodes: [ghost]\n')
        result = runner.invoke(main, ["compile", str(input_file)])
        assert result.exit_code != 0
        assert "unknown node" in result.output

    def test_warn_as_error(self, tmp_path):
        runner = CliRunner()
        input_file = tmp_path / "empty.scene.yaml"
        input_file.write_text(
            'version: "0.1"\nscenes:\n  - nodes: [a]\nnodes:\n  a: {mesh: m}\nmeshes:\n  m: {}\n'
        )
        result = runner.invoke(main, ["compile", str(input_file), "--warn-as-error", "W03"])
        assert result.exit_code != 0
        assert "[W03]" in result.output

    def test_unknown_warning_code(self, minimal_scene_yaml, tmp_path):
        runner = CliRunner()
        input_file = tmp_path / "test.scene.yaml"
        input_file.write_text(minimal_scene_yaml)
        result = runner.invoke(main, ["compile", str(input_file), "--suppress-warning", "W99"])
        assert result.exit_code != 0
        assert "Unknown warning code" in result.output

    def test_emit_manifest(self, minimal_scene_yaml, tmp_path):
        runner = CliRunner()
        input_file = tmp_path / "test.scene.yaml"
        input_file.write_text(minimal_scene_yaml)
        manifest_file = tmp_path / "manifest.json"
        result = runner.invoke(
            main, ["compile", str(input_file), "--emit-manifest", str(manifest_file)]
        )
        assert result.exit_code == 0, result.output

        manifest = json.loads(manifest_file.read_text())
        assert manifest["manifest_version"] == 1
        assert manifest["tool"]["name"] == "gltfscene"
        assert manifest["output"]["path"] == str(tmp_path / "test.glb")
        assert len(manifest["input"]["sha256"]) == 64
        assert manifest["document"]["nodes"] == 2
        assert manifest["document"]["meshes"] == 1


class TestInspect:
    def _compile(self, text, tmp_path, name="rig"):
        input_file = tmp_path / f"{name}.scene.yaml"
        input_file.write_text(text)
        result = CliRunner().invoke(main, ["compile", str(input_file)])
        assert result.exit_code == 0, result.output
        return tmp_path / f"{name}.glb"

    def test_inspect_json(self, animated_skin_yaml, tmp_path):
        glb = self._compile(animated_skin_yaml, tmp_path)
        result = CliRunner().invoke(main, ["inspect", str(glb), "--format", "json"])
        assert result.exit_code == 0, result.output

        payload = json.loads(result.output)
        assert payload["counts"]["nodes"] == 3
        assert payload["counts"]["skins"] == 1
        assert payload["skins"][0]["joints"] == 3
        channels = payload["animations"][0]["channels"]
        assert [c["path"] for c in channels] == ["rotation", "rotation"]
        assert [c["node"] for c in channels] == [1, 1]

    def test_inspect_text(self, animated_skin_yaml, tmp_path):
        glb = self._compile(animated_skin_yaml, tmp_path)
        result = CliRunner().invoke(main, ["inspect", str(glb)])
        assert result.exit_code == 0, result.output
        assert "nodes: 3" in result.output
        assert "sampler 1: STEP" in result.output
        assert "Skin 0 (rig): 3 joint(s), inverse bind matrices: yes" in result.output

