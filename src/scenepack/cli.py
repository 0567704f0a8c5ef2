"""Click CLI entry point for Scenepack."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from scenepack import __version__
from scenepack.container import export_document
from scenepack.errors import ScenepackError
from scenepack.loader import build_document
from scenepack.manifest import build_manifest
from scenepack.models import SceneSpec, WriterOptions
from scenepack.parser import parse_yaml
from scenepack.validation import validate
from scenepack.warning_policy import WarningPolicy, build_policy
from scenepack.writer import write_document


def _build_warning_policy(
    warn_as_error: str | None, suppress_warning: str | None
) -> WarningPolicy | None:
    try:
        return build_policy(warn_as_error, suppress_warning)
    except ValueError as e:
        raise click.ClickException(str(e)) from e


def _default_output(input_file: Path, mode: str) -> Path:
    """Strip .scene.yaml or .yaml and add .glb / .gltf."""
    stem = input_file.name
    for suffix in [".scene.yaml", ".scene.yml", ".yaml", ".yml"]:
        if stem.endswith(suffix):
            stem = stem[: -len(suffix)]
            break
    return input_file.parent / f"{stem}.{'glb' if mode == 'embedded' else 'gltf'}"


def _load(input_file: Path) -> SceneSpec:
    spec = parse_yaml(input_file)
    validate(spec)
    return spec


@click.group()
@click.version_option(version=__version__, prog_name="scenepack")
def main() -> None:
    """Scenepack: write YAML scene descriptions as glTF 2.0."""


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path. Defaults to the input name with .glb (embedded) or .gltf (external).",
)
@click.option(
    "--mode",
    type=click.Choice(["embedded", "external"]),
    default=None,
    help="Pack resources into one GLB, or write .gltf plus external files. "
    "Overrides the scene's export block.",
)
@click.option(
    "--image-basename", type=str, default=None, help="Base name for generated image files."
)
@click.option(
    "--buffer-basename", type=str, default=None, help="Base name for generated buffer files."
)
@click.option(
    "--single-image",
    is_flag=True,
    default=False,
    help="Name the generated image file without a numeric suffix.",
)
@click.option(
    "--emit-manifest",
    "emit_manifest",
    type=click.Path(path_type=Path),
    default=None,
    help="Write a JSON build manifest to this path after a successful pack.",
)
@click.option(
    "--warn-as-error",
    "warn_as_error",
    type=str,
    default=None,
    help="Comma-separated W-codes to treat as errors (e.g. W01,W02).",
)
@click.option(
    "--suppress-warning",
    "suppress_warning",
    type=str,
    default=None,
    help="Comma-separated W-codes to suppress (e.g. W03).",
)
def pack(
    input_file: Path,
    output: Path | None = None,
    mode: str | None = None,
    image_basename: str | None = None,
    buffer_basename: str | None = None,
    single_image: bool = False,
    emit_manifest: Path | None = None,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Pack a .scene.yaml description into GLB or glTF."""
    warning_policy = _build_warning_policy(warn_as_error, suppress_warning)

    try:
        spec = _load(input_file)
        overrides: dict = {}
        if mode is not None:
            overrides["mode"] = mode
        if image_basename is not None:
            overrides["image_basename"] = image_basename
        if buffer_basename is not None:
            overrides["buffer_basename"] = buffer_basename
        if single_image:
            overrides["multiple_images"] = False
        try:
            options = WriterOptions(**{**spec.export.model_dump(), **overrides})
        except ValueError as e:
            raise click.ClickException(f"Invalid export options: {e}") from e

        if output is None:
            output = _default_output(input_file, options.mode)

        document = build_document(spec, base_dir=input_file.parent)
        native = export_document(document, output, options, warning_policy=warning_policy)

        if emit_manifest is not None:
            manifest = build_manifest(
                input_path=input_file,
                output_path=output,
                resources=native.resources,
                command_args=sys.argv[1:],
            )
            emit_manifest.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        click.echo(f"Packed: {output}")
        for uri in native.resources:
            click.echo(f"  resource: {uri}")
    except ScenepackError as e:
        raise click.ClickException(str(e))


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Inspection output format.",
)
def inspect(input_file: Path, output_format: str = "text") -> None:
    """Report definition counts and resource names without writing files."""
    try:
        spec = _load(input_file)
        document = build_document(spec, base_dir=input_file.parent)
        native = write_document(document, spec.export)
    except ScenepackError as e:
        raise click.ClickException(str(e))

    payload = {
        "mode": spec.export.mode,
        "definitions": native.counts(),
        "binary_length": len(native.json.binary_blob() or b""),
        "resources": {uri: len(data) for uri, data in native.resources.items()},
    }
    if output_format == "json":
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(f"mode: {payload['mode']}")
    for name, count in payload["definitions"].items():
        if count:
            click.echo(f"{name}: {count}")
    if spec.export.mode == "embedded":
        click.echo(f"binary: {payload['binary_length']} bytes")
    for uri, length in payload["resources"].items():
        click.echo(f"resource {uri}: {length} bytes")
