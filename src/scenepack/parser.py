"""Load .scene.yaml text into a validated ``SceneSpec``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from scenepack.errors import ParseError
from scenepack.models import SUPPORTED_VERSION, SceneSpec


def parse_version(value: object) -> tuple[int, int]:
    """Split a ``MAJOR.MINOR`` version into integers.

    YAML reads an unquoted ``1.0`` as a float, so any scalar is accepted and
    stringified first.
    """
    text = str(value)
    major, dot, minor = text.partition(".")
    if not dot or not major.isdigit() or not minor.isdigit():
        raise ParseError(f"Invalid version format: {text!r}")
    return int(major), int(minor)


def _load_mapping(source: str | Path) -> dict[str, Any]:
    if isinstance(source, Path):
        try:
            source = source.read_text(encoding="utf-8")
        except OSError as e:
            raise ParseError(f"Cannot read file: {e}") from e

    loader = YAML(typ="safe")
    loader.allow_duplicate_keys = False
    try:
        data = loader.load(source)
    except YAMLError as e:
        raise ParseError(f"Invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Top-level YAML value must be a mapping")
    return data


def parse_yaml(source: str | Path) -> SceneSpec:
    """Parse a scene description from YAML text or a file path.

    Duplicate keys are rejected. Versions newer than ``SUPPORTED_VERSION``
    fail before schema validation so their errors read as version errors.

    Raises:
        ParseError: On unreadable input, YAML syntax errors, version problems,
            or schema violations.
    """
    data = _load_mapping(source)
    if data.get("version") is None:
        raise ParseError("Missing required field: version")
    data["version"] = str(data["version"])

    if parse_version(data["version"]) > SUPPORTED_VERSION:
        latest = "%d.%d" % SUPPORTED_VERSION
        raise ParseError(
            f"Unsupported version: {data['version']!r} (latest supported is {latest})"
        )

    try:
        return SceneSpec.model_validate(data)
    except PydanticValidationError as e:
        raise ParseError(f"Schema validation failed:\n{e}") from e
