"""Configuration payload loading."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .exceptions import MalformedConfigError, VariantsErrorCodes
from .records import ConfigRecord, validate_record


def _decode(data: bytes | bytearray | str) -> str:
    if isinstance(data, str):
        return data
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedConfigError(
            "Config payload is not valid UTF-8",
            cause=e,
            code=VariantsErrorCodes.PARSE,
        ) from e


def parse_config_data(data: bytes | bytearray | str) -> ConfigRecord:
    """Parse a JSON or YAML payload into a validated ConfigRecord.

    JSON is tried first so JSON payloads keep JSON number semantics; YAML
    is only used when the text is not JSON. An empty payload yields an
    empty configuration.
    """
    text = _decode(data)
    try:
        loaded: Any = json.loads(text)
    except json.JSONDecodeError:
        loaded = _load_yaml(text)
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, Mapping):
        raise MalformedConfigError(
            f"Config payload must be a mapping, got {type(loaded).__name__}"
        )
    return validate_record(ConfigRecord, loaded)


def _load_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise MalformedConfigError(
            f"Failed to parse config payload: {e}",
            cause=e,
            code=VariantsErrorCodes.PARSE,
        ) from e


def read_config_file(path: Path | str) -> ConfigRecord:
    """Read a JSON or YAML configuration file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise MalformedConfigError(
            f"Failed to read config file: {path}",
            cause=e,
            code=VariantsErrorCodes.READ_FILE,
        ) from e
    return parse_config_data(text)
