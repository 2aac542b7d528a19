"""Schema validation helpers."""

from __future__ import annotations

import json
from importlib import resources

from jsonschema import Draft202012Validator


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _config_schema() -> dict:
    return _load_schema("sky_install.schema", "config.schema.json")


def validate_config(data: dict) -> None:
    Draft202012Validator(_config_schema()).validate(data)
