from __future__ import annotations

from importlib import resources
import json
from typing import Any

from jsonschema import Draft202012Validator

SCHEMA_FILE = "schemas/system-overview.schema.json"


def load_schema() -> dict[str, Any]:
    schema_path = resources.files("sysmcp").joinpath(SCHEMA_FILE)
    return json.loads(schema_path.read_text(encoding="utf-8"))


def get_validator() -> Draft202012Validator:
    return Draft202012Validator(schema=load_schema())


def validate_payload(payload: dict[str, Any]) -> list[str]:
    """Schema violations in an overview payload, ordered by location."""
    validator = get_validator()
    errors = sorted(validator.iter_errors(payload), key=lambda e: [str(p) for p in e.path])
    return [f"{'/'.join(str(p) for p in error.path) or '<root>'}: {error.message}" for error in errors]
