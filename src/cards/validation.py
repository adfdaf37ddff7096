"""
Payload validation behind a small pluggable interface.

The validator in use is named by settings.CARDS_PAYLOAD_VALIDATOR; the
default checks payloads against the form's JSON Schema with jsonschema.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

import jsonschema
from django.conf import settings
from django.utils.module_loading import import_string
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for
from referencing import Registry, Resource
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT202012

from src.cards.exceptions import InvalidSchema

DEFAULT_DRAFT = jsonschema.Draft202012Validator


@dataclass(frozen=True)
class PayloadValidationResult:
    valid: bool
    errors: dict[str, list[str]] = field(default_factory=dict)


def _refs(node):
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield ref
        for value in node.values():
            yield from _refs(value)
    elif isinstance(node, list):
        for value in node:
            yield from _refs(value)


def _json_path(error) -> str:
    path = "$"
    for part in error.absolute_path:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return path


class JsonSchemaPayloadValidator:
    def check_schema(self, schema) -> None:
        if not isinstance(schema, dict):
            raise InvalidSchema("schema_definition must be a JSON object")
        cls = validator_for(schema, default=DEFAULT_DRAFT)
        try:
            cls.check_schema(schema)
        except SchemaError as exc:
            raise InvalidSchema(exc.message)
        self.check_refs(schema)

    def check_refs(self, schema: dict) -> None:
        """Every $ref must resolve locally; remote documents are never fetched."""
        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        base_uri = resource.id() or ""
        resolver = Registry().with_resource(base_uri, resource).resolver(base_uri=base_uri)
        for ref in _refs(schema):
            try:
                resolver.lookup(ref)
            except Unresolvable as exc:
                raise InvalidSchema(f"unresolvable $ref {ref!r}: {exc}")

    def validate(self, schema: dict, payload) -> PayloadValidationResult:
        cls = validator_for(schema, default=DEFAULT_DRAFT)
        validator = cls(schema, format_checker=cls.FORMAT_CHECKER)

        try:
            found = sorted(validator.iter_errors(payload), key=lambda e: list(map(str, e.absolute_path)))
        except Unresolvable as exc:
            raise InvalidSchema(f"form schema reference cannot be resolved: {exc}")

        errors: dict[str, list[str]] = {}
        for error in found:
            errors.setdefault(_json_path(error), []).append(error.message)
        return PayloadValidationResult(valid=not errors, errors=errors)


@lru_cache(maxsize=None)
def _validator_class(dotted_path: str):
    return import_string(dotted_path)


def get_payload_validator():
    return _validator_class(settings.CARDS_PAYLOAD_VALIDATOR)()
