"""
Canonical module schema.

Module schemas are JSON-Schema shaped documents describing the content a
module edits. ``JsonSchema`` is their typed form; it is only ever built from
the canonical JSON representation (``from_json`` / ``loads``) so that every
schema, whatever its source file format, goes through the same field rules.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .exceptions import SchemaFormatError

Number = Union[int, float]

JSON_TYPES = frozenset({'string', 'number', 'integer', 'boolean', 'object', 'array', 'null'})


def _json_type(value: Any) -> str:
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, list):
        return 'array'
    if isinstance(value, dict):
        return 'object'
    return type(value).__name__


@dataclass(frozen=True)
class JsonSchema:
    """Typed JSON Schema node."""

    type: Optional[Union[str, Tuple[str, ...]]] = None
    title: Optional[str] = None
    description: Optional[str] = None
    format: Optional[str] = None
    properties: Optional[Dict[str, 'JsonSchema']] = None
    required: Optional[Tuple[str, ...]] = None
    items: Optional['JsonSchema'] = None
    enum: Optional[Tuple[Any, ...]] = None
    minimum: Optional[Number] = None
    maximum: Optional[Number] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    pattern: Optional[str] = None
    additional_properties: Optional[Union[bool, 'JsonSchema']] = None
    # Keywords without a typed field, kept verbatim.
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, value: Any, path: str = '$') -> 'JsonSchema':
        """
        Build a schema from its decoded JSON value.

        Args:
            value: The JSON object (as returned by ``json.loads``)
            path: JSON path of ``value``, used in error messages

        Raises:
            SchemaFormatError: If a keyword has the wrong shape
        """
        if not isinstance(value, dict):
            raise SchemaFormatError(path, f"expected an object, got {_json_type(value)}")

        fields = {}
        extra = {}
        for keyword, item in value.items():
            entry = _KEYWORDS.get(keyword)
            if entry is None:
                extra[keyword] = item
                continue
            attribute, decode = entry
            fields[attribute] = decode(item, f"{path}.{keyword}")

        return cls(extra=extra, **fields)

    @classmethod
    def loads(cls, text: Union[str, bytes]) -> 'JsonSchema':
        """Decode a schema from canonical JSON text."""
        try:
            value = json.loads(text)
        except ValueError as e:
            raise SchemaFormatError('$', f"invalid JSON: {e}") from e
        return cls.from_json(value)

    def to_json(self) -> Dict[str, Any]:
        """Return the canonical JSON form, omitting unset keywords."""
        result: Dict[str, Any] = {}
        for keyword, (attribute, _) in _KEYWORDS.items():
            value = getattr(self, attribute)
            if value is None:
                continue
            if isinstance(value, JsonSchema):
                value = value.to_json()
            elif attribute == 'properties':
                value = {name: schema.to_json() for name, schema in value.items()}
            elif isinstance(value, tuple):
                value = list(value)
            result[keyword] = value
        result.update(self.extra)
        return result

    def dumps(self) -> str:
        return json.dumps(self.to_json())

    def property_names(self) -> Tuple[str, ...]:
        return tuple(self.properties or ())


def _decode_type(value, path):
    if isinstance(value, str):
        if value not in JSON_TYPES:
            raise SchemaFormatError(path, f"unknown type {value!r}")
        return value
    if isinstance(value, list) and value:
        types = tuple(_decode_type(item, f"{path}[{i}]") for i, item in enumerate(value))
        if len(set(types)) != len(types):
            raise SchemaFormatError(path, "duplicate types")
        return types
    raise SchemaFormatError(path, f"expected a type name or a non-empty array, got {_json_type(value)}")


def _decode_string(value, path):
    if not isinstance(value, str):
        raise SchemaFormatError(path, f"expected a string, got {_json_type(value)}")
    return value


def _decode_schema(value, path):
    return JsonSchema.from_json(value, path)


def _decode_properties(value, path):
    if not isinstance(value, dict):
        raise SchemaFormatError(path, f"expected an object, got {_json_type(value)}")
    return {name: JsonSchema.from_json(item, f"{path}.{name}") for name, item in value.items()}


def _decode_required(value, path):
    if not isinstance(value, list):
        raise SchemaFormatError(path, f"expected an array, got {_json_type(value)}")
    names = tuple(_decode_string(item, f"{path}[{i}]") for i, item in enumerate(value))
    if len(set(names)) != len(names):
        raise SchemaFormatError(path, "duplicate field names")
    return names


def _decode_enum(value, path):
    if not isinstance(value, list):
        raise SchemaFormatError(path, f"expected an array, got {_json_type(value)}")
    return tuple(value)


def _decode_number(value, path):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaFormatError(path, f"expected a number, got {_json_type(value)}")
    return value


def _decode_count(value, path):
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaFormatError(path, f"expected a non-negative integer, got {_json_type(value)}")
    if value < 0:
        raise SchemaFormatError(path, "expected a non-negative integer")
    return value


def _decode_pattern(value, path):
    pattern = _decode_string(value, path)
    try:
        re.compile(pattern)
    except re.error as e:
        raise SchemaFormatError(path, f"invalid pattern: {e}") from e
    return pattern


def _decode_additional_properties(value, path):
    if isinstance(value, bool):
        return value
    return JsonSchema.from_json(value, path)


# Canonical keyword -> (JsonSchema attribute, decoder). Order is the output order of to_json().
_KEYWORDS: Dict[str, Tuple[str, Callable[[Any, str], Any]]] = {
    'type': ('type', _decode_type),
    'title': ('title', _decode_string),
    'description': ('description', _decode_string),
    'format': ('format', _decode_string),
    'properties': ('properties', _decode_properties),
    'required': ('required', _decode_required),
    'items': ('items', _decode_schema),
    'enum': ('enum', _decode_enum),
    'minimum': ('minimum', _decode_number),
    'maximum': ('maximum', _decode_number),
    'minLength': ('min_length', _decode_count),
    'maxLength': ('max_length', _decode_count),
    'minItems': ('min_items', _decode_count),
    'maxItems': ('max_items', _decode_count),
    'pattern': ('pattern', _decode_pattern),
    'additionalProperties': ('additional_properties', _decode_additional_properties),
}
