"""
System module definitions.

Definitions are written in YAML for readability, but the schema they carry is
only defined for its canonical JSON form. ``decode_module`` therefore forces a
round-trip: YAML -> plain Python tree -> JSON text -> typed definition, so
the final value always comes out of the JSON decoder.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import yaml

from .exceptions import DecodeError, ModuleValidationError, SchemaFormatError
from .identifiers import validate_slug
from .schema import JsonSchema

logger = logging.getLogger(__name__)


class DefinitionLoader(yaml.SafeLoader):
    """
    SafeLoader that only reads true/false as booleans.

    YAML 1.1 also treats yes/no/on/off as booleans, which would turn a
    property named ``no`` or an enum value ``on`` into a bool.
    """


DefinitionLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != 'tag:yaml.org,2002:bool']
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
DefinitionLoader.add_implicit_resolver(
    'tag:yaml.org,2002:bool',
    re.compile(r'^(?:true|True|TRUE|false|False|FALSE)$'),
    list('tTfF'),
)


def _optional_string(mapping: Dict[str, Any], key: str) -> Any:
    """Absent and null values decode to an empty string."""
    value = mapping.get(key)
    return '' if value is None else value


def _optional_schema(mapping: Dict[str, Any]) -> Any:
    value = mapping.get('schema')
    return {} if value is None else value


class DecodeStage:
    """Steps of ``decode_module``, reported by ``DecodeError.stage``."""
    PARSE = 'parse'    # YAML source -> generic tree
    ENCODE = 'encode'  # generic tree -> canonical JSON text
    TYPED = 'typed'    # canonical JSON text -> ModuleDefinition


@dataclass(frozen=True)
class ModuleUi:
    """UI descriptor of a module."""

    # ID of the ui component to render.
    component: str = ''
    # Parameters of the ui component.
    params: Optional[Dict[str, Any]] = None
    # Optional field of the content where the ui writes. Empty passes through.
    target: str = ''

    @classmethod
    def from_json(cls, value: Any, path: str = '$.ui') -> 'ModuleUi':
        if value is None:
            return cls()
        if not isinstance(value, dict):
            raise SchemaFormatError(path, "expected an object")

        component = _optional_string(value, 'component')
        target = _optional_string(value, 'target')
        params = value.get('params')
        if not isinstance(component, str):
            raise SchemaFormatError(f"{path}.component", "expected a string")
        if not isinstance(target, str):
            raise SchemaFormatError(f"{path}.target", "expected a string")
        if params is not None and not isinstance(params, dict):
            raise SchemaFormatError(f"{path}.params", "expected an object")

        return cls(component=component, params=params, target=target)

    def to_json(self) -> Dict[str, Any]:
        return {
            'component': self.component,
            'params': self.params,
            'target': self.target,
        }


@dataclass(frozen=True)
class ModuleDefinition:
    """
    In-memory representation of a system module.

    ``namespace`` and ``module_id`` identify the module across all of its
    versions; the version itself is supplied when the definition is loaded.
    """

    module_id: str
    namespace: str
    description: str = ''
    schema: JsonSchema = field(default_factory=JsonSchema)
    ui: ModuleUi = field(default_factory=ModuleUi)

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> 'ModuleDefinition':
        """
        Decode a definition from its canonical JSON text.

        Raises:
            ValueError: If the text is not valid JSON
            SchemaFormatError: If the schema or ui blocks are malformed
            ModuleValidationError: If the module identity is missing or invalid
        """
        payload = json.loads(text)
        if not isinstance(payload, dict):
            raise SchemaFormatError('$', "module definition must be an object")

        description = _optional_string(payload, 'description')
        if not isinstance(description, str):
            raise SchemaFormatError('$.description', "expected a string")

        return cls(
            module_id=validate_slug(payload.get('id'), 'id'),
            namespace=validate_slug(payload.get('namespace'), 'namespace'),
            description=description,
            schema=JsonSchema.from_json(_optional_schema(payload), '$.schema'),
            ui=ModuleUi.from_json(payload.get('ui')),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            'id': self.module_id,
            'namespace': self.namespace,
            'description': self.description,
            'schema': self.schema.to_json(),
            'ui': self.ui.to_json(),
        }

    def target_is_declared(self) -> bool:
        """Whether the ui target is empty or names a top-level schema property."""
        return not self.ui.target or self.ui.target in self.schema.property_names()

    def __str__(self) -> str:
        return f"{self.namespace}:{self.module_id}"


def decode_module(raw: Union[str, bytes], source: Optional[str] = None) -> ModuleDefinition:
    """
    Decode a YAML module definition.

    Args:
        raw: The YAML source
        source: Optional name of the source (file path), used in errors

    Returns:
        The typed module definition

    Raises:
        DecodeError: If any decoding stage fails; no partial definition is returned
    """
    try:
        tree = yaml.load(raw, Loader=DefinitionLoader)
    except (yaml.YAMLError, RecursionError) as e:
        raise DecodeError(DecodeStage.PARSE, e, source) from e

    try:
        canonical = json.dumps(tree, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as e:
        raise DecodeError(DecodeStage.ENCODE, e, source) from e

    try:
        definition = ModuleDefinition.from_json(canonical)
    except (ValueError, ModuleValidationError, RecursionError) as e:
        raise DecodeError(DecodeStage.TYPED, e, source) from e

    logger.debug(f"Decoded module definition {definition} from {source or '<memory>'}")
    return definition
