"""
Operation argument validation

Each operation declares its argument shape as an ArgumentSchema (field name ->
FieldSpec). The schema renders the JSON Schema advertised to MCP clients, and
the same document is enforced with jsonschema before anything is dispatched
upstream.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from jsonschema import Draft202012Validator, FormatChecker
from jsonschema.exceptions import ValidationError

from .errors import invalid_argument

UUID_PATTERN = r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$'

_JSON_TYPES = frozenset({"string", "integer", "number", "boolean", "array", "object"})

_UUID_MESSAGE = 'invalid UUID format. Please provide a valid UUID (e.g., "123e4567-e89b-12d3-a456-426614174000")'


@dataclass
class FieldSpec:
    """Declared shape of a single operation argument."""
    type: str
    required: bool = False
    description: str = ""
    enum: Optional[Sequence[Any]] = None
    pattern: Optional[str] = None
    format: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    items: Optional["FieldSpec"] = None
    default: Any = None

    def __post_init__(self):
        if self.type not in _JSON_TYPES:
            raise ValueError(f"Unsupported field type: {self.type}")

    def to_json_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        if self.pattern is not None:
            schema["pattern"] = self.pattern
        if self.format is not None:
            schema["format"] = self.format
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        if self.min_length is not None:
            schema["minLength"] = self.min_length
        if self.items is not None:
            schema["items"] = self.items.to_json_schema()
        if self.default is not None:
            schema["default"] = self.default
        return schema


def uuid_field(description: str, required: bool = True) -> FieldSpec:
    # "$" in a pattern also matches before a trailing newline; the uuid format closes that gap
    return FieldSpec(type="string", required=required, description=description,
                     pattern=UUID_PATTERN, format="uuid")


@dataclass
class ArgumentSchema:
    fields: Dict[str, FieldSpec] = field(default_factory=dict)
    _validator: Optional[Draft202012Validator] = field(default=None, init=False, repr=False, compare=False)

    def to_json_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {name: spec.to_json_schema() for name, spec in self.fields.items()},
            "required": [name for name, spec in self.fields.items() if spec.required],
            "additionalProperties": False,
        }

    def validator(self) -> Draft202012Validator:
        if self._validator is None:
            schema = self.to_json_schema()
            Draft202012Validator.check_schema(schema)
            self._validator = Draft202012Validator(schema, format_checker=FormatChecker())
        return self._validator


def _field_label(error: ValidationError) -> str:
    label = ""
    for part in error.absolute_path:
        label += f"[{part}]" if isinstance(part, int) else (f".{part}" if label else str(part))
    return label


def _describe(error: ValidationError, schema: ArgumentSchema) -> List[str]:
    label = _field_label(error)
    keyword = error.validator

    if keyword == "required":
        return [f"{name}: required argument is missing"
                for name in error.validator_value if name not in error.instance]
    if keyword == "additionalProperties":
        return [f"{name}: unknown argument"
                for name in error.instance if name not in schema.fields]
    if keyword == "type":
        return [f"{label}: expected {error.validator_value} but received {type(error.instance).__name__}"]
    if keyword == "enum":
        allowed = ", ".join(repr(v) for v in error.validator_value)
        return [f"{label}: must be one of {allowed}"]
    if keyword == "minLength":
        if error.validator_value == 1:
            return [f"{label}: cannot be empty"]
        return [f"{label}: must be at least {error.validator_value} characters"]
    if keyword == "minimum":
        return [f"{label}: must be >= {error.validator_value}"]
    if keyword == "maximum":
        return [f"{label}: must be <= {error.validator_value}"]
    if keyword in ("pattern", "format"):
        if error.schema.get("format") == "uuid":
            return [f"{label}: {_UUID_MESSAGE}"]
        if keyword == "pattern":
            return [f"{label}: does not match pattern {error.validator_value}"]
        return [f"{label}: is not a valid {error.validator_value}"]
    return [f"{label}: {error.message}" if label else error.message]


def validate_arguments(schema: ArgumentSchema, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Validate invocation arguments against an operation's declared shape.

    Arguments whose value is None are treated as absent.

    Args:
        schema: The operation's ArgumentSchema
        arguments: Caller-supplied arguments (None is treated as empty)

    Returns:
        A new dict of validated arguments with defaults filled in

    Raises:
        GatewayError: InvalidArgument listing every offending field
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise invalid_argument(f"Validation error: arguments must be an object, got {type(arguments).__name__}")

    present = {name: value for name, value in arguments.items() if value is not None}

    messages: List[str] = []
    for error in schema.validator().iter_errors(present):
        messages.extend(_describe(error, schema))
    if messages:
        # one line per offending field, in the order they were found
        raise invalid_argument(f"Validation error: {', '.join(dict.fromkeys(messages))}")

    validated = dict(present)
    for name, spec in schema.fields.items():
        if name not in validated and spec.default is not None:
            validated[name] = copy.deepcopy(spec.default)
    return validated
