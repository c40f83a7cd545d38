"""Tool definitions and results for the embedded MCP server."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

PropertyType = Literal["string", "number", "integer", "boolean"]


def matches_type(value: object, type_name: str) -> bool:
    """Check a JSON value against a schema type name.

    ``bool`` is a subclass of ``int`` in Python, so booleans are rejected
    explicitly for the numeric types.
    """
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "boolean":
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if type_name == "integer":
        return isinstance(value, int)
    if type_name == "number":
        return isinstance(value, (int, float))
    return False


class PropertySchema(BaseModel):
    """Schema for a single tool parameter."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: PropertyType
    description: str
    default: Any = None
    enum: tuple[str, ...] | None = None

    @model_validator(mode="after")
    def _check_consistency(self) -> PropertySchema:
        if self.enum is not None:
            if self.type != "string":
                raise ValueError("enum is only supported for string parameters")
            if not self.enum:
                raise ValueError("enum must list at least one value")
        if self.default is not None:
            if not matches_type(self.default, self.type):
                raise ValueError(
                    f"default {self.default!r} does not match type '{self.type}'"
                )
            if self.enum is not None and self.default not in self.enum:
                raise ValueError(f"default {self.default!r} is not an allowed value")
        return self

    def to_json_schema(self) -> dict[str, Any]:
        """Return the JSON Schema fragment for this parameter."""
        schema = self.model_dump(exclude_none=True)
        if "enum" in schema:
            schema["enum"] = list(schema["enum"])
        return schema


class ToolInputSchema(BaseModel):
    """Object schema describing every parameter a tool accepts."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    type: Literal["object"] = "object"
    properties: dict[str, PropertySchema] = Field(default_factory=dict)
    required: tuple[str, ...] = ()
    additional_properties: bool = Field(default=False, alias="additionalProperties")

    @model_validator(mode="after")
    def _check_required(self) -> ToolInputSchema:
        unknown = [name for name in self.required if name not in self.properties]
        if unknown:
            raise ValueError(f"required parameters are not declared: {unknown}")
        return self

    def to_json_schema(self) -> dict[str, Any]:
        """Return the schema using JSON Schema key names."""
        return {
            "type": self.type,
            "properties": {
                name: prop.to_json_schema() for name, prop in self.properties.items()
            },
            "required": list(self.required),
            "additionalProperties": self.additional_properties,
        }


@dataclass(frozen=True)
class ToolContent:
    """Single content item returned by a tool."""

    text: str
    type: str = "text"

    def to_dict(self) -> dict[str, str]:
        """Serialize the content item."""
        return {"type": self.type, "text": self.text}


@dataclass
class ToolResult:
    """Result returned by tool execution.

    Attributes:
        content: Ordered content items produced by the tool.
        is_error: Whether the tool reported a failure.

    """

    content: list[ToolContent] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def from_text(cls, text: str) -> ToolResult:
        """Build a successful single-item text result."""
        return cls(content=[ToolContent(text=text)])

    @classmethod
    def failure(cls, message: str) -> ToolResult:
        """Build an error result with a textual description."""
        return cls(content=[ToolContent(text=f"Error: {message}")], is_error=True)

    @property
    def text(self) -> str:
        """All text content joined by newlines."""
        return "\n".join(item.text for item in self.content)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the result using protocol key names."""
        return {
            "content": [item.to_dict() for item in self.content],
            "isError": self.is_error,
        }


ToolHandler = Callable[
    [dict[str, Any]], Union[ToolResult, Awaitable[ToolResult]]
]


@dataclass(frozen=True)
class ToolDefinition:
    """Description of a tool that can be registered with the server.

    Attributes:
        name: Unique name of the tool.
        description: Human-readable description of the tool purpose.
        input_schema: Declarative schema used to validate arguments.
        handler: Callable that executes the tool logic. It receives validated,
            defaulted arguments and returns a :class:`ToolResult`, directly or
            as an awaitable.

    """

    name: str
    description: str
    input_schema: ToolInputSchema
    handler: ToolHandler = field(compare=False, repr=False)

    @property
    def required_parameters(self) -> list[str]:
        """Names of the parameters a caller must supply."""
        return list(self.input_schema.required)

    @property
    def parameter_names(self) -> list[str]:
        """Names of every declared parameter, in declaration order."""
        return list(self.input_schema.properties)

    def metadata(self) -> dict[str, Any]:
        """Return a discovery-friendly description of the tool."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema.to_json_schema(),
        }


def object_schema(
    properties: Mapping[str, PropertySchema], required: tuple[str, ...] = ()
) -> ToolInputSchema:
    """Build a closed object schema from parameter schemas."""
    return ToolInputSchema(properties=dict(properties), required=required)
