"""
Session-facing data types for the livebridge tool bridge.

Defines the dataclasses exchanged with a live AI session and the
``LiveSession`` Protocol so the dispatcher can work with any transport
(a websocket client, an in-process emulator, a test double) without being
tied to a specific vendor SDK.

Each type that crosses the session boundary offers ``from_wire`` and/or
``to_wire`` helpers producing the camelCase dict shapes the session speaks:

- ``ToolCallBatch.from_wire({"functionCalls": [...]})``
- ``ToolResponseMessage.to_wire()`` → ``{"functionResponses": [...]}``
- ``SessionConfig.to_wire()`` → model, generation config, system
  instruction and tool declarations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Protocol, runtime_checkable

# Name of the session event carrying inbound tool-call batches.
TOOLCALL_EVENT = "toolcall"


class SessionProtocolError(ValueError):
    """Raised when an inbound session payload does not have the expected shape."""


class SchemaType(str, Enum):
    """Schema type names understood by the session's function declarations."""

    OBJECT = "OBJECT"
    STRING = "STRING"
    NUMBER = "NUMBER"
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    ARRAY = "ARRAY"


def object_schema(
    properties: Mapping[str, tuple[SchemaType, str]],
    required: list[str] | None = None,
) -> dict[str, Any]:
    """Build an OBJECT parameter schema.

    Args:
        properties: Mapping of parameter name to ``(type, description)``.
        required: Names of the required parameters.

    Returns:
        A schema dict ready for ``ToolDeclaration.parameters``.
    """
    return {
        "type": SchemaType.OBJECT.value,
        "properties": {
            name: {"type": schema_type.value, "description": description}
            for name, (schema_type, description) in properties.items()
        },
        "required": list(required or []),
    }


@dataclass(frozen=True)
class ToolDeclaration:
    """Describes a tool the session may call.

    Attributes:
        name: The tool's unique name (used by the session to invoke it).
        description: Human-readable description shown to the model.
        parameters: OBJECT schema describing the tool's arguments.  Only
            declared to the session; never validated locally.
    """

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """Serialise to the session's function declaration format."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


@dataclass(frozen=True)
class ToolCall:
    """A single tool invocation requested by the session.

    Attributes:
        id: Opaque correlation token; echoed back in the response.
        name: Name of the tool to invoke (matched case-sensitively).
        args: Argument mapping supplied by the session.
    """

    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_wire(cls, payload: Any) -> ToolCall:
        if not isinstance(payload, Mapping):
            raise SessionProtocolError(f"Function call must be an object, got {type(payload).__name__}")
        call_id = payload.get("id")
        name = payload.get("name")
        if call_id is None or not isinstance(name, str):
            raise SessionProtocolError(f"Function call is missing 'id' or 'name': {dict(payload)!r}")
        args = payload.get("args") or {}
        if not isinstance(args, Mapping):
            raise SessionProtocolError(f"Function call {call_id!r} has non-object args")
        return cls(id=str(call_id), name=name, args=dict(args))


@dataclass(frozen=True)
class ToolCallBatch:
    """All tool calls delivered by one session ``toolcall`` event (in order)."""

    function_calls: tuple[ToolCall, ...] = ()

    @classmethod
    def from_wire(cls, payload: Any) -> ToolCallBatch:
        """Parse a ``{"functionCalls": [...]}`` payload.

        Raises:
            SessionProtocolError: If the payload or any of its calls is
                malformed.
        """
        if not isinstance(payload, Mapping):
            raise SessionProtocolError(f"Tool call payload must be an object, got {type(payload).__name__}")
        calls = payload.get("functionCalls", [])
        if not isinstance(calls, list):
            raise SessionProtocolError("'functionCalls' must be a list")
        return cls(function_calls=tuple(ToolCall.from_wire(c) for c in calls))

    def __len__(self) -> int:
        return len(self.function_calls)


@dataclass(frozen=True)
class ToolResponse:
    """The correlated result for one ``ToolCall``.

    Attributes:
        id: The correlation token of the originating call.
        output: Success payload, or ``{"error": message}`` on failure.
    """

    id: str
    output: dict[str, Any]

    @property
    def is_error(self) -> bool:
        return "error" in self.output

    def to_wire(self) -> dict[str, Any]:
        return {"id": self.id, "response": {"output": self.output}}


@dataclass(frozen=True)
class ToolResponseMessage:
    """Outbound message carrying one or more ``ToolResponse`` values."""

    function_responses: tuple[ToolResponse, ...]

    def to_wire(self) -> dict[str, Any]:
        return {"functionResponses": [r.to_wire() for r in self.function_responses]}


@dataclass(frozen=True)
class SessionConfig:
    """Options passed to ``LiveSession.configure`` once per mount.

    Attributes:
        model: Model identifier, e.g. ``"models/gemini-2.0-flash-exp"``.
        response_modalities: Output modality (``"audio"`` or ``"text"``).
        voice_name: Prebuilt voice used for audio responses.
        system_instruction: Persona/instruction text for the model.
        declarations: Function declarations available to the model.
        google_search: Whether the general-purpose search tool is enabled.
    """

    model: str
    response_modalities: str
    voice_name: str
    system_instruction: str
    declarations: tuple[ToolDeclaration, ...] = ()
    google_search: bool = True

    def to_wire(self) -> dict[str, Any]:
        tools: list[dict[str, Any]] = []
        if self.google_search:
            tools.append({"googleSearch": {}})
        tools.append({"functionDeclarations": [d.to_wire() for d in self.declarations]})
        return {
            "model": self.model,
            "generationConfig": {
                "responseModalities": self.response_modalities,
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": self.voice_name}},
                },
            },
            "systemInstruction": {"parts": [{"text": self.system_instruction}]},
            "tools": tools,
        }


# Async listener invoked with each inbound ToolCallBatch.
ToolCallListener = Callable[[ToolCallBatch], Awaitable[None]]


@runtime_checkable
class LiveSession(Protocol):
    """Protocol for the AI session the bridge is bound to.

    Any object implementing this Protocol can serve as the session.  The
    in-process implementation is ``livebridge.session.local.LocalSession``.
    """

    def configure(self, config: SessionConfig) -> None:
        """Declare model options, system instruction and tools."""
        ...

    def on(self, event: str, listener: ToolCallListener) -> None:
        """Subscribe *listener* to *event*."""
        ...

    def off(self, event: str, listener: ToolCallListener) -> None:
        """Unsubscribe *listener* from *event*."""
        ...

    def send_tool_response(self, message: ToolResponseMessage) -> None:
        """Send correlated tool responses back to the session."""
        ...
