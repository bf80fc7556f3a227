"""
Session boundary types and the in-process session implementation.
"""

from livebridge.session.local import LocalSession
from livebridge.session.types import (
    TOOLCALL_EVENT,
    LiveSession,
    SchemaType,
    SessionConfig,
    SessionProtocolError,
    ToolCall,
    ToolCallBatch,
    ToolCallListener,
    ToolDeclaration,
    ToolResponse,
    ToolResponseMessage,
    object_schema,
)

__all__ = [
    "TOOLCALL_EVENT",
    "LiveSession",
    "LocalSession",
    "SchemaType",
    "SessionConfig",
    "SessionProtocolError",
    "ToolCall",
    "ToolCallBatch",
    "ToolCallListener",
    "ToolDeclaration",
    "ToolResponse",
    "ToolResponseMessage",
    "object_schema",
]
