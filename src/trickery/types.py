"""
Core message and request types for the tool-calling loop.

These primitives are provider-agnostic and are reused across the provider
adapter, the agent loop, and tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from .usage import LoopUsage, UsageStats

JsonSchema = Dict[str, Any]


class Role(str, Enum):
    """Conversation role."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ReasoningLevel(str, Enum):
    """Effort hint for models with a variable deliberation budget."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: str) -> "ReasoningLevel":
        """Parse a level name case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid reasoning level: {value}. Use: low, medium, high"
            ) from None


@dataclass(frozen=True)
class TextPart:
    """Inline text content."""

    text: str


@dataclass(frozen=True)
class ImagePart:
    """
    Reference to an image: an http(s) URL or an already-encoded data URL.

    ``detail`` is an optional provider hint such as ``"auto"``, ``"low"`` or
    ``"high"``.
    """

    url: str
    detail: Optional[str] = None


ContentPart = Union[TextPart, ImagePart]


@dataclass(frozen=True)
class ToolCall:
    """
    A model-issued request to invoke a tool.

    ``arguments`` is the raw JSON string emitted by the model. The loop never
    parses it; each tool validates its own arguments.
    """

    id: str
    name: str
    arguments: str
    call_type: str = "function"


@dataclass(frozen=True)
class ToolDefinition:
    """JSON-schema description of a tool, advertised to the model."""

    name: str
    description: str
    parameters: JsonSchema
    tool_type: str = "function"

    @classmethod
    def function(cls, name: str, description: str, parameters: JsonSchema) -> "ToolDefinition":
        return cls(name=name, description=description, parameters=parameters)


@dataclass
class Message:
    """
    One turn in the conversation.

    ``content`` is an ordered list of parts and may be ``None`` for assistant
    turns that only carry tool calls. ``tool_call_id`` is set only on
    tool-result messages and names the ``ToolCall.id`` being answered.
    """

    role: Role
    content: Optional[List[ContentPart]] = None
    tool_calls: Optional[List[ToolCall]] = None
    tool_call_id: Optional[str] = None

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(role=Role.SYSTEM, content=[TextPart(text)])

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=Role.USER, content=[TextPart(text)])

    @classmethod
    def user_with_parts(cls, parts: Sequence[ContentPart]) -> "Message":
        """Multimodal user message; parts keep their order."""
        return cls(role=Role.USER, content=list(parts))

    @classmethod
    def assistant(cls, text: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=[TextPart(text)])

    @classmethod
    def assistant_with_tool_calls(cls, calls: Sequence[ToolCall]) -> "Message":
        return cls(role=Role.ASSISTANT, content=None, tool_calls=list(calls))

    @classmethod
    def tool_result(cls, call_id: str, text: str) -> "Message":
        return cls(role=Role.TOOL, content=[TextPart(text)], tool_call_id=call_id)

    @property
    def text(self) -> str:
        """Concatenated text parts (images are skipped)."""
        if not self.content:
            return ""
        return "".join(part.text for part in self.content if isinstance(part, TextPart))

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain-JSON-safe representation for logging or debugging."""
        content: Optional[List[Dict[str, Any]]] = None
        if self.content is not None:
            content = []
            for part in self.content:
                if isinstance(part, TextPart):
                    content.append({"type": "text", "text": part.text})
                else:
                    content.append({"type": "image_url", "url": part.url, "detail": part.detail})
        return {
            "role": self.role.value,
            "content": content,
            "tool_calls": (
                [{"id": c.id, "name": c.name, "arguments": c.arguments} for c in self.tool_calls]
                if self.tool_calls is not None
                else None
            ),
            "tool_call_id": self.tool_call_id,
        }


@dataclass(frozen=True)
class CompletionRequest:
    """
    Provider-neutral completion request.

    Requests are values: the ``with_*`` helpers return modified copies.
    """

    messages: List[Message]
    model: Optional[str] = None
    reasoning_level: Optional[ReasoningLevel] = None
    tools: Optional[List[ToolDefinition]] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None

    def with_model(self, model: str) -> "CompletionRequest":
        return replace(self, model=model)

    def with_reasoning_level(self, level: ReasoningLevel) -> "CompletionRequest":
        return replace(self, reasoning_level=level)

    def with_tools(self, tools: Sequence[ToolDefinition]) -> "CompletionRequest":
        return replace(self, tools=list(tools))

    def with_max_tokens(self, max_tokens: int) -> "CompletionRequest":
        return replace(self, max_tokens=max_tokens)

    def with_temperature(self, temperature: float) -> "CompletionRequest":
        return replace(self, temperature=temperature)


@dataclass(frozen=True)
class CompletionResponse:
    """Decoded first choice of a completion, plus token usage."""

    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None
    finish_reason: str = ""
    usage: UsageStats = field(default_factory=UsageStats)


@dataclass(frozen=True)
class ExecutedToolCall:
    """Audit record of one tool call the loop executed."""

    id: str
    name: str
    arguments: str
    result: str


@dataclass
class LoopResult:
    """
    Outcome of a successful agent run.

    Attributes:
        content: Final assistant text (empty string if the model sent none).
        iterations: Number of provider calls made.
        tool_calls_executed: Executed tool calls in execution order.
        messages: Full conversation history at termination.
        usage: Token usage summed across every provider call.
    """

    content: str
    iterations: int
    tool_calls_executed: List[ExecutedToolCall] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)
    usage: LoopUsage = field(default_factory=LoopUsage)


__all__ = [
    "Role",
    "ReasoningLevel",
    "TextPart",
    "ImagePart",
    "ContentPart",
    "ToolCall",
    "ToolDefinition",
    "Message",
    "CompletionRequest",
    "CompletionResponse",
    "ExecutedToolCall",
    "LoopResult",
    "JsonSchema",
]
