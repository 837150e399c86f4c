"""Public exports for the trickery package."""

from .agent import AgentLoop, LoopConfig
from .exceptions import (
    APIError,
    InputFileError,
    InvalidResponseError,
    LoopError,
    MaxIterationsExceededError,
    MissingCredentialError,
    ProviderError,
    RegistryFrozenError,
    ToolError,
    ToolExecutionFailedError,
    ToolInvalidArgumentsError,
    ToolNotFoundError,
    ToolValidationError,
    TransportError,
    TrickeryError,
)
from .providers import OpenAIProvider, Provider
from .tools import CurrentTimeTool, FunctionTool, Tool, ToolParameter, ToolRegistry, tool
from .types import (
    CompletionRequest,
    CompletionResponse,
    ExecutedToolCall,
    ImagePart,
    LoopResult,
    Message,
    ReasoningLevel,
    Role,
    TextPart,
    ToolCall,
    ToolDefinition,
)
from .usage import LoopUsage, UsageStats

__version__ = "0.1.0"

__all__ = [
    "AgentLoop",
    "LoopConfig",
    "LoopResult",
    "ExecutedToolCall",
    "Message",
    "Role",
    "ReasoningLevel",
    "TextPart",
    "ImagePart",
    "ToolCall",
    "ToolDefinition",
    "CompletionRequest",
    "CompletionResponse",
    "Provider",
    "OpenAIProvider",
    "Tool",
    "FunctionTool",
    "ToolParameter",
    "ToolRegistry",
    "CurrentTimeTool",
    "tool",
    # Exceptions
    "TrickeryError",
    "ProviderError",
    "MissingCredentialError",
    "TransportError",
    "APIError",
    "InvalidResponseError",
    "ToolError",
    "ToolNotFoundError",
    "ToolInvalidArgumentsError",
    "ToolExecutionFailedError",
    "ToolValidationError",
    "RegistryFrozenError",
    "LoopError",
    "MaxIterationsExceededError",
    "InputFileError",
    # Usage tracking
    "UsageStats",
    "LoopUsage",
]
