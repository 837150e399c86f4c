"""
Exception hierarchy for trickery.

Every failure the agent loop can report is a subclass of ``TrickeryError`` and
carries structured attributes (status codes, tool names, limits) so callers
can decide their own retry policy by kind rather than by parsing messages.
"""

from __future__ import annotations

from typing import Optional


class TrickeryError(Exception):
    """Base exception for all trickery errors."""

    pass


# ---------------------------------------------------------------------------
# Provider errors
# ---------------------------------------------------------------------------


class ProviderError(TrickeryError):
    """Raised when a completion provider cannot complete a request."""


class MissingCredentialError(ProviderError):
    """Raised before any request when the API key is absent."""

    def __init__(self, env_var: str):
        self.env_var = env_var
        super().__init__(f"API key not found: {env_var}")


class TransportError(ProviderError):
    """Raised when the HTTP transport fails (connection refused, timeout, ...)."""

    def __init__(self, detail: str, *, timed_out: bool = False):
        self.detail = detail
        self.timed_out = timed_out
        super().__init__(f"HTTP error: {detail}")


class APIError(ProviderError):
    """Raised for a non-success HTTP status; ``message`` is the raw response body."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"API error: {status} - {message}")


class InvalidResponseError(ProviderError):
    """Raised when a success response does not have the expected shape."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invalid response: {detail}")


# ---------------------------------------------------------------------------
# Tool errors
# ---------------------------------------------------------------------------


class ToolError(TrickeryError):
    """Base class for failures while looking up or executing a tool."""

    def __init__(self, tool_name: str, detail: str, message: str):
        self.tool_name = tool_name
        self.detail = detail
        super().__init__(message)


class ToolNotFoundError(ToolError):
    """Raised when no tool is registered under the requested name."""

    def __init__(self, tool_name: str):
        super().__init__(tool_name, tool_name, f"Tool not found: {tool_name}")


class ToolInvalidArgumentsError(ToolError):
    """Raised when a tool cannot parse or validate its JSON arguments."""

    def __init__(self, tool_name: str, detail: str, suggestion: str = ""):
        self.suggestion = suggestion
        message = f"Invalid arguments for '{tool_name}': {detail}"
        if suggestion:
            message += f" ({suggestion})"
        super().__init__(tool_name, detail, message)


class ToolExecutionFailedError(ToolError):
    """Raised when tool logic fails at runtime."""

    def __init__(self, tool_name: str, detail: str, error: Optional[BaseException] = None):
        self.error = error
        super().__init__(tool_name, detail, f"Execution of '{tool_name}' failed: {detail}")


class ToolValidationError(TrickeryError):
    """Raised when a tool definition is malformed at construction time."""

    def __init__(self, tool_name: str, param_name: str, issue: str, suggestion: str = ""):
        self.tool_name = tool_name
        self.param_name = param_name
        self.issue = issue
        self.suggestion = suggestion

        message = f"\n{'='*60}\n"
        message += f"❌ Tool Validation Error: '{tool_name}'\n"
        message += f"{'='*60}\n\n"
        message += f"Parameter: {param_name}\n"
        message += f"Issue: {issue}\n"
        if suggestion:
            message += f"\n💡 Suggestion: {suggestion}\n"
        message += f"\n{'='*60}\n"

        super().__init__(message)


class RegistryFrozenError(TrickeryError):
    """Raised when registering into a registry that a run has already started using."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(
            f"Cannot register '{tool_name}': the registry is frozen once a run has started"
        )


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------


class InputFileError(TrickeryError):
    """Raised when a prompt input file exists but cannot be decoded as text."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Failed to read input file '{path}': {detail}")


# ---------------------------------------------------------------------------
# Loop errors
# ---------------------------------------------------------------------------


class LoopError(TrickeryError):
    """Base class for agent-loop level failures."""


class MaxIterationsExceededError(LoopError):
    """Raised when the loop hits its iteration ceiling without a final answer."""

    def __init__(self, max_iterations: int):
        self.max_iterations = max_iterations
        super().__init__(f"Max iterations ({max_iterations}) exceeded")


__all__ = [
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
]
