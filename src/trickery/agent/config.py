"""
Configuration options for the agent loop.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..types import ReasoningLevel

# Hook type definitions
HookCallable = Callable[..., None]
Hooks = Dict[str, HookCallable]

HOOK_NAMES = (
    "on_run_start",
    "on_iteration_start",
    "on_llm_end",
    "on_tool_start",
    "on_tool_end",
    "on_tool_error",
    "on_run_end",
)


@dataclass(frozen=True)
class LoopConfig:
    """
    Settings for one agent loop. Immutable for the lifetime of a run.

    Attributes:
        max_iterations: Provider calls allowed before the run fails with
            MaxIterationsExceededError. Default: 20.
        model: Model override; ``None`` uses the provider's default.
        reasoning_level: Effort hint for reasoning models.
        max_tokens: Cap on tokens per response.
        temperature: Sampling temperature for non-reasoning models.
        tool_timeout_seconds: Maximum execution time for each tool call.
            ``None`` means no bound. Default: None.
        hooks: Optional dict of lifecycle callbacks for observability.
               Hook errors are logged and never break the run.
               Available hooks:
               - 'on_run_start': (messages,)
               - 'on_iteration_start': (iteration, messages)
               - 'on_llm_end': (response,)
               - 'on_tool_start': (tool_call,)
               - 'on_tool_end': (tool_call, result, duration)
               - 'on_tool_error': (tool_call, error)
               - 'on_run_end': (result,)
    """

    max_iterations: int = 20
    model: Optional[str] = None
    reasoning_level: Optional[ReasoningLevel] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    tool_timeout_seconds: Optional[float] = None
    hooks: Optional[Hooks] = None

    def __post_init__(self) -> None:
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations cannot be negative, got {self.max_iterations}")
        if self.tool_timeout_seconds is not None and self.tool_timeout_seconds <= 0:
            raise ValueError(
                f"tool_timeout_seconds must be positive, got {self.tool_timeout_seconds}"
            )
        if self.hooks:
            unknown = sorted(set(self.hooks) - set(HOOK_NAMES))
            if unknown:
                raise ValueError(f"Unknown hook(s): {', '.join(unknown)}")
