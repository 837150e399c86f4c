"""
Token usage tracking for completion calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class UsageStats:
    """
    Token counts reported by the provider for a single completion call.

    Providers that omit usage yield an all-zero instance.

    Attributes:
        prompt_tokens: Number of tokens in the prompt/input.
        completion_tokens: Number of tokens in the completion/output.
        total_tokens: Total tokens used as reported by the provider.
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class LoopUsage:
    """
    Aggregates usage stats across the iterations of one agent run.

    Attributes:
        total_prompt_tokens: Cumulative prompt tokens across all calls.
        total_completion_tokens: Cumulative completion tokens across all calls.
        total_tokens: Cumulative total tokens across all calls.
        tool_usage: Mapping of tool name to number of executions.
        calls: UsageStats for each provider call, in call order.
    """

    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    total_tokens: int = 0
    tool_usage: Dict[str, int] = field(default_factory=dict)
    calls: List[UsageStats] = field(default_factory=list)

    def add_usage(self, stats: UsageStats) -> None:
        """Add usage stats from a single provider call."""
        self.total_prompt_tokens += stats.prompt_tokens
        self.total_completion_tokens += stats.completion_tokens
        self.total_tokens += stats.total_tokens
        self.calls.append(stats)

    def record_tool(self, tool_name: str) -> None:
        self.tool_usage[tool_name] = self.tool_usage.get(tool_name, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for logging/display."""
        return {
            "total_tokens": self.total_tokens,
            "total_prompt_tokens": self.total_prompt_tokens,
            "total_completion_tokens": self.total_completion_tokens,
            "tool_usage": dict(self.tool_usage),
            "calls": len(self.calls),
        }

    def __str__(self) -> str:
        lines = [
            "\n" + "=" * 60,
            "📊 Usage Summary",
            "=" * 60,
            f"Total Tokens: {self.total_tokens:,}",
            f"  - Prompt: {self.total_prompt_tokens:,}",
            f"  - Completion: {self.total_completion_tokens:,}",
            f"Provider calls: {len(self.calls)}",
        ]
        if self.tool_usage:
            lines.append("\nTool Usage:")
            for tool_name, count in sorted(self.tool_usage.items(), key=lambda x: -x[1]):
                lines.append(f"  - {tool_name}: {count} calls")
        lines.append("=" * 60 + "\n")
        return "\n".join(lines)


__all__ = ["UsageStats", "LoopUsage"]
