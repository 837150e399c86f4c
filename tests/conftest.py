"""
Pytest configuration for trickery tests.

Registers the ``e2e`` marker and shared fakes. End-to-end tests hit a real
endpoint and only run with ``--run-e2e``.
"""

from __future__ import annotations

import json
from typing import List, Optional, Sequence, Union

import pytest

from trickery import CompletionRequest, CompletionResponse, Tool, ToolCall, ToolDefinition, UsageStats


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run end-to-end tests with real API calls",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "e2e: mark test as end-to-end (requires real API keys, use --run-e2e to run)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip e2e tests unless --run-e2e is passed."""
    if config.getoption("--run-e2e"):
        return

    skip_e2e = pytest.mark.skip(reason="Need --run-e2e option to run end-to-end tests")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


# ---------------------------------------------------------------------------
# Shared fakes
# ---------------------------------------------------------------------------

Scripted = Union[str, Sequence[ToolCall], Exception, CompletionResponse]


class FakeProvider:
    """
    Provider stub that replays scripted responses.

    Each script entry is a final text (``str``), a list of ``ToolCall`` to
    request, an exception to raise, or a ready-made ``CompletionResponse``.
    The last entry repeats once the script is exhausted.
    """

    name = "fake"

    def __init__(self, script: List[Scripted], usage: Optional[UsageStats] = None):
        self.script = script
        self.usage = usage or UsageStats(prompt_tokens=10, completion_tokens=5, total_tokens=15)
        self.requests: List[CompletionRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        entry = self.script[min(len(self.requests), len(self.script)) - 1]
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, CompletionResponse):
            return entry
        if isinstance(entry, str):
            return CompletionResponse(content=entry, finish_reason="stop", usage=self.usage)
        return CompletionResponse(
            content=None, tool_calls=list(entry), finish_reason="tool_calls", usage=self.usage
        )

    async def acomplete(self, request: CompletionRequest) -> CompletionResponse:
        return self.complete(request)


class EchoTool(Tool):
    """Returns its JSON-decoded argument verbatim."""

    name = "echo"

    def definition(self) -> ToolDefinition:
        return ToolDefinition.function("echo", "Echo the input back", {"type": "string"})

    def execute(self, arguments: str) -> str:
        return str(json.loads(arguments))


@pytest.fixture
def echo_tool() -> EchoTool:
    return EchoTool()


@pytest.fixture
def make_provider():
    """Factory fixture: ``make_provider(["done"])`` -> FakeProvider."""

    def _make(script: List[Scripted], usage: Optional[UsageStats] = None) -> FakeProvider:
        return FakeProvider(script, usage=usage)

    return _make
