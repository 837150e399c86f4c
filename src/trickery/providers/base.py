"""
Provider abstraction for model-agnostic tool calling.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..types import CompletionRequest, CompletionResponse


@runtime_checkable
class Provider(Protocol):
    """
    Interface every completion provider must satisfy.

    A provider performs exactly one network call per ``complete``/``acomplete``
    invocation, never retries, and reports failures as ``ProviderError``
    subclasses. Implementations must be safe to share between concurrent runs
    if they are to be shared.
    """

    name: str

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Return the decoded first choice for ``request``."""
        ...

    async def acomplete(self, request: CompletionRequest) -> CompletionResponse:
        """Async version of complete()."""
        ...


__all__ = ["Provider"]
