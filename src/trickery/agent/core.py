"""
Provider-agnostic agent loop for native tool calling.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Sequence

from ..exceptions import MaxIterationsExceededError, ToolExecutionFailedError
from ..providers.base import Provider
from ..tools import ToolRegistry
from ..types import (
    CompletionRequest,
    CompletionResponse,
    ExecutedToolCall,
    LoopResult,
    Message,
    ReasoningLevel,
    ToolCall,
    ToolDefinition,
)
from ..usage import LoopUsage
from .config import LoopConfig

logger = logging.getLogger(__name__)


@dataclass
class _RunState:
    """Conversation state owned by a single run."""

    messages: List[Message]
    tools: List[ToolDefinition]
    iteration: int = 0
    executed: List[ExecutedToolCall] = field(default_factory=list)
    usage: LoopUsage = field(default_factory=LoopUsage)


class AgentLoop:
    """
    Drives the multi-turn tool-calling protocol to a final answer.

    Each iteration sends the full history to the provider. If the model asks
    for tools, one assistant message carrying every call is appended, then the
    calls are executed one at a time in the order returned, each followed by
    its tool-result message. The run ends when a response carries no tool
    calls. Any provider or tool failure aborts the run and propagates unchanged.

    A single ``AgentLoop`` may serve concurrent runs: history is local to each
    run and the registry is frozen when the first run starts.

    Example:
        >>> loop = AgentLoop(OpenAIProvider.from_env(), ToolRegistry.with_builtins())
        >>> result = loop.run(
        ...     [Message.system("You are helpful."), Message.user("What time is it?")],
        ...     ["current_time"],
        ... )
        >>> result.iterations
        2
    """

    def __init__(
        self,
        provider: Provider,
        registry: ToolRegistry,
        config: Optional[LoopConfig] = None,
    ):
        self.provider = provider
        self.registry = registry
        self.config = config or LoopConfig()

    def _with_config(self, **changes: Any) -> "AgentLoop":
        return AgentLoop(self.provider, self.registry, replace(self.config, **changes))

    def with_max_iterations(self, max_iterations: int) -> "AgentLoop":
        return self._with_config(max_iterations=max_iterations)

    def with_model(self, model: str) -> "AgentLoop":
        return self._with_config(model=model)

    def with_reasoning_level(self, level: ReasoningLevel) -> "AgentLoop":
        return self._with_config(reasoning_level=level)

    def with_max_tokens(self, max_tokens: int) -> "AgentLoop":
        return self._with_config(max_tokens=max_tokens)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _call_hook(self, hook_name: str, *args: Any) -> None:
        """Call a hook if configured; a failing hook is logged and ignored."""
        if not self.config.hooks or hook_name not in self.config.hooks:
            return
        try:
            self.config.hooks[hook_name](*args)
        except Exception:  # noqa: BLE001
            logger.warning("Hook '%s' raised; ignoring", hook_name, exc_info=True)

    # ------------------------------------------------------------------
    # State machine steps shared by run() and arun()
    # ------------------------------------------------------------------

    def _start(self, messages: Sequence[Message], tool_names: Sequence[str]) -> _RunState:
        self.registry.freeze()
        names = list(tool_names)
        if names:
            tools = self.registry.definitions_for(names)
            missing = [n for n in names if n not in self.registry]
            if missing:
                logger.warning("Ignoring unknown tool(s): %s", ", ".join(missing))
        else:
            tools = self.registry.definitions()

        state = _RunState(messages=list(messages), tools=tools)
        self._call_hook("on_run_start", list(state.messages))
        return state

    def _next_request(self, state: _RunState) -> CompletionRequest:
        """Advance the iteration counter and build the request for it."""
        state.iteration += 1
        if state.iteration > self.config.max_iterations:
            logger.debug("Iteration ceiling (%d) reached", self.config.max_iterations)
            raise MaxIterationsExceededError(self.config.max_iterations)

        logger.debug(
            "Iteration %d: %d messages, %d tools",
            state.iteration,
            len(state.messages),
            len(state.tools),
        )
        self._call_hook("on_iteration_start", state.iteration, list(state.messages))

        request = CompletionRequest(
            messages=list(state.messages),
            model=self.config.model,
            reasoning_level=self.config.reasoning_level,
            tools=list(state.tools) if state.tools else None,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        return request

    def _accept_response(self, state: _RunState, response: CompletionResponse) -> List[ToolCall]:
        """Record the response; return the tool calls still to execute (empty when done)."""
        state.usage.add_usage(response.usage)
        self._call_hook("on_llm_end", response)
        if not response.tool_calls:
            return []
        state.messages.append(Message.assistant_with_tool_calls(response.tool_calls))
        return list(response.tool_calls)

    def _record_tool_result(
        self, state: _RunState, call: ToolCall, result: str, duration: float
    ) -> None:
        logger.debug("Tool '%s' (%s) finished in %.3fs", call.name, call.id, duration)
        state.messages.append(Message.tool_result(call.id, result))
        state.executed.append(
            ExecutedToolCall(id=call.id, name=call.name, arguments=call.arguments, result=result)
        )
        state.usage.record_tool(call.name)
        self._call_hook("on_tool_end", call, result, duration)

    def _finish(self, state: _RunState, response: CompletionResponse) -> LoopResult:
        result = LoopResult(
            content=response.content or "",
            iterations=state.iteration,
            tool_calls_executed=state.executed,
            messages=state.messages,
            usage=state.usage,
        )
        logger.debug(
            "Run finished after %d iteration(s), %d tool call(s)",
            result.iterations,
            len(result.tool_calls_executed),
        )
        self._call_hook("on_run_end", result)
        return result

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def run(self, messages: Sequence[Message], tool_names: Sequence[str] = ()) -> LoopResult:
        """
        Execute the loop until the model answers without tool calls.

        Args:
            messages: Initial conversation, typically a system instruction and a user request.
                The caller's list is copied, never mutated.
            tool_names: Tools to offer. Empty means every registered tool.

        Returns:
            LoopResult with the final text, iteration count and tool-call audit trail.

        Raises:
            ProviderError: Any provider failure, unchanged.
            ToolError: Any tool failure, unchanged.
            MaxIterationsExceededError: If the ceiling is hit.
        """
        state = self._start(messages, tool_names)
        while True:
            request = self._next_request(state)
            response = self.provider.complete(request)
            tool_calls = self._accept_response(state, response)
            if not tool_calls:
                return self._finish(state, response)

            for call in tool_calls:
                self._call_hook("on_tool_start", call)
                start = time.perf_counter()
                try:
                    result = self._execute_tool(call)
                except Exception as exc:
                    self._call_hook("on_tool_error", call, exc)
                    raise
                self._record_tool_result(state, call, result, time.perf_counter() - start)

    async def arun(
        self, messages: Sequence[Message], tool_names: Sequence[str] = ()
    ) -> LoopResult:
        """
        Async version of run().

        Provider calls are awaited through ``acomplete``. Tool calls are still
        executed strictly one after another.
        """
        state = self._start(messages, tool_names)
        while True:
            request = self._next_request(state)
            response = await self.provider.acomplete(request)
            tool_calls = self._accept_response(state, response)
            if not tool_calls:
                return self._finish(state, response)

            for call in tool_calls:
                self._call_hook("on_tool_start", call)
                start = time.perf_counter()
                try:
                    result = await self._aexecute_tool(call)
                except Exception as exc:
                    self._call_hook("on_tool_error", call, exc)
                    raise
                self._record_tool_result(state, call, result, time.perf_counter() - start)

    # ------------------------------------------------------------------
    # Tool execution
    # ------------------------------------------------------------------

    def _execute_tool(self, call: ToolCall) -> str:
        """Run one tool call, honouring ``tool_timeout_seconds``."""
        timeout = self.config.tool_timeout_seconds
        if timeout is None:
            return self.registry.execute(call.name, call.arguments)

        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self.registry.execute, call.name, call.arguments)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            future.cancel()
            raise ToolExecutionFailedError(call.name, f"timed out after {timeout} seconds")
        finally:
            executor.shutdown(wait=False)

    async def _aexecute_tool(self, call: ToolCall) -> str:
        timeout = self.config.tool_timeout_seconds
        if timeout is None:
            return await self.registry.aexecute(call.name, call.arguments)
        try:
            return await asyncio.wait_for(
                self.registry.aexecute(call.name, call.arguments), timeout=timeout
            )
        except asyncio.TimeoutError:
            raise ToolExecutionFailedError(
                call.name, f"timed out after {timeout} seconds"
            ) from None


__all__ = ["AgentLoop"]
