"""
Registry mapping tool names to executable tools.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..exceptions import (
    RegistryFrozenError,
    ToolError,
    ToolExecutionFailedError,
    ToolNotFoundError,
)
from ..types import ToolDefinition
from .base import FunctionTool, ParamMetadata, Tool
from .decorators import tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Central registry for the tools an agent run may offer to the model.

    Registration is a setup phase. Once ``freeze()`` has been called (the agent
    loop does this when its first run starts) the registry is read-only and
    can be shared between concurrent runs.

    Example:
        >>> registry = ToolRegistry()
        >>> @registry.tool(description="Echo back the provided text.")
        ... def echo(text: str) -> str:
        ...     return text
        >>> registry.execute("echo", '{"text": "hi"}')
        'hi'
    """

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}
        self._frozen = False

    @classmethod
    def with_builtins(cls) -> "ToolRegistry":
        """Create a registry holding every built-in tool."""
        from .current_time import CurrentTimeTool

        registry = cls()
        registry.register(CurrentTimeTool())
        return registry

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "ToolRegistry":
        """Disallow further registration."""
        self._frozen = True
        return self

    def register(self, tool_instance: Tool) -> None:
        """
        Register a tool under its name.

        A later registration for the same name replaces the earlier one.

        Raises:
            RegistryFrozenError: If the registry has been frozen.
        """
        if self._frozen:
            raise RegistryFrozenError(tool_instance.name)
        if tool_instance.name in self._tools:
            logger.debug("Replacing registered tool '%s'", tool_instance.name)
        self._tools[tool_instance.name] = tool_instance

    def get(self, name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def available_tools(self) -> List[str]:
        """Registered tool names in registration order."""
        return list(self._tools.keys())

    def definitions(self) -> List[ToolDefinition]:
        """Definitions for every registered tool, in registration order."""
        return [t.definition() for t in self._tools.values()]

    def definitions_for(self, names: Iterable[str]) -> List[ToolDefinition]:
        """
        Definitions for the named tools, in request order.

        Unknown names are skipped; compare the result length with the input
        when strict validation is needed.
        """
        return [self._tools[name].definition() for name in names if name in self._tools]

    def execute(self, name: str, arguments: str) -> str:
        """
        Run the named tool against a JSON argument string.

        Raises:
            ToolNotFoundError: If no tool is registered under ``name``.
            ToolInvalidArgumentsError: If the tool rejects its arguments.
            ToolExecutionFailedError: If the tool fails while running.
        """
        found = self._lookup(name)
        try:
            return found.execute(arguments)
        except ToolError:
            raise
        except Exception as exc:
            raise ToolExecutionFailedError(name, f"{type(exc).__name__}: {exc}", error=exc) from exc

    async def aexecute(self, name: str, arguments: str) -> str:
        """Async version of execute()."""
        found = self._lookup(name)
        try:
            return await found.aexecute(arguments)
        except ToolError:
            raise
        except Exception as exc:
            raise ToolExecutionFailedError(name, f"{type(exc).__name__}: {exc}", error=exc) from exc

    def _lookup(self, name: str) -> Tool:
        found = self._tools.get(name)
        if found is None:
            raise ToolNotFoundError(name)
        return found

    def tool(
        self,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        param_metadata: Optional[Dict[str, ParamMetadata]] = None,
        injected_kwargs: Optional[Dict[str, Any]] = None,
    ) -> Callable[[Callable[..., Any]], FunctionTool]:
        """Decorator that builds a FunctionTool and registers it here."""

        def decorator(func: Callable[..., Any]) -> FunctionTool:
            tool_instance = tool(
                name=name,
                description=description,
                param_metadata=param_metadata,
                injected_kwargs=injected_kwargs,
            )(func)
            self.register(tool_instance)
            return tool_instance

        return decorator


__all__ = ["ToolRegistry"]
