"""
Decorator for turning annotated functions into tools.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, List, Optional, Union, get_args, get_origin, get_type_hints

from .base import FunctionTool, ParamMetadata, ToolParameter


def _unwrap_type(type_hint: Any) -> Any:
    """Unwrap Optional[T] to T."""
    if get_origin(type_hint) is Union:
        non_none_args = [a for a in get_args(type_hint) if a is not type(None)]
        if len(non_none_args) == 1:
            return _unwrap_type(non_none_args[0])
    # List[str] -> list, Dict[str, int] -> dict
    origin = get_origin(type_hint)
    if origin in (list, dict):
        return origin
    return type_hint


def _infer_parameters_from_callable(
    func: Callable[..., Any],
    param_metadata: Optional[Dict[str, ParamMetadata]] = None,
    skip: Optional[set] = None,
) -> List[ToolParameter]:
    """
    Inspect a function signature to build ToolParameter objects.

    Parameters without a type hint default to ``str``. A parameter is optional
    when the function gives it a default value.
    """
    type_hints = get_type_hints(func)
    sig = inspect.signature(func)
    param_metadata = param_metadata or {}
    skip = skip or set()
    parameters = []

    for name, param in sig.parameters.items():
        if name in ("self", "cls") or name in skip:
            continue

        param_type = _unwrap_type(type_hints.get(name, str))
        meta = param_metadata.get(name, {})

        parameters.append(
            ToolParameter(
                name=name,
                param_type=param_type,
                description=meta.get("description", f"Parameter {name}"),
                required=param.default is inspect.Parameter.empty,
                enum=meta.get("enum"),
            )
        )

    return parameters


def tool(
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    param_metadata: Optional[Dict[str, ParamMetadata]] = None,
    injected_kwargs: Optional[Dict[str, Any]] = None,
) -> Callable[[Callable[..., Any]], FunctionTool]:
    """
    Decorator to convert a function into a FunctionTool.

    Args:
        name: Optional custom name (defaults to function name).
        description: Optional description (defaults to docstring).
        param_metadata: Dict mapping parameter names to metadata (description, enum).
        injected_kwargs: Kwargs injected at runtime and hidden from the model.

    Example:
        >>> @tool(description="Add two integers")
        ... def add(a: int, b: int) -> int:
        ...     return a + b
        >>> add.execute('{"a": 1, "b": 2}')
        '3'
    """

    def decorator(func: Callable[..., Any]) -> FunctionTool:
        tool_name = name or func.__name__
        tool_description = description or inspect.getdoc(func) or f"Tool {tool_name}"
        parameters = _infer_parameters_from_callable(
            func, param_metadata, skip=set((injected_kwargs or {}).keys())
        )
        return FunctionTool(
            name=tool_name,
            description=tool_description,
            parameters=parameters,
            function=func,
            injected_kwargs=injected_kwargs,
        )

    return decorator


__all__ = ["tool"]
