"""
Tool interface, parameter schemas, and runtime validation.
"""

from __future__ import annotations

import asyncio
import contextvars
import difflib
import functools
import inspect
import json
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from ..exceptions import (
    ToolError,
    ToolExecutionFailedError,
    ToolInvalidArgumentsError,
    ToolValidationError,
)
from ..types import JsonSchema, ToolDefinition

ParameterValue = Union[str, int, float, bool, dict, list]
ParamMetadata = Dict[str, Any]


def _python_type_to_json(param_type: type) -> str:
    """Map a Python type to a JSON schema type string."""
    type_map = {
        str: "string",
        int: "integer",
        float: "number",
        bool: "boolean",
        list: "array",
        dict: "object",
    }
    return type_map.get(param_type, "string")


def _in_running_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class Tool(ABC):
    """
    A named local capability the model may request.

    Subclasses provide a stable ``name``, a ``definition()`` advertising the
    JSON-schema contract, and ``execute()`` which receives the raw JSON argument
    string exactly as the model produced it. Implementations report bad input
    with ``ToolInvalidArgumentsError`` and runtime failures with
    ``ToolExecutionFailedError``.

    Example:
        >>> class Echo(Tool):
        ...     name = "echo"
        ...     def definition(self):
        ...         return ToolDefinition.function("echo", "Echo input", {"type": "string"})
        ...     def execute(self, arguments):
        ...         return json.loads(arguments)
    """

    name: str

    @abstractmethod
    def definition(self) -> ToolDefinition:
        """Return the schema advertised to the model."""

    @abstractmethod
    def execute(self, arguments: str) -> str:
        """Run the tool against a JSON-encoded argument string."""

    async def aexecute(self, arguments: str) -> str:
        """
        Async version of execute().

        The default runs ``execute`` in a worker thread so blocking tools do
        not stall the event loop. Context variables are carried over.
        """
        loop = asyncio.get_running_loop()
        context = contextvars.copy_context()
        call = functools.partial(self.execute, arguments)
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            return await loop.run_in_executor(executor, context.run, call)
        finally:
            executor.shutdown(wait=False)


@dataclass
class ToolParameter:
    """
    Schema definition for a single tool parameter.

    Attributes:
        name: Parameter name (should match the function parameter name).
        param_type: Python type (str, int, float, bool, list, dict).
        description: Human-readable description explaining what the parameter does.
        required: Whether this parameter must be provided (default: True).
        enum: Optional list of allowed string values for enumerated parameters.

    Example:
        >>> param = ToolParameter(
        ...     name="units",
        ...     param_type=str,
        ...     description="Temperature units",
        ...     required=False,
        ...     enum=["celsius", "fahrenheit"]
        ... )
    """

    name: str
    param_type: type
    description: str
    required: bool = True
    enum: Optional[List[str]] = None

    def to_schema(self) -> JsonSchema:
        """Convert parameter definition to a JSON Schema property."""
        schema: JsonSchema = {
            "type": _python_type_to_json(self.param_type),
            "description": self.description,
        }
        if self.enum:
            schema["enum"] = self.enum
        return schema


class FunctionTool(Tool):
    """
    Wraps a Python callable as a Tool, with validation and schema generation.

    Arguments arrive as a JSON object string; they are decoded, checked against
    ``parameters`` and passed to ``function`` as keyword arguments. The return
    value is converted with ``str()``. Both sync and async callables are
    accepted; async callables are awaited by ``aexecute`` and driven to
    completion with ``asyncio.run`` by ``execute``.

    Attributes:
        name: Unique identifier for the tool.
        description: Human-readable description of what the tool does (used by the model).
        parameters: List of ToolParameter objects defining expected inputs.
        function: The underlying Python function to execute.
        injected_kwargs: Additional kwargs to pass to the function (not visible to the model).
        is_async: Whether the underlying function is a coroutine function.
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: List[ToolParameter],
        function: Callable[..., Any],
        *,
        injected_kwargs: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize a new FunctionTool.

        Raises:
            ToolValidationError: If the tool definition is invalid.
        """
        self.name = name
        self.description = description
        self.parameters = parameters
        self.function = function
        self.injected_kwargs = injected_kwargs or {}
        self.is_async = inspect.iscoroutinefunction(function)

        self._validate_tool_definition()

    def __repr__(self) -> str:
        return f"FunctionTool(name={self.name!r})"

    def _validate_tool_definition(self) -> None:
        """Catch malformed definitions at construction time."""
        if not self.name or not self.name.strip():
            raise ToolValidationError(
                tool_name="<unnamed>",
                param_name="name",
                issue="Tool name cannot be empty",
                suggestion="Provide a descriptive name for the tool",
            )

        if not self.description or not self.description.strip():
            raise ToolValidationError(
                tool_name=self.name,
                param_name="description",
                issue="Tool description cannot be empty",
                suggestion="Provide a clear description explaining what the tool does",
            )

        param_names = [p.name for p in self.parameters]
        duplicates = [name for name in param_names if param_names.count(name) > 1]
        if duplicates:
            raise ToolValidationError(
                tool_name=self.name,
                param_name=", ".join(sorted(set(duplicates))),
                issue="Duplicate parameter name(s)",
                suggestion="Each parameter must have a unique name",
            )

        supported_types = {str, int, float, bool, list, dict}
        for param in self.parameters:
            if param.param_type not in supported_types:
                type_list = ", ".join(sorted(t.__name__ for t in supported_types))
                raise ToolValidationError(
                    tool_name=self.name,
                    param_name=param.name,
                    issue=f"Unsupported parameter type: {param.param_type}",
                    suggestion=f"Use one of: {type_list}",
                )

        try:
            sig = inspect.signature(self.function)
        except (ValueError, TypeError):
            # Built-ins and some C callables cannot be introspected.
            return

        func_params = sig.parameters
        injected_names = set(self.injected_kwargs.keys())

        for param in self.parameters:
            if param.name not in func_params and param.name not in injected_names:
                func_param_names = [p for p in func_params.keys() if p not in injected_names]
                suggestion = f"Available function parameters: {', '.join(func_param_names)}"
                if not func_param_names:
                    suggestion = "Function has no parameters"
                raise ToolValidationError(
                    tool_name=self.name,
                    param_name=param.name,
                    issue=f"Parameter '{param.name}' not found in function signature",
                    suggestion=suggestion,
                )

        for param in self.parameters:
            if param.required and param.name in func_params:
                func_param = func_params[param.name]
                if func_param.default is not inspect.Parameter.empty:
                    raise ToolValidationError(
                        tool_name=self.name,
                        param_name=param.name,
                        issue=(
                            f"Parameter marked as required but has default value "
                            f"in function: {func_param.default!r}"
                        ),
                        suggestion="Either mark as optional (required=False) or remove default from function",
                    )

    def definition(self) -> ToolDefinition:
        properties = {param.name: param.to_schema() for param in self.parameters}
        required = [param.name for param in self.parameters if param.required]
        return ToolDefinition.function(
            self.name,
            self.description,
            {"type": "object", "properties": properties, "required": required},
        )

    def parse_arguments(self, arguments: str) -> Dict[str, ParameterValue]:
        """Decode the model's JSON argument string into a parameter dict."""
        if not arguments or not arguments.strip():
            return {}
        try:
            decoded = json.loads(arguments)
        except json.JSONDecodeError as exc:
            raise ToolInvalidArgumentsError(self.name, f"arguments are not valid JSON: {exc}")
        if decoded is None:
            return {}
        if not isinstance(decoded, dict):
            raise ToolInvalidArgumentsError(
                self.name,
                f"expected a JSON object, got {type(decoded).__name__}",
            )
        return decoded

    def _validate_single(self, param: ToolParameter, value: ParameterValue) -> Optional[str]:
        """Validate a single parameter, returning an error message if invalid."""
        if value is None:
            return f"Parameter '{param.name}' is None"

        if param.param_type is float:
            if isinstance(value, bool) or not isinstance(value, (float, int)):
                return f"Parameter '{param.name}' must be a number"
            return None

        if param.param_type is int and isinstance(value, bool):
            return f"Parameter '{param.name}' must be of type int, got bool"

        if not isinstance(value, param.param_type):
            return (
                f"Parameter '{param.name}' must be of type {param.param_type.__name__}, "
                f"got {type(value).__name__}"
            )

        if param.enum and value not in param.enum:
            return f"Parameter '{param.name}' must be one of {param.enum}, got {value!r}"
        return None

    def validate(self, params: Dict[str, ParameterValue]) -> None:
        """
        Validate a parameter dictionary against this tool's schema.

        Raises ToolInvalidArgumentsError with a suggestion when validation fails.
        """
        expected_params = {p.name for p in self.parameters}
        extra_params = set(params.keys()) - expected_params

        # Unexpected parameters are usually typos
        if extra_params:
            suggestions = []
            for extra in sorted(extra_params):
                matches = difflib.get_close_matches(extra, expected_params, n=1, cutoff=0.6)
                if matches:
                    suggestions.append(f"'{extra}' -> Did you mean '{matches[0]}'?")
                else:
                    suggestions.append(f"'{extra}' is not a valid parameter")
            raise ToolInvalidArgumentsError(
                self.name,
                f"unexpected parameter(s): {', '.join(sorted(extra_params))}",
                suggestion="; ".join(suggestions),
            )

        for param in self.parameters:
            if param.name not in params:
                if param.required:
                    expected_list = ", ".join(
                        f"'{p.name}'" for p in self.parameters if p.required
                    )
                    raise ToolInvalidArgumentsError(
                        self.name,
                        f"missing required parameter '{param.name}'",
                        suggestion=f"Required parameters: {expected_list}",
                    )
                continue

            error = self._validate_single(param, params[param.name])
            if error:
                raise ToolInvalidArgumentsError(
                    self.name,
                    error,
                    suggestion=f"Expected type: {param.param_type.__name__}",
                )

    def _call_args(self, arguments: str) -> Dict[str, Any]:
        params = self.parse_arguments(arguments)
        self.validate(params)
        call_args: Dict[str, Any] = dict(params)
        call_args.update(self.injected_kwargs)
        return call_args

    def execute(self, arguments: str) -> str:
        """
        Validate arguments then execute the underlying callable.

        Async callables are driven with ``asyncio.run``, which is only possible
        outside a running event loop; inside one, use ``aexecute`` (or
        ``AgentLoop.arun``).
        """
        call_args = self._call_args(arguments)
        if self.is_async and _in_running_loop():
            raise ToolExecutionFailedError(
                self.name,
                "async tool cannot run synchronously inside a running event loop; "
                "use aexecute() or AgentLoop.arun()",
            )
        try:
            result = self.function(**call_args)
            if inspect.iscoroutine(result):
                result = asyncio.run(result)
            return str(result)
        except ToolError:
            raise
        except Exception as exc:
            raise ToolExecutionFailedError(
                self.name, f"{type(exc).__name__}: {exc}", error=exc
            ) from exc

    async def aexecute(self, arguments: str) -> str:
        """Await async callables directly; run sync ones in a worker thread."""
        if not self.is_async:
            return await super().aexecute(arguments)

        call_args = self._call_args(arguments)
        try:
            result = await self.function(**call_args)
            return str(result)
        except ToolError:
            raise
        except Exception as exc:
            raise ToolExecutionFailedError(
                self.name, f"{type(exc).__name__}: {exc}", error=exc
            ) from exc


__all__ = ["Tool", "FunctionTool", "ToolParameter", "ParamMetadata", "ParameterValue"]
