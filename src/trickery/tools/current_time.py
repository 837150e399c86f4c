"""
Built-in ``current_time`` tool.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Dict

from ..exceptions import ToolInvalidArgumentsError
from ..types import ToolDefinition
from .base import Tool

TIMEZONES = ("utc", "local")
FORMATS = ("iso8601", "rfc2822", "unix", "human")


def _now(tz_name: str) -> datetime:
    if tz_name == "utc":
        return datetime.now(timezone.utc)
    return datetime.now().astimezone()


def format_time(tz_name: str, fmt: str) -> str:
    """Render the current time in ``tz_name`` ("utc" or "local") using ``fmt``."""
    now = _now(tz_name)
    if fmt == "rfc2822":
        return format_datetime(now)
    if fmt == "unix":
        return str(int(now.timestamp()))
    if fmt == "human":
        text = now.strftime("%B %d, %Y %I:%M %p")
        return f"{text} UTC" if tz_name == "utc" else text
    return now.isoformat()


class CurrentTimeTool(Tool):
    """Returns the current date and time in the requested timezone and format."""

    name = "current_time"

    def definition(self) -> ToolDefinition:
        return ToolDefinition.function(
            self.name,
            "Get the current date and time. Returns the current timestamp in the "
            "specified format and timezone.",
            {
                "type": "object",
                "properties": {
                    "timezone": {
                        "type": "string",
                        "description": "Timezone to use: 'utc' for UTC or 'local' for system local time",
                        "enum": list(TIMEZONES),
                        "default": "local",
                    },
                    "format": {
                        "type": "string",
                        "description": (
                            "Output format: 'iso8601' (2024-01-15T10:30:00+00:00), "
                            "'rfc2822' (Mon, 15 Jan 2024 10:30:00 +0000), "
                            "'unix' (timestamp in seconds), "
                            "'human' (January 15, 2024 10:30 AM)"
                        ),
                        "enum": list(FORMATS),
                        "default": "iso8601",
                    },
                },
                "additionalProperties": False,
            },
        )

    def _parse(self, arguments: str) -> Dict[str, str]:
        if not arguments.strip() or arguments.strip() == "{}":
            return {}
        try:
            args = json.loads(arguments)
        except json.JSONDecodeError as exc:
            raise ToolInvalidArgumentsError(self.name, str(exc))
        if args is None:
            return {}
        if not isinstance(args, dict):
            raise ToolInvalidArgumentsError(self.name, "expected a JSON object")
        unknown = sorted(set(args) - {"timezone", "format"})
        if unknown:
            raise ToolInvalidArgumentsError(
                self.name, f"unexpected parameter(s): {', '.join(unknown)}"
            )
        return args

    def execute(self, arguments: str) -> str:
        args = self._parse(arguments)
        tz_name = args.get("timezone") or "local"
        fmt = args.get("format") or "iso8601"
        if tz_name not in TIMEZONES:
            raise ToolInvalidArgumentsError(
                self.name, f"unknown timezone {tz_name!r}", suggestion="Use 'utc' or 'local'"
            )
        if fmt not in FORMATS:
            raise ToolInvalidArgumentsError(
                self.name, f"unknown format {fmt!r}", suggestion=f"Use one of: {', '.join(FORMATS)}"
            )
        return format_time(tz_name, fmt)


__all__ = ["CurrentTimeTool", "format_time"]
