"""
Prompt preparation helpers used before a request reaches the agent loop.

Template substitution is deliberately naive: ``{{ name }}`` (with exactly one
space inside the braces) is replaced by the variable's value; placeholders
without a matching variable are left untouched.
"""

from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple

from .exceptions import InputFileError
from .types import ImagePart, Message, TextPart

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def substitute_variables(template: str, variables: Mapping[str, Any]) -> str:
    """Replace ``{{ key }}`` placeholders. Non-string values are JSON-encoded."""
    result = template
    for key, value in variables.items():
        replacement = value if isinstance(value, str) else json.dumps(value)
        result = result.replace(f"{{{{ {key} }}}}", replacement)
    return result


def parse_key_val(text: str) -> Tuple[str, str]:
    """Split ``KEY=VALUE`` at the first ``=``."""
    key, sep, value = text.partition("=")
    if not sep:
        raise ValueError(f"invalid KEY=VALUE: no `=` found in `{text}`")
    return key, value


def resolve_input(value: str) -> str:
    """
    Read ``value`` as a file when such a file exists, otherwise treat it as prompt text.

    Raises:
        InputFileError: If the file is not valid UTF-8.
    """
    path = Path(value)
    if not path.is_file():
        return value
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise InputFileError(str(path), f"not valid UTF-8 text ({exc.reason})") from exc


def image_to_url(image: str) -> str:
    """
    Resolve an image reference for the provider.

    http(s) URLs pass through unchanged; local files are embedded as base64
    data URLs, with the MIME type taken from the extension (PNG if unknown).

    Raises:
        FileNotFoundError: If a local path does not exist.
    """
    if image.startswith(("http://", "https://")):
        return image
    path = Path(image).expanduser()
    data = path.read_bytes()
    mime_type = MIME_TYPES.get(path.suffix.lower(), "image/png")
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def build_user_message(
    text: str, images: Sequence[str] = (), detail: Optional[str] = None
) -> Message:
    """Build a user message, multimodal when images are given."""
    if not images:
        return Message.user(text)
    parts = [TextPart(text)]
    parts.extend(ImagePart(url=image_to_url(image), detail=detail) for image in images)
    return Message.user_with_parts(parts)


__all__ = [
    "substitute_variables",
    "parse_key_val",
    "resolve_input",
    "image_to_url",
    "build_user_message",
]
