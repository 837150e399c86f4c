"""
CLI entrypoint for trickery.

Examples:
    trickery list-tools
    trickery generate "Summarise {{ topic }}" --var topic=tides
    trickery generate -i prompt.txt --tool current_time --model gpt-5-mini
    trickery generate "Describe this picture" --image photo.jpg --image-detail low
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .agent import AgentLoop, LoopConfig
from .exceptions import (
    APIError,
    InputFileError,
    InvalidResponseError,
    MissingCredentialError,
    TrickeryError,
    TransportError,
)
from .prompt import build_user_message, parse_key_val, resolve_input, substitute_variables
from .providers.openai_provider import OpenAIProvider
from .tools import ToolRegistry
from .types import CompletionRequest, Message, ReasoningLevel

ERROR = "✗"
KEY = "\U0001F511"
NETWORK = "\U0001F310"
WARNING = "⚠"
INFO = "ℹ"

SHELLS = ("bash", "zsh", "fish")


def format_error(exc: BaseException) -> str:
    """Render an error for terminal display, with a hint where one helps."""
    if isinstance(exc, MissingCredentialError):
        return (
            f"{KEY} Missing API Key: {exc.env_var}\n\n"
            f"{INFO} To fix this, set the environment variable:\n\n"
            f"    export {exc.env_var}=your_api_key_here\n\n"
            f"{INFO} You can get an API key from: https://platform.openai.com/api-keys"
        )
    if isinstance(exc, TransportError):
        message = f"{NETWORK} Network Error: {exc.detail}"
        if exc.timed_out:
            return message + f"\n\n{INFO} Request timed out. The server may be busy, try again later."
        return message + f"\n\n{INFO} Check your internet connection and try again."
    if isinstance(exc, APIError):
        icon = NETWORK if exc.status >= 500 else WARNING
        message = f"{icon} API Error ({exc.status}): {exc.message}"
        if exc.status == 401:
            message += f"\n\n{INFO} Your API key may be invalid or expired."
        elif exc.status == 429:
            message += f"\n\n{INFO} Rate limit exceeded. Wait a moment and try again."
        elif 500 <= exc.status < 600:
            message += f"\n\n{INFO} Server error. This is likely temporary, try again later."
        return message
    if isinstance(exc, InvalidResponseError):
        return (
            f"{WARNING} Invalid Response: {exc.detail}\n\n"
            f"{INFO} The API returned an unexpected response format."
        )
    if isinstance(exc, InputFileError):
        return f"{WARNING} File Error: {exc}\n\n{INFO} Input files must be UTF-8 encoded text."
    if isinstance(exc, FileNotFoundError):
        return f"{WARNING} File Error: {exc}\n\n{INFO} Check that the file path is correct."
    if isinstance(exc, PermissionError):
        return (
            f"{WARNING} File Error: {exc}\n\n"
            f"{INFO} You don't have permission to access this file."
        )
    if isinstance(exc, OSError):
        return f"{ERROR} File Error: {exc}"
    return f"{ERROR} Error: {exc}"


def _key_val(text: str) -> tuple:
    try:
        return parse_key_val(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {text}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {value}")
    return value


def _reasoning_level(text: str) -> ReasoningLevel:
    try:
        return ReasoningLevel.parse(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def list_tools(registry: ToolRegistry) -> None:
    for definition in registry.definitions():
        print(f"- {definition.name}: {definition.description}")


def _subcommand_options(parser: argparse.ArgumentParser) -> Dict[str, List[str]]:
    """Map each subcommand name to the option strings it accepts."""
    commands: Dict[str, List[str]] = {}
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            for name, subparser in action.choices.items():
                commands[name] = [
                    option for sub_action in subparser._actions for option in sub_action.option_strings
                ]
    return commands


def _bash_completion(parser: argparse.ArgumentParser) -> str:
    commands = _subcommand_options(parser)
    global_options = [option for action in parser._actions for option in action.option_strings]
    alternatives = "|".join(commands)
    top_level = " ".join(global_options + list(commands))
    cases = []
    for name, options in commands.items():
        words = " ".join(options)
        cases.append(f'        {name}) COMPREPLY=($(compgen -W "{words}" -- "$cur")) ;;')
    case_lines = "\n".join(cases)
    return f"""_{parser.prog}() {{
    local cur="${{COMP_WORDS[COMP_CWORD]}}" cmd="" word
    for word in "${{COMP_WORDS[@]:1:COMP_CWORD-1}}"; do
        case "$word" in
            {alternatives}) cmd="$word"; break ;;
        esac
    done
    case "$cmd" in
{case_lines}
        *) COMPREPLY=($(compgen -W "{top_level}" -- "$cur")) ;;
    esac
}}
complete -o default -F _{parser.prog} {parser.prog}
"""


def _fish_flag(option: str) -> str:
    return f"-l {option[2:]}" if option.startswith("--") else f"-s {option[1:]}"


def _fish_completion(parser: argparse.ArgumentParser) -> str:
    prog = parser.prog
    commands = _subcommand_options(parser)
    lines = [f"complete -c {prog} -f"]
    for action in parser._actions:
        for option in action.option_strings:
            lines.append(f"complete -c {prog} -n __fish_use_subcommand {_fish_flag(option)}")
    for name, options in commands.items():
        lines.append(f"complete -c {prog} -n __fish_use_subcommand -a {name}")
        for option in options:
            lines.append(
                f"complete -c {prog} -n '__fish_seen_subcommand_from {name}' {_fish_flag(option)}"
            )
    return "\n".join(lines) + "\n"


def completion_script(parser: argparse.ArgumentParser, shell: str) -> str:
    """
    Render a completion script for ``shell`` from the parser's own commands and options.

    zsh reuses the bash script through ``bashcompinit``.
    """
    if shell == "bash":
        return _bash_completion(parser)
    if shell == "zsh":
        return "autoload -U +X bashcompinit && bashcompinit\n" + _bash_completion(parser)
    if shell == "fish":
        return _fish_completion(parser)
    raise ValueError(f"Unsupported shell: {shell}")


def generate(args: argparse.Namespace, registry: ToolRegistry) -> str:
    """Run one completion, or the full agent loop when tools were requested."""
    source = args.input or args.input_option
    template = resolve_input(source)
    variables: Dict[str, Any] = dict(args.vars or [])
    prompt_text = substitute_variables(template, variables)

    messages: List[Message] = []
    if args.system:
        messages.append(Message.system(args.system))
    messages.append(build_user_message(prompt_text, args.image or [], args.image_detail))

    provider = OpenAIProvider.from_env(timeout=args.timeout)

    if args.tool:
        config = LoopConfig(
            max_iterations=args.max_iterations,
            model=args.model,
            reasoning_level=args.reasoning,
            max_tokens=args.max_tokens,
        )
        result = AgentLoop(provider, registry, config).run(messages, args.tool)
        # stdout carries only the result
        if args.verbose:
            for executed in result.tool_calls_executed:
                print(
                    f"[tool] {executed.name}({executed.arguments}) -> {executed.result}",
                    file=sys.stderr,
                )
            print(result.usage, file=sys.stderr)
        return result.content

    request = CompletionRequest(
        messages=messages,
        model=args.model,
        reasoning_level=args.reasoning,
        max_tokens=args.max_tokens,
    )
    response = provider.complete(request)
    if response.tool_calls:
        return json.dumps(
            [
                {
                    "id": call.id,
                    "type": call.call_type,
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in response.tool_calls
            ],
            indent=2,
        )
    return response.content or ""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trickery", description="Magic tool to generate things")
    parser.add_argument("-o", "--output", choices=["json"], help="Type of the output format")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list-tools", help="List available tools")
    list_parser.set_defaults(func="list")

    gen_parser = subparsers.add_parser("generate", help="Generate content from a prompt template")
    gen_parser.add_argument(
        "input", nargs="?", help="Input prompt: file path or direct text (auto-detected)"
    )
    gen_parser.add_argument(
        "-i", "--input", dest="input_option", help="Input prompt: file path or direct text"
    )
    gen_parser.add_argument(
        "-v",
        "--var",
        dest="vars",
        type=_key_val,
        action="append",
        metavar="KEY=VALUE",
        help="Variable to substitute into the prompt (repeatable)",
    )
    gen_parser.add_argument("-m", "--model", help="Model to use (e.g. gpt-5-mini, o3-mini)")
    gen_parser.add_argument(
        "-r", "--reasoning", type=_reasoning_level, help="Reasoning level for o1/o3 models"
    )
    gen_parser.add_argument("--max-tokens", type=int, help="Maximum tokens in response")
    gen_parser.add_argument(
        "--image", action="append", help="Image file or URL to include (repeatable)"
    )
    gen_parser.add_argument(
        "--image-detail", default="auto", choices=["auto", "low", "high"], help="Image detail level"
    )
    gen_parser.add_argument(
        "--tool", action="append", help="Offer a tool and run the agent loop (repeatable)"
    )
    gen_parser.add_argument(
        "--max-iterations", type=_non_negative_int, default=20, help="Max agent loop iterations"
    )
    gen_parser.add_argument("--system", help="Optional system instruction")
    gen_parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    gen_parser.set_defaults(func="generate")

    completion_parser = subparsers.add_parser(
        "completion", help="Output the completion file for the given shell"
    )
    completion_parser.add_argument("shell", choices=SHELLS, help="Target shell")
    completion_parser.set_defaults(func="completion")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    registry = ToolRegistry.with_builtins()

    if args.func == "list":
        list_tools(registry)
        return 0

    if args.func == "completion":
        print(f"Generating completion file for {args.shell}...", file=sys.stderr)
        sys.stdout.write(completion_script(parser, args.shell))
        return 0

    if not (args.input or args.input_option):
        parser.error("Input required: use positional arg or -i (file path or text)")

    try:
        output = generate(args, registry)
    except (TrickeryError, OSError) as exc:
        print(f"\n{format_error(exc)}\n", file=sys.stderr)
        return 1

    if args.output == "json":
        print(json.dumps({"output": output}))
    else:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
