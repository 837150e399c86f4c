"""
Tests for the CLI (cli.py).

Tests cover:
- build_parser() argument parsing
- format_error() rendering and hints
- list_tools() output
- main() dispatch for single completions and agent runs
- Exit codes on failure
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from trickery import (
    APIError,
    InputFileError,
    InvalidResponseError,
    MissingCredentialError,
    ReasoningLevel,
    ToolCall,
    ToolRegistry,
    TransportError,
)
from trickery.cli import build_parser, completion_script, format_error, list_tools, main
from trickery.providers.openai_provider import OpenAIProvider


@pytest.fixture
def fake_from_env(monkeypatch: pytest.MonkeyPatch, make_provider):
    """Route OpenAIProvider.from_env() to a scripted FakeProvider."""

    def _install(script):
        provider = make_provider(script)
        monkeypatch.setattr(OpenAIProvider, "from_env", lambda **kwargs: provider)
        return provider

    return _install


class TestBuildParser:
    """Tests for build_parser() argument parsing."""

    def test_list_tools_command(self) -> None:
        args = build_parser().parse_args(["list-tools"])
        assert args.command == "list-tools"
        assert args.func == "list"

    def test_generate_defaults(self) -> None:
        args = build_parser().parse_args(["generate", "Hello"])
        assert args.func == "generate"
        assert args.input == "Hello"
        assert args.input_option is None
        assert args.vars is None
        assert args.model is None
        assert args.reasoning is None
        assert args.max_tokens is None
        assert args.image_detail == "auto"
        assert args.tool is None
        assert args.max_iterations == 20
        assert args.output is None

    def test_generate_custom_values(self) -> None:
        args = build_parser().parse_args(
            [
                "-o",
                "json",
                "generate",
                "-i",
                "prompt.txt",
                "--var",
                "topic=tides",
                "-v",
                "tone=dry",
                "-m",
                "o3-mini",
                "-r",
                "HIGH",
                "--max-tokens",
                "256",
                "--image",
                "a.png",
                "--image",
                "https://x/b.png",
                "--image-detail",
                "low",
                "--tool",
                "current_time",
                "--max-iterations",
                "5",
                "--timeout",
                "12.5",
            ]
        )
        assert args.output == "json"
        assert args.input_option == "prompt.txt"
        assert args.vars == [("topic", "tides"), ("tone", "dry")]
        assert args.model == "o3-mini"
        assert args.reasoning is ReasoningLevel.HIGH
        assert args.max_tokens == 256
        assert args.image == ["a.png", "https://x/b.png"]
        assert args.image_detail == "low"
        assert args.tool == ["current_time"]
        assert args.max_iterations == 5
        assert args.timeout == 12.5

    @pytest.mark.parametrize(
        "argv",
        [
            ["generate", "x", "--var", "novalue"],
            ["generate", "x", "-r", "extreme"],
            ["generate", "x", "--image-detail", "ultra"],
            ["-o", "yaml", "generate", "x"],
            [],
        ],
    )
    def test_rejects_bad_arguments(self, argv) -> None:
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(argv)
        assert exc_info.value.code == 2


class TestFormatError:
    """Tests for format_error() hints."""

    def test_missing_credential(self) -> None:
        text = format_error(MissingCredentialError("OPENAI_API_KEY"))
        assert "Missing API Key: OPENAI_API_KEY" in text
        assert "export OPENAI_API_KEY=" in text

    def test_transport_timeout(self) -> None:
        text = format_error(TransportError("read timed out", timed_out=True))
        assert "Network Error: read timed out" in text
        assert "timed out" in text

    def test_transport_connect(self) -> None:
        text = format_error(TransportError("connection refused"))
        assert "Check your internet connection" in text

    @pytest.mark.parametrize(
        "status, hint",
        [
            (401, "API key may be invalid"),
            (429, "Rate limit exceeded"),
            (503, "Server error"),
        ],
    )
    def test_api_error_hints(self, status: int, hint: str) -> None:
        text = format_error(APIError(status, "body"))
        assert f"API Error ({status}): body" in text
        assert hint in text

    def test_api_error_without_hint(self) -> None:
        assert format_error(APIError(400, "bad request")).endswith("API Error (400): bad request")

    def test_invalid_response(self) -> None:
        text = format_error(InvalidResponseError("No choices in response"))
        assert "Invalid Response: No choices in response" in text

    def test_file_not_found(self) -> None:
        text = format_error(FileNotFoundError(2, "No such file", "photo.png"))
        assert "File Error" in text
        assert "Check that the file path is correct" in text

    def test_permission_error(self) -> None:
        assert "permission" in format_error(PermissionError(13, "denied", "x"))

    def test_generic(self) -> None:
        assert format_error(RuntimeError("odd")) == "✗ Error: odd"


class TestListTools:
    """Tests for list_tools() output."""

    def test_lists_builtins(self, capsys: pytest.CaptureFixture[str]) -> None:
        list_tools(ToolRegistry.with_builtins())
        captured = capsys.readouterr()
        assert captured.out.startswith("- current_time: Get the current date and time")


class TestMain:
    """Tests for main() dispatch function."""

    def test_list_tools_dispatch(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["list-tools"]) == 0
        assert "current_time" in capsys.readouterr().out

    def test_generate_single_completion(self, fake_from_env, capsys) -> None:
        provider = fake_from_env(["A poem about tides"])

        code = main(["generate", "Write about {{ topic }}", "--var", "topic=tides", "-m", "gpt-4o"])

        assert code == 0
        assert capsys.readouterr().out.strip() == "A poem about tides"
        request = provider.requests[0]
        assert request.messages[0].text == "Write about tides"
        assert request.model == "gpt-4o"
        assert request.tools is None

    def test_generate_reads_input_file(self, fake_from_env, tmp_path: Path, capsys) -> None:
        prompt = tmp_path / "prompt.txt"
        prompt.write_text("Hello {{ name }}")
        provider = fake_from_env(["ok"])

        assert main(["generate", "-i", str(prompt), "-v", "name=Ada", "--system", "be nice"]) == 0
        messages = provider.requests[0].messages
        assert [m.role.value for m in messages] == ["system", "user"]
        assert messages[1].text == "Hello Ada"

    def test_generate_json_output(self, fake_from_env, capsys) -> None:
        fake_from_env(["done"])
        assert main(["-o", "json", "generate", "hi"]) == 0
        assert json.loads(capsys.readouterr().out) == {"output": "done"}

    def test_generate_with_image(self, fake_from_env, tmp_path: Path) -> None:
        image = tmp_path / "photo.png"
        image.write_bytes(b"png")
        provider = fake_from_env(["a cat"])

        assert main(["generate", "Describe", "--image", str(image), "--image-detail", "high"]) == 0
        parts = provider.requests[0].messages[0].content
        assert parts[1].url.startswith("data:image/png;base64,")
        assert parts[1].detail == "high"

    def test_single_completion_prints_tool_calls(self, fake_from_env, capsys) -> None:
        fake_from_env([[ToolCall(id="call_1", name="current_time", arguments="{}")]])

        assert main(["generate", "What time is it?"]) == 0
        printed = json.loads(capsys.readouterr().out)
        assert printed == [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "current_time", "arguments": "{}"},
            }
        ]

    def test_generate_with_tool_runs_loop(self, fake_from_env, capsys) -> None:
        provider = fake_from_env(
            [[ToolCall(id="call_1", name="current_time", arguments='{"format": "unix"}')], "It is late"]
        )

        assert main(["generate", "What time is it?", "--tool", "current_time"]) == 0
        assert capsys.readouterr().out.strip() == "It is late"
        assert provider.calls == 2
        assert [t.name for t in provider.requests[0].tools] == ["current_time"]
        assert provider.requests[1].messages[-1].tool_call_id == "call_1"

    def test_api_error_exit_code(self, fake_from_env, capsys) -> None:
        fake_from_env([APIError(401, '{"error": "bad key"}')])

        assert main(["generate", "hi"]) == 1
        err = capsys.readouterr().err
        assert "API Error (401)" in err
        assert "API key may be invalid" in err

    def test_max_iterations_exit_code(self, fake_from_env, capsys) -> None:
        fake_from_env([[ToolCall(id="c", name="current_time", arguments="{}")]])

        assert main(["generate", "loop", "--tool", "current_time", "--max-iterations", "2"]) == 1
        assert "Max iterations (2) exceeded" in capsys.readouterr().err

    def test_missing_api_key(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        assert main(["generate", "hi"]) == 1
        assert "Missing API Key: OPENAI_API_KEY" in capsys.readouterr().err

    def test_missing_image_file(self, fake_from_env, tmp_path: Path, capsys) -> None:
        fake_from_env(["unused"])
        assert main(["generate", "hi", "--image", str(tmp_path / "nope.png")]) == 1
        assert "File Error" in capsys.readouterr().err

    def test_input_required(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["generate"])
        assert exc_info.value.code == 2

    def test_verbose_json_output_stays_parseable(self, fake_from_env, capsys) -> None:
        fake_from_env([[ToolCall(id="c1", name="current_time", arguments="{}")], "done"])

        code = main(["-o", "json", "--verbose", "generate", "hi", "--tool", "current_time"])

        captured = capsys.readouterr()
        assert code == 0
        assert json.loads(captured.out) == {"output": "done"}
        assert "[tool] current_time({})" in captured.err
        assert "Usage Summary" in captured.err

    @pytest.mark.parametrize("value", ["-1", "many"])
    def test_max_iterations_rejected_by_parser(self, value, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "hi", "--tool", "current_time", "--max-iterations", value])
        assert exc_info.value.code == 2
        assert "--max-iterations" in capsys.readouterr().err

    def test_zero_max_iterations_accepted(self, fake_from_env, capsys) -> None:
        provider = fake_from_env(["never"])
        assert main(["generate", "hi", "--tool", "current_time", "--max-iterations", "0"]) == 1
        assert provider.calls == 0
        assert "Max iterations (0) exceeded" in capsys.readouterr().err

    def test_undecodable_input_file(self, fake_from_env, tmp_path: Path, capsys) -> None:
        prompt = tmp_path / "prompt.bin"
        prompt.write_bytes(b"\xff\xfe\x00bad")
        provider = fake_from_env(["unused"])

        assert main(["generate", str(prompt)]) == 1
        err = capsys.readouterr().err
        assert f"Failed to read input file '{prompt}'" in err
        assert "UTF-8" in err
        assert provider.calls == 0


class TestCompletion:
    """Tests for the completion subcommand."""

    def test_parser(self) -> None:
        args = build_parser().parse_args(["completion", "fish"])
        assert args.func == "completion"
        assert args.shell == "fish"

    def test_rejects_unknown_shell(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["completion", "tcsh"])

    def test_bash(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["completion", "bash"]) == 0
        captured = capsys.readouterr()
        assert "complete -o default -F _trickery trickery" in captured.out
        assert "list-tools|generate|completion) cmd=" in captured.out
        assert "--max-iterations" in captured.out
        assert "Generating completion file for bash..." in captured.err

    def test_zsh_reuses_bash(self) -> None:
        script = completion_script(build_parser(), "zsh")
        assert script.startswith("autoload -U +X bashcompinit && bashcompinit\n")
        assert "_trickery()" in script

    def test_fish(self) -> None:
        script = completion_script(build_parser(), "fish")
        assert "complete -c trickery -n __fish_use_subcommand -a generate" in script
        assert "complete -c trickery -n '__fish_seen_subcommand_from generate' -l image-detail" in script
        assert "complete -c trickery -n '__fish_seen_subcommand_from generate' -s m" in script
        assert "complete -c trickery -n __fish_use_subcommand -s o" in script


def test_format_input_file_error() -> None:
    text = format_error(InputFileError("prompt.bin", "not valid UTF-8 text (invalid start byte)"))
    assert "File Error: Failed to read input file 'prompt.bin'" in text
    assert "UTF-8" in text
