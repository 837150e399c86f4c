"""
Hello World — ask a question the model can only answer with a tool.

Prerequisites: OPENAI_API_KEY (a .env file in the working directory also works)
    pip install trickery

Run:
    python examples/01_hello_world.py
"""

from trickery import AgentLoop, LoopConfig, Message, OpenAIProvider, ToolRegistry


def main() -> None:
    loop = AgentLoop(
        OpenAIProvider.from_env(),
        ToolRegistry.with_builtins(),
        LoopConfig(max_iterations=5),
    )

    result = loop.run(
        [
            Message.system("You are a helpful assistant. Use tools when you need facts."),
            Message.user("What day of the week is it in UTC right now?"),
        ],
        ["current_time"],
    )

    print(f"Response: {result.content}")
    print(f"Iterations: {result.iterations}")
    for call in result.tool_calls_executed:
        print(f"  {call.name}({call.arguments}) -> {call.result}")
    print(result.usage)


if __name__ == "__main__":
    main()
