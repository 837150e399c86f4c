"""
Custom Tools — register your own functions next to the built-ins.

Prerequisites: OPENAI_API_KEY
Run: python examples/02_custom_tools.py
"""

import asyncio

from trickery import AgentLoop, LoopConfig, Message, OpenAIProvider, ReasoningLevel, ToolRegistry

registry = ToolRegistry.with_builtins()


@registry.tool(description="Look up the price of a product")
def get_price(product: str) -> str:
    prices = {"laptop": "$999", "phone": "$699", "headphones": "$149"}
    return prices.get(product.lower(), f"No price found for {product}")


@registry.tool(
    description="Check stock for a product at one of our warehouses",
    param_metadata={"warehouse": {"description": "Warehouse code", "enum": ["north", "south"]}},
)
async def check_stock(product: str, warehouse: str = "north") -> str:
    await asyncio.sleep(0.1)
    return f"{product}: 5 left in {warehouse}"


def log_tool(call, result, duration) -> None:
    print(f"🔧 {call.name} took {duration:.2f}s")


async def main() -> None:
    config = LoopConfig(
        max_iterations=6,
        model="o3-mini",
        reasoning_level=ReasoningLevel.LOW,
        tool_timeout_seconds=10,
        hooks={"on_tool_end": log_tool},
    )
    loop = AgentLoop(OpenAIProvider.from_env(), registry, config)

    result = await loop.arun(
        [Message.user("How much is a laptop, and is it in stock in the south warehouse?")]
    )
    print(result.content)


if __name__ == "__main__":
    asyncio.run(main())
