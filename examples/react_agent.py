#!/usr/bin/env python3
"""
Example: ReAct Agent

Demonstrates:
1. Loading the API credential explicitly (.env + OPENAI_API_KEY)
2. Defining search and calculator tools
3. Running the reason/act loop and inspecting the transcript

Requires OPENAI_API_KEY and network access.
"""

import ast
import asyncio
import operator
import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from r_agent import AgentError, AgentLimits, AgentLoop, CompletionClient, ToolRegistry, load_env, tool

# === Define Tools ===

_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
    ast.USub: operator.neg,
}


def _evaluate(node):
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_evaluate(node.operand))
    raise ValueError(f"unsupported expression: {ast.dump(node)}")


@tool
def calculator(expression: str) -> str:
    """Evaluate an arithmetic expression such as 3 * (4 + 5)."""
    return str(_evaluate(ast.parse(expression, mode="eval").body))


@tool
async def search(query: str) -> str:
    """Look up a fact."""
    # Simulated search results
    facts = {
        "spider": "Spiders have eight legs.",
        "eiffel": "The Eiffel Tower is 330 metres tall.",
    }
    for key, fact in facts.items():
        if key in query.lower():
            return fact
    return f"No results for {query!r}"


async def main():
    load_env()
    registry = ToolRegistry([search, calculator])

    async with CompletionClient.from_env() as client:
        loop = AgentLoop(client, limits=AgentLimits(max_iterations=5))
        question = sys.argv[1] if len(sys.argv) > 1 else "How many legs do three spiders have?"

        try:
            result = await loop.run(question, registry)
        except AgentError as e:
            print(f"Run failed: {e}")
            for entry in e.transcript or []:
                print(f"  {entry}")
            return 1

    print(result.transcript.render())
    print(f"Final answer: {result.final_answer}")
    print(f"Iterations:   {result.iterations}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
