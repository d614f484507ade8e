"""
src/orchestrator/prompts.py

System prompt template. The live schema is embedded on every request.
"""


import json
from typing import List

from config import DOMAIN_DESCRIPTION
from orchestrator.models import ToolDeclaration


SYSTEM_TEMPLATE = (
    "You are a helpful, informative expert on {domain}.\n"
    "You have access to a database through the {tool} tool. "
    "When using this tool, you must provide a valid SQL SELECT query.\n\n"
    "Here is the database schema: {schema}\n\n"
    "When answering questions about this data:\n"
    "1. Always formulate a proper SQL SELECT query\n"
    "2. Use the {tool} tool with a \"query\" parameter containing your SQL query\n"
    "3. Wait for the results before providing your final answer\n"
    "4. Base your response on the actual query results only\n\n"
    "Available tools:\n{tool_list}\n\n"
    "Example tool use:\n{example}"
)

# Nudges the model towards a well-formed call
EXAMPLE_TOOL_INPUT = {"query": "SELECT * FROM teams LIMIT 5"}


def build_system_prompt(schema_text: str, tools: List[ToolDeclaration], *, domain: str = DOMAIN_DESCRIPTION) -> str:

    tool_list = "\n".join(f"- {t.name}: {t.description}" for t in tools)
    primary = tools[0].name if tools else "run_query"

    return SYSTEM_TEMPLATE.format(
        domain=domain,
        tool=primary,
        schema=schema_text,
        tool_list=tool_list,
        example=json.dumps(EXAMPLE_TOOL_INPUT, indent=2),
    )
