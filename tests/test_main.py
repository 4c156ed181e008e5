from collections.abc import AsyncGenerator
from typing import Any

import pytest
from click.testing import CliRunner
from fastmcp.client import Client
from fastmcp.client.transports import FastMCPTransport
from inline_snapshot import snapshot

from doi_mcp.config import DoiConfig
from doi_mcp.main import mcp, new_mcp_server, run_mcp
from tests.conftest import dump_list_for_snapshot


def test_main():
    assert mcp is not None


def test_new_mcp_server():
    server = new_mcp_server(config=DoiConfig(min_questions=1, max_questions=5))

    assert server.name == "Doi MCP"
    assert server.instructions is not None
    assert server.instructions.startswith("Quiz a developer")


def test_run_mcp_rejects_unknown_transport():
    result = CliRunner().invoke(run_mcp, ["--mcp-transport", "carrier-pigeon"])

    assert result.exit_code == 2
    assert "Invalid value for '--mcp-transport'" in result.output


@pytest.fixture
async def main_mcp_client() -> AsyncGenerator[Client[FastMCPTransport], Any]:
    async with Client[FastMCPTransport](transport=mcp) as mcp_client:
        yield mcp_client


async def test_list_tools(main_mcp_client: Client[FastMCPTransport]):
    list_tools = await main_mcp_client.list_tools()
    assert dump_list_for_snapshot(list_tools, exclude_keys=["inputSchema", "outputSchema", "meta", "annotations"]) == snapshot(
        [
            {
                "name": "get_branch_diff",
                "description": "Get the changed files, commits and unified diff of the current branch against its base branch.",
            },
            {
                "name": "summarize_branch",
                "description": """\
Summarize the changes on the current branch: an overview, the changes grouped by category, the inferred
intent of the branch and the key files to review.\
""",
            },
            {
                "name": "get_question_prompt",
                "description": """\
Get the prompt for writing a comprehension quiz about the current branch. Use this to write the questions
yourself when you cannot use `generate_questions`.\
""",
            },
            {
                "name": "generate_questions",
                "description": "Generate a multiple choice comprehension quiz about the changes on the current branch.",
            },
            {
                "name": "present_question",
                "description": "Format a question for the user question prompt, with a trailing option to skip it.",
            },
            {"name": "check_answer", "description": "Grade the user's answer to a question and get the feedback to show them."},
            {
                "name": "save_vibe_debt",
                "description": """\
Finish a quiz: unanswered questions are marked as skipped, and the skipped and incorrectly answered
questions are saved as vibe debt in the repository.\
""",
            },
            {"name": "list_vibe_debt", "description": "List the vibe debt files saved in the repository."},
            {
                "name": "get_vibe_debt_instructions",
                "description": """\
Get instructions and shell commands for saving vibe debt files yourself, for when you cannot use
`save_vibe_debt`.\
""",
            },
        ]
    )
