from logging import Logger
from typing import Literal

import click
from fastmcp import FastMCP
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.utilities.logging import configure_logging, get_logger

from doi_mcp.config import DoiConfig, get_config
from doi_mcp.sampling.handler import get_sampling_handler
from doi_mcp.servers.doi import DoiServer

configure_logging()

logger: Logger = get_logger(name=__name__)

INSTRUCTIONS = """
Quiz a developer on the changes on their branch before they merge it.

1. Call `summarize_branch` and show the developer the overview and key files.
2. Call `generate_questions` (or `get_question_prompt` and write the questions yourself).
3. For each question, call `present_question` and ask the developer, then call `check_answer` and show the feedback.
4. When the quiz is over, call `save_vibe_debt` with the session to record the skipped and incorrect questions.
"""


def new_mcp_server(config: DoiConfig | None = None) -> FastMCP[None]:
    mcp: FastMCP[None] = FastMCP[None](
        name="Doi MCP",
        instructions=INSTRUCTIONS.strip(),
        sampling_handler=get_sampling_handler(),
    )

    mcp.add_middleware(middleware=LoggingMiddleware(include_payloads=True, logger=logger))

    doi_server: DoiServer = DoiServer(config=config or get_config(), logger=logger)
    _ = doi_server.register_tools(fastmcp=mcp)

    return mcp


mcp: FastMCP[None] = new_mcp_server()


@click.command()
@click.option(
    "--mcp-transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    help="The transport to run the MCP server on",
)
def run_mcp(mcp_transport: Literal["stdio", "streamable-http"]):
    mcp.run(transport=mcp_transport)


if __name__ == "__main__":
    run_mcp()
