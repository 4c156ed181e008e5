import os

from fastmcp.experimental.sampling.handlers.openai import OpenAISamplingHandler
from fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)

DEFAULT_OPENAI_MODEL = "gpt-4o"


def get_sampling_handler() -> OpenAISamplingHandler | None:
    """Build a server-side sampling handler, used when the connected client cannot write the questions itself."""

    if not os.getenv("OPENAI_API_KEY"):
        logger.warning(
            "OPENAI_API_KEY is not set. Questions can only be generated for clients that support sampling, "
            "other clients can use `get_question_prompt` instead."
        )
        return None

    model: str = os.getenv("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL

    logger.info(f"Using the OpenAI sampling handler with {model}.")

    return OpenAISamplingHandler(default_model=model)  # pyright: ignore[reportArgumentType]
