from collections.abc import Sequence
from typing import TYPE_CHECKING

from fastmcp.server.dependencies import get_context
from fastmcp.utilities.logging import get_logger
from mcp.types import ClientCapabilities, ModelPreferences, SamplingCapability, SamplingMessage, TextContent
from pydantic import BaseModel

from doi_mcp.errors import StructuredSamplingValidationError
from doi_mcp.sampling.extract import extract_object_from_text, output_format_instructions

if TYPE_CHECKING:
    from fastmcp.server import Context

logger = get_logger(__name__)

CHARACTERS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    return len(text) // CHARACTERS_PER_TOKEN


def estimate_prompt_tokens(system_prompt: str, messages: Sequence[SamplingMessage]) -> int:
    message_text: list[str] = [message.content.text for message in messages if isinstance(message.content, TextContent)]

    return estimate_tokens(system_prompt) + sum(estimate_tokens(text) for text in message_text)


def new_user_sampling_message(content: str | list[str]) -> SamplingMessage:
    text: str = "\n".join(content) if isinstance(content, list) else content

    return SamplingMessage(role="user", content=TextContent(type="text", text=text))


async def sample(
    system_prompt: str,
    messages: Sequence[SamplingMessage],
    *,
    max_tokens: int = 2000,
    temperature: float = 0.0,
    model_preferences: ModelPreferences | None = None,
) -> str:
    """Sample a text response from the client, or from the server's sampling handler when one is configured."""

    context: Context = get_context()

    logger.info(f"Sampling {len(messages)} messages, about {estimate_prompt_tokens(system_prompt, messages)} tokens.")

    response = await context.sample(
        messages=list(messages),
        system_prompt=system_prompt,
        max_tokens=max_tokens,
        temperature=temperature,
        model_preferences=model_preferences,
    )

    if not isinstance(response, TextContent):
        msg = f"Expected a text response from sampling, got {type(response).__name__}."
        raise TypeError(msg)

    logger.info(f"Sampled a response of about {estimate_tokens(response.text)} tokens.")

    return response.text


async def structured_sample[T: BaseModel](
    system_prompt: str,
    messages: Sequence[SamplingMessage],
    *,
    response_model: type[T],
    max_tokens: int = 2000,
    temperature: float = 0.0,
    model_preferences: ModelPreferences | None = None,
) -> T:
    """Sample a response and parse it into `response_model`.

    Raises:
        StructuredSamplingValidationError: If the response does not contain exactly one valid JSON block.
    """

    format_message: SamplingMessage = new_user_sampling_message(content=output_format_instructions(response_model))

    text: str = await sample(
        system_prompt,
        [*messages, format_message],
        max_tokens=max_tokens,
        temperature=temperature,
        model_preferences=model_preferences,
    )

    try:
        return extract_object_from_text(text, object_type=response_model)
    except ValueError as e:
        logger.warning(f"The sampled response is not a valid {response_model.__name__}: {e}")
        raise StructuredSamplingValidationError(object_type=response_model.__name__, message=str(e)) from e


def sampling_is_supported() -> bool:
    """Whether questions can be sampled: through the server's own handler, or through the connected client."""

    context: Context = get_context()

    if context.fastmcp.sampling_handler is not None:
        return True

    return context.session.check_client_capability(capability=ClientCapabilities(sampling=SamplingCapability()))
