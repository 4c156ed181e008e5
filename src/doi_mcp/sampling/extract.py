import json
from textwrap import dedent
from typing import Any

from pydantic import BaseModel, TypeAdapter

JSON_FENCE = "```"


def output_format_instructions[T: BaseModel](object_type: type[T]) -> str:
    """Return instructions asking for a single JSON block matching the schema of `object_type`."""

    json_schema: dict[str, Any] = TypeAdapter[T](object_type).json_schema()

    return dedent(
        f"""
The only valid response to this request is a structured object of type {object_type.__name__}.

The schema for the object is:
```json
{json.dumps(obj=json_schema, indent=1)}
```

The JSON itself must be placed between ```json and ``` tags, and there must be exactly one such block in
your response. Format the JSON densely, using a single space for indentation. Close every array, object
and string and do not leave trailing commas."""
    ).strip()


def extract_json_blocks(text: str) -> list[str]:
    """Extract the contents of every fenced block in a text string."""

    blocks: list[str] = []
    block_lines: list[str] | None = None

    for line in text.strip().splitlines():
        if line.strip().startswith(JSON_FENCE):
            if block_lines is None:
                block_lines = []
            else:
                blocks.append("\n".join(block_lines))
                block_lines = None
            continue

        if block_lines is not None:
            block_lines.append(line)

    return blocks


def extract_object_from_text[T: BaseModel](text: str, object_type: type[T]) -> T:
    """Extract an object from the single Markdown JSON block in the text string.

    For example:
    Here is the quiz:
    ```json
    {"branch_name": "feature/login", "questions": []}
    ```
    """

    blocks: list[str] = extract_json_blocks(text)

    if len(blocks) != 1:
        msg = f"Text must contain exactly one Markdown JSON block, found {len(blocks)}."
        raise ValueError(msg)

    return TypeAdapter[T](object_type).validate_json(blocks[0])
