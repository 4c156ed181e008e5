import pytest
from pydantic import BaseModel, Field, ValidationError

from doi_mcp.sampling.extract import extract_json_blocks, extract_object_from_text, output_format_instructions


class StructuredObject(BaseModel):
    """A structured object docstring."""

    name: str = Field(description="The name of the object.")
    age: int = Field(description="The age of the object.")


def test_output_format_instructions():
    instructions = output_format_instructions(StructuredObject)

    assert instructions.startswith("The only valid response to this request is a structured object of type StructuredObject.")
    assert '"description": "A structured object docstring."' in instructions
    assert instructions.endswith("Close every array, object\nand string and do not leave trailing commas.")


def test_extract_json_blocks():
    text = """
    This is a test text that occurs before the json block.
    ```json
    {
        "name": "John",
        "age": 30
    }
    ```

    ```json
    {"name": "Jane", "age": 31}
    ```
    And some text after.
    """

    blocks = extract_json_blocks(text)

    assert len(blocks) == 2
    assert StructuredObject.model_validate_json(blocks[0]) == StructuredObject(name="John", age=30)
    assert StructuredObject.model_validate_json(blocks[1]) == StructuredObject(name="Jane", age=31)


def test_extract_json_blocks_unclosed():
    assert extract_json_blocks('```json\n{"name": "John"') == []


def test_extract_object_from_text():
    text = 'Here you go:\n```json\n{"name": "John", "age": 30}\n```'

    assert extract_object_from_text(text, StructuredObject) == StructuredObject(name="John", age=30)


@pytest.mark.parametrize(
    "text",
    [
        '{"name": "John", "age": 30}',
        '```json\n{"name": "John", "age": 30}\n```\n```json\n{"name": "Jane", "age": 31}\n```',
    ],
)
def test_extract_object_from_text_wrong_block_count(text: str):
    with pytest.raises(ValueError, match="exactly one Markdown JSON block"):
        _ = extract_object_from_text(text, StructuredObject)


def test_extract_object_from_text_invalid_object():
    with pytest.raises(ValidationError):
        _ = extract_object_from_text('```json\n{"name": "John"}\n```', StructuredObject)
