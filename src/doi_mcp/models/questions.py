from typing import Literal

from pydantic import BaseModel, Field, field_validator

QuestionCategory = Literal["why", "what", "how", "impact", "edge-case"]

QUESTION_CATEGORIES: tuple[QuestionCategory, ...] = ("why", "what", "how", "impact", "edge-case")

AnswerKey = Literal["A", "B", "C", "D"]

ANSWER_KEYS: tuple[AnswerKey, ...] = ("A", "B", "C", "D")


class MCQuestion(BaseModel):
    """A multiple choice question about the changes on a branch."""

    id: str = Field(description="A unique id for the question, for example `q_why_1`.")
    category: QuestionCategory = Field(description="What kind of understanding the question checks.")
    question: str = Field(description="The question text.")
    options: dict[AnswerKey, str] = Field(description="Exactly four answer options keyed A, B, C and D.")
    correct_answer: AnswerKey = Field(description="The key of the correct option.")
    explanation: str = Field(description="Why the correct answer is correct, referencing the code.")
    related_files: list[str] = Field(default_factory=list, description="The files the question is about.")

    @field_validator("options")
    @classmethod
    def validate_options(cls, options: dict[AnswerKey, str]) -> dict[AnswerKey, str]:
        if set(options) != set(ANSWER_KEYS):
            msg = f"Questions must have exactly the options {', '.join(ANSWER_KEYS)}"
            raise ValueError(msg)

        return {key: options[key] for key in ANSWER_KEYS}


class QuestionSet(BaseModel):
    """The questions for a single quiz."""

    branch_name: str = Field(description="The branch the questions are about.")
    questions: list[MCQuestion] = Field(default_factory=list, description="The questions, in the order they should be asked.")
    recommended_count: int = Field(default=0, ge=0, description="The number of questions recommended for the size of the change.")
