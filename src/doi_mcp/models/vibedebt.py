from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from doi_mcp.models.questions import AnswerKey, QuestionCategory

SCHEMA_VERSION = 1


class CamelModel(BaseModel):
    """Vibe debt files are shared with other tooling and use camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VibeDebtQuestion(CamelModel):
    id: str
    question: str
    options: dict[AnswerKey, str]
    correct_answer: AnswerKey
    explanation: str
    status: Literal["skipped", "incorrect"]
    user_answer: AnswerKey | None = None
    related_files: list[str] = Field(default_factory=list)
    category: QuestionCategory


class VibeDebtDiffSummary(CamelModel):
    overview: str = ""
    files_changed: list[str] = Field(default_factory=list)
    lines_added: int = 0
    lines_removed: int = 0


class VibeDebtStats(CamelModel):
    total_questions: int = 0
    correct: int = 0
    incorrect: int = 0
    skipped: int = 0
    vibe_debt_percent: int = 0


class VibeDebtRecord(CamelModel):
    """The contents of a single vibe debt file."""

    branch_name: str = Field(min_length=1)
    date: str = Field(min_length=1, description="The date of the quiz, formatted YYYY-MM-DD.")
    diff_summary: VibeDebtDiffSummary = Field(default_factory=VibeDebtDiffSummary)
    vibe_debt: list[VibeDebtQuestion]
    stats: VibeDebtStats = Field(default_factory=VibeDebtStats)
    schema_version: int = SCHEMA_VERSION
