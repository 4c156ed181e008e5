from typing import Literal

from pydantic import BaseModel, Field

from doi_mcp.models.questions import AnswerKey, MCQuestion
from doi_mcp.models.summary import DiffSummary

QuestionStatus = Literal["pending", "correct", "incorrect", "skipped"]


class QuestionResult(BaseModel):
    """The outcome of asking a single question."""

    question: MCQuestion
    status: QuestionStatus = "pending"
    user_answer: AnswerKey | None = Field(default=None, description="The option the user picked, if any.")

    @property
    def is_debt(self) -> bool:
        return self.status in ("skipped", "incorrect")


class QuizStats(BaseModel):
    total_questions: int = Field(default=0, ge=0)
    correct: int = Field(default=0, ge=0)
    incorrect: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    vibe_debt_percent: int = Field(default=0, ge=0, le=100, description="The share of questions that became vibe debt.")

    @property
    def answered(self) -> int:
        return self.correct + self.incorrect + self.skipped


class QuizSession(BaseModel):
    """A finished or in-progress quiz, as reported back by the host."""

    branch_name: str
    summary: DiffSummary
    results: list[QuestionResult] = Field(default_factory=list)
