from enum import Enum

from pydantic import BaseModel, Field

from doi_mcp.models.git import DiffStats


class ChangeCategory(str, Enum):
    NEW_FEATURE = "new-feature"
    MODIFIED_LOGIC = "modified-logic"
    REFACTORING = "refactoring"
    DELETION = "deletion"
    CONFIGURATION = "configuration"
    TESTING = "testing"
    DOCUMENTATION = "documentation"


# Summaries list categories in this order, most important first.
CATEGORY_PRIORITY: tuple[ChangeCategory, ...] = (
    ChangeCategory.NEW_FEATURE,
    ChangeCategory.MODIFIED_LOGIC,
    ChangeCategory.REFACTORING,
    ChangeCategory.DELETION,
    ChangeCategory.CONFIGURATION,
    ChangeCategory.TESTING,
    ChangeCategory.DOCUMENTATION,
)


class CategorizedChange(BaseModel):
    """A group of changed files that share a category."""

    category: ChangeCategory = Field(description="The category of the changes.")
    description: str = Field(description="A human-readable description of the changes.")
    files: list[str] = Field(default_factory=list, description="The paths of the files in this category.")


class DiffSummary(BaseModel):
    """A categorized, ranked and intent-annotated summary of a branch's diff."""

    overview: str = Field(description="A one sentence overview of the change.")
    changes: list[CategorizedChange] = Field(default_factory=list, description="The changes, grouped by category.")
    inferred_intent: str = Field(description="The inferred purpose of the branch.")
    key_files: list[str] = Field(default_factory=list, description="The files most worth reviewing, most important first.")
    stats: DiffStats = Field(default_factory=DiffStats)
    files_changed: list[str] = Field(default_factory=list, description="The paths of every changed file.")
