import os

from pydantic import BaseModel, Field, model_validator

DEFAULT_BASE_BRANCHES = ["main", "master"]


class DoiConfig(BaseModel):
    """Settings for a quiz run."""

    base_branches: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BASE_BRANCHES),
        description="The branches to compare against, in order of preference.",
    )
    min_questions: int = Field(default=3, ge=1, description="The minimum number of questions in a quiz.")
    max_questions: int = Field(default=10, ge=1, description="The maximum number of questions in a quiz.")
    key_file_limit: int = Field(default=5, ge=0, description="The number of key files to highlight in a summary.")
    vibe_debt_dir: str = Field(default="VibeDebt", description="The directory, relative to the project root, for vibe debt files.")
    max_patch_characters: int = Field(
        default=60000, ge=0, description="The number of characters of the unified diff to include in question prompts."
    )

    @model_validator(mode="after")
    def validate_question_bounds(self) -> "DoiConfig":
        if self.min_questions > self.max_questions:
            msg = f"min_questions ({self.min_questions}) must not exceed max_questions ({self.max_questions})"
            raise ValueError(msg)
        return self


DEFAULT_CONFIG = DoiConfig()


def get_base_branches() -> list[str]:
    if not (base_branches := os.getenv("DOI_BASE_BRANCHES")):
        return list(DEFAULT_BASE_BRANCHES)

    return [branch.strip() for branch in base_branches.split(",") if branch.strip()]


def get_config() -> DoiConfig:
    return DoiConfig(
        base_branches=get_base_branches(),
        min_questions=int(os.getenv("DOI_MIN_QUESTIONS", str(DEFAULT_CONFIG.min_questions))),
        max_questions=int(os.getenv("DOI_MAX_QUESTIONS", str(DEFAULT_CONFIG.max_questions))),
        key_file_limit=int(os.getenv("DOI_KEY_FILE_LIMIT", str(DEFAULT_CONFIG.key_file_limit))),
        vibe_debt_dir=os.getenv("DOI_VIBE_DEBT_DIR", DEFAULT_CONFIG.vibe_debt_dir),
        max_patch_characters=int(os.getenv("DOI_MAX_PATCH_CHARACTERS", str(DEFAULT_CONFIG.max_patch_characters))),
    )
