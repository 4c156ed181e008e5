from typing import Self

import yaml
from mcp.types import SamplingMessage
from pydantic import BaseModel, Field

from doi_mcp.models.git import GitDiff
from doi_mcp.models.summary import DiffSummary
from doi_mcp.questions.generate import (
    DISTRACTOR_GUIDELINES,
    QUESTION_GENERATION_GUIDELINES,
    QUESTION_TEMPLATES,
    distribute_question_categories,
    plan_question_ids,
)
from doi_mcp.sampling.utility import new_user_sampling_message


class PromptSection(BaseModel):
    title: str = Field(description="The title of the section.")
    level: int = Field(default=1, description="The level of the section.")
    section: str = Field(description="The section of the prompt.")

    def render_text(self) -> str:
        return f"{'#' * self.level} {self.title}\n{self.section.strip()}"


WHO_YOU_ARE = PromptSection(
    title="Who you are",
    section="""
You are a senior engineer pairing with a developer who has just finished a branch, much of it written with an AI
assistant. Your job is to check that the developer actually understands the code they are about to merge by writing
a short multiple choice quiz about their change.
""",
)

DEEPLY_ROOTED = PromptSection(
    title="Deeply Rooted",
    section="""
Every question, option and explanation must be rooted in the diff you are given. Do not invent functions, files or
behavior that do not appear in the diff. If the diff is truncated, only ask about the part you can see.
""",
)

RESPONSE_FORMAT = PromptSection(
    title="Response Format",
    section="""
Respond with the quiz only. Do not acknowledge the task or describe what you are about to do.
""",
)

QUESTION_SYSTEM_PROMPT: str = "\n\n".join(section.render_text() for section in [WHO_YOU_ARE, DEEPLY_ROOTED, RESPONSE_FORMAT])


def dump_yaml(value: object) -> str:
    return yaml.safe_dump(value, sort_keys=False, indent=1, width=400)


class PromptBuilder(BaseModel):
    sections: list[PromptSection] = Field(default_factory=list, description="The sections of the prompt.")

    def add_text_section(self, title: str, text: str | list[str], level: int = 1) -> Self:
        if isinstance(text, list):
            text = "\n".join(text)

        self.sections.append(PromptSection(title=title, level=level, section=text))

        return self

    def add_code_section(self, title: str, code: str, language: str, level: int = 1) -> Self:
        self.sections.append(PromptSection(title=title, level=level, section=f"```{language}\n{code}\n```"))

        return self

    def add_yaml_section(self, title: str, obj: BaseModel | dict | list, level: int = 1) -> Self:
        if isinstance(obj, BaseModel):
            obj = obj.model_dump(mode="json")

        return self.add_code_section(title=title, code=dump_yaml(obj).strip(), language="yaml", level=level)

    def render_text(self) -> str:
        return "\n\n".join(section.render_text() for section in self.sections)

    def to_sampling_messages(self) -> list[SamplingMessage]:
        return [new_user_sampling_message(content=self.render_text())]


def build_question_prompt(diff: GitDiff, summary: DiffSummary, question_count: int) -> PromptBuilder:
    """Build the user prompt asking for `question_count` questions about the branch."""

    planned = plan_question_ids(distribute_question_categories(question_count))

    builder = PromptBuilder()

    _ = builder.add_text_section(
        title="Branch",
        text=[
            f"Branch `{diff.context.current_branch}` compared against `{diff.context.base_branch}`.",
            f"Overview: {summary.overview}",
            f"Inferred intent: {summary.inferred_intent}",
        ],
    )

    _ = builder.add_yaml_section(
        title="Changes",
        obj={
            "changes": [change.model_dump(mode="json") for change in summary.changes],
            "key_files": summary.key_files,
            "stats": summary.stats.model_dump(mode="json"),
        },
    )

    if diff.commits:
        _ = builder.add_text_section(
            title="Commits",
            text=[f"- {commit.short_hash} {commit.message}" for commit in diff.commits],
        )

    example_file: str = summary.key_files[0] if summary.key_files else "the changed file"

    _ = builder.add_text_section(
        title="Questions To Write",
        text=[
            f"Write exactly {question_count} questions with the following ids and categories, in this order:",
            *[
                f"- `{question_id}` ({category}), for example: {QUESTION_TEMPLATES[category][0].format(file=example_file)}"
                for question_id, category in planned
            ],
            f"Use `{diff.context.current_branch}` as the `branch_name` of the quiz and {question_count} as the `recommended_count`.",
        ],
    )

    _ = builder.add_text_section(title="Question Guidelines", text=QUESTION_GENERATION_GUIDELINES)
    _ = builder.add_text_section(title="Distractor Guidelines", text=DISTRACTOR_GUIDELINES)

    diff_title = "Unified Diff (truncated)" if diff.patch_truncated else "Unified Diff"
    _ = builder.add_code_section(title=diff_title, code=diff.patch, language="diff")

    return builder
