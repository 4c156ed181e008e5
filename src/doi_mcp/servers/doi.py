import asyncio
from logging import Logger
from typing import Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field

from doi_mcp.analyzer.summarize import generate_diff_summary
from doi_mcp.clients.git import LocalGitClient
from doi_mcp.config import DoiConfig, get_config
from doi_mcp.errors import SamplingSupportRequiredError
from doi_mcp.models.git import GitDiff
from doi_mcp.models.questions import MCQuestion, QuestionSet
from doi_mcp.models.quiz import QuestionResult, QuizSession, QuizStats
from doi_mcp.models.summary import DiffSummary
from doi_mcp.models.vibedebt import VibeDebtRecord
from doi_mcp.questions.generate import calculate_recommended_question_count
from doi_mcp.questions.prompts import QUESTION_SYSTEM_PROMPT, PromptBuilder, build_question_prompt
from doi_mcp.quiz.interactive import (
    calculate_stats_from_results,
    format_question_for_presentation,
    generate_feedback,
    generate_results_summary,
    grade_answer,
    skip_remaining,
)
from doi_mcp.sampling.extract import output_format_instructions
from doi_mcp.sampling.utility import sampling_is_supported, structured_sample
from doi_mcp.servers.shared.annotations import (
    ANSWER,
    BASE_BRANCH,
    QUESTION_COUNT,
    QUESTION_INDEX,
    QUESTION_TOTAL,
    REPOSITORY_PATH,
)
from doi_mcp.storage.vibedebt import (
    GITIGNORE_SUGGESTION,
    STORAGE_COMMANDS,
    WRITE_INSTRUCTIONS,
    create_vibe_debt_record,
    get_vibe_debt_dir,
    list_vibe_debt_files,
    write_vibe_debt_record,
)


class QuestionPrompt(BaseModel):
    """A prompt for writing the quiz, for hosts that generate questions with their own model."""

    system_prompt: str = Field(description="The system prompt to write the questions with.")
    user_prompt: str = Field(description="The user prompt describing the change and the questions to write.")
    question_count: int = Field(description="The number of questions the prompt asks for.")


class AnswerFeedback(BaseModel):
    """The graded answer to a question."""

    result: QuestionResult
    feedback: str = Field(description="The feedback to show the user.")


class VibeDebtReport(BaseModel):
    """The outcome of a finished quiz."""

    path: str | None = Field(description="The vibe debt file that was written, or null when there was no vibe debt.")
    stats: QuizStats
    results_summary: str = Field(description="The results summary to show the user.")
    record: VibeDebtRecord


class VibeDebtInstructions(BaseModel):
    """How to save vibe debt files with the host's own file tools."""

    vibe_debt_dir: str = Field(description="The directory vibe debt files are saved in.")
    write_instructions: str = Field(description="Step by step instructions for writing a vibe debt file.")
    commands: dict[str, str] = Field(description="Shell commands for working with the vibe debt directory.")
    gitignore_suggestion: str = Field(description="A .gitignore snippet for keeping vibe debt out of the repository.")


class DoiServer:
    """Tools for quizzing a developer on the changes on their branch."""

    config: DoiConfig
    logger: Logger

    def __init__(self, config: DoiConfig | None = None, logger: Logger | None = None):
        self.config = config or get_config()
        self.logger = logger or get_logger(name=__name__)

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.get_branch_diff))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.summarize_branch))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.get_question_prompt))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.generate_questions))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.present_question))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.check_answer))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.save_vibe_debt))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.list_vibe_debt))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.get_vibe_debt_instructions))

        return fastmcp

    def require_sampling_support(self) -> None:
        """Raise a SamplingSupportRequiredError if the client does not support sampling."""

        if not sampling_is_supported():
            self.logger.warning("A connected client does not support sampling. Sampling support is required to generate questions.")

            raise SamplingSupportRequiredError

    def _git_client(self, repository_path: str) -> LocalGitClient:
        return LocalGitClient(
            repository_path=repository_path,
            base_branches=self.config.base_branches,
            max_patch_characters=self.config.max_patch_characters,
            logger=self.logger,
        )

    def _collect_diff(self, repository_path: str, base_branch: str | None) -> GitDiff:
        return self._git_client(repository_path).get_diff(base_branch=base_branch)

    def _question_count(self, summary: DiffSummary, question_count: int | None) -> int:
        if question_count is None:
            return calculate_recommended_question_count(summary, config=self.config)

        return max(self.config.min_questions, min(self.config.max_questions, question_count))

    async def get_branch_diff(self, repository_path: REPOSITORY_PATH = ".", base_branch: BASE_BRANCH = None) -> GitDiff:
        """Get the changed files, commits and unified diff of the current branch against its base branch."""

        return await asyncio.to_thread(self._collect_diff, repository_path, base_branch)

    async def summarize_branch(self, repository_path: REPOSITORY_PATH = ".", base_branch: BASE_BRANCH = None) -> DiffSummary:
        """Summarize the changes on the current branch: an overview, the changes grouped by category, the inferred
        intent of the branch and the key files to review."""

        diff: GitDiff = await self.get_branch_diff(repository_path=repository_path, base_branch=base_branch)

        return generate_diff_summary(diff, key_file_limit=self.config.key_file_limit)

    async def get_question_prompt(
        self, repository_path: REPOSITORY_PATH = ".", base_branch: BASE_BRANCH = None, question_count: QUESTION_COUNT = None
    ) -> QuestionPrompt:
        """Get the prompt for writing a comprehension quiz about the current branch. Use this to write the questions
        yourself when you cannot use `generate_questions`."""

        diff: GitDiff = await self.get_branch_diff(repository_path=repository_path, base_branch=base_branch)
        summary: DiffSummary = generate_diff_summary(diff, key_file_limit=self.config.key_file_limit)
        count: int = self._question_count(summary, question_count)

        builder: PromptBuilder = build_question_prompt(diff=diff, summary=summary, question_count=count)
        _ = builder.add_text_section(title="Output Format", text=output_format_instructions(QuestionSet))

        return QuestionPrompt(system_prompt=QUESTION_SYSTEM_PROMPT, user_prompt=builder.render_text(), question_count=count)

    async def generate_questions(
        self, repository_path: REPOSITORY_PATH = ".", base_branch: BASE_BRANCH = None, question_count: QUESTION_COUNT = None
    ) -> QuestionSet:
        """Generate a multiple choice comprehension quiz about the changes on the current branch."""

        self.require_sampling_support()

        diff: GitDiff = await self.get_branch_diff(repository_path=repository_path, base_branch=base_branch)
        summary: DiffSummary = generate_diff_summary(diff, key_file_limit=self.config.key_file_limit)
        count: int = self._question_count(summary, question_count)

        self.logger.info(f"Generating {count} questions for {diff.context.current_branch}.")

        builder: PromptBuilder = build_question_prompt(diff=diff, summary=summary, question_count=count)

        question_set: QuestionSet = await structured_sample(
            system_prompt=QUESTION_SYSTEM_PROMPT,
            messages=builder.to_sampling_messages(),
            response_model=QuestionSet,
            max_tokens=8000,
            temperature=0.3,
        )

        self.logger.info(f"Generated {len(question_set.questions)} questions for {diff.context.current_branch}.")

        return question_set.model_copy(
            update={
                "branch_name": diff.context.current_branch,
                "questions": question_set.questions[:count],
                "recommended_count": count,
            }
        )

    async def present_question(self, question: MCQuestion, index: QUESTION_INDEX, total: QUESTION_TOTAL) -> dict[str, Any]:
        """Format a question for the user question prompt, with a trailing option to skip it."""

        return format_question_for_presentation(question=question, index=index, total=total)

    async def check_answer(self, question: MCQuestion, answer: ANSWER = None) -> AnswerFeedback:
        """Grade the user's answer to a question and get the feedback to show them."""

        result: QuestionResult = grade_answer(question=question, answer=answer)

        return AnswerFeedback(result=result, feedback=generate_feedback(result))

    async def save_vibe_debt(self, session: QuizSession, repository_path: REPOSITORY_PATH = ".") -> VibeDebtReport:
        """Finish a quiz: unanswered questions are marked as skipped, and the skipped and incorrectly answered
        questions are saved as vibe debt in the repository."""

        results: list[QuestionResult] = skip_remaining(session.results)
        stats: QuizStats = calculate_stats_from_results(results)

        record: VibeDebtRecord = create_vibe_debt_record(
            branch_name=session.branch_name, summary=session.summary, results=results, stats=stats
        )

        path: str | None = None

        if record.vibe_debt:
            git_client: LocalGitClient = await asyncio.to_thread(self._git_client, repository_path)
            written = await write_vibe_debt_record(
                record=record, project_root=git_client.repository_path, directory_name=self.config.vibe_debt_dir
            )
            path = str(written)
        else:
            self.logger.info(f"No vibe debt for {session.branch_name}, nothing to save.")

        return VibeDebtReport(path=path, stats=stats, results_summary=generate_results_summary(stats), record=record)

    async def list_vibe_debt(self, repository_path: REPOSITORY_PATH = ".") -> list[str]:
        """List the vibe debt files saved in the repository."""

        git_client: LocalGitClient = await asyncio.to_thread(self._git_client, repository_path)

        return [
            str(path.relative_to(git_client.repository_path))
            for path in list_vibe_debt_files(git_client.repository_path, directory_name=self.config.vibe_debt_dir)
        ]

    async def get_vibe_debt_instructions(self, repository_path: REPOSITORY_PATH = ".") -> VibeDebtInstructions:
        """Get instructions and shell commands for saving vibe debt files yourself, for when you cannot use
        `save_vibe_debt`."""

        git_client: LocalGitClient = await asyncio.to_thread(self._git_client, repository_path)

        directory_commands: list[str] = ["create_dir", "check_dir", "list_files"]

        return VibeDebtInstructions(
            vibe_debt_dir=str(get_vibe_debt_dir(git_client.repository_path, directory_name=self.config.vibe_debt_dir)),
            write_instructions=WRITE_INSTRUCTIONS.strip(),
            commands={name: STORAGE_COMMANDS[name](git_client.repository_path, self.config.vibe_debt_dir) for name in directory_commands},
            gitignore_suggestion=GITIGNORE_SUGGESTION.strip(),
        )
