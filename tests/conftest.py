from collections.abc import Sequence
from pathlib import Path
from typing import Any, overload

import pytest
from fastmcp import FastMCP
from fastmcp.client.client import CallToolResult
from fastmcp.server.middleware.logging import StructuredLoggingMiddleware
from git.repo import Repo
from pydantic import BaseModel

from doi_mcp.git.extract import calculate_stats
from doi_mcp.models.git import BranchCommit, ChangedFile, ChangeType, GitContext, GitDiff
from doi_mcp.models.questions import AnswerKey, MCQuestion, QuestionCategory

FEATURE_BRANCH = "feature/login-flow"

LOGIN_MODULE = '''def login(username: str, password: str) -> bool:
    if not username or not password:
        return False

    return check_password(username, password)


def check_password(username: str, password: str) -> bool:
    return password == "hunter2"
'''


def make_file(
    path: str, change_type: ChangeType = "modified", lines_added: int = 0, lines_removed: int = 0, old_path: str | None = None
) -> ChangedFile:
    return ChangedFile(path=path, change_type=change_type, lines_added=lines_added, lines_removed=lines_removed, old_path=old_path)


def make_diff(
    files: Sequence[ChangedFile],
    current_branch: str = FEATURE_BRANCH,
    commits: Sequence[BranchCommit] | None = None,
    patch: str = "",
) -> GitDiff:
    return GitDiff(
        context=GitContext(repository_path="/repo", current_branch=current_branch, base_branch="main"),
        files=list(files),
        stats=calculate_stats(files),
        commits=list(commits or []),
        patch=patch,
    )


def make_question(
    question_id: str = "q_why_1",
    category: QuestionCategory = "why",
    correct_answer: AnswerKey = "B",
    related_files: list[str] | None = None,
) -> MCQuestion:
    return MCQuestion.model_validate(
        {
            "id": question_id,
            "category": category,
            "question": "Why does login return early?",
            "options": {
                "A": "To log the failed attempt",
                "B": "To reject empty credentials",
                "C": "To retry the password check",
                "D": "To cache the session",
            },
            "correct_answer": correct_answer,
            "explanation": "login returns False before calling check_password when either credential is empty.",
            "related_files": related_files or ["src/auth/login.py"],
        }
    )


def commit_file(repo: Repo, path: str, content: str, message: str) -> None:
    file_path = Path(repo.working_tree_dir or ".") / path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    _ = file_path.write_text(content)
    _ = repo.index.add([path])
    _ = repo.index.commit(message)


@pytest.fixture
def git_repository(tmp_path: Path) -> Repo:
    """A repository with a `main` branch and a checked out `feature/login-flow` branch with two commits."""

    repo = Repo.init(tmp_path / "project", initial_branch="main")

    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")

    commit_file(repo, "README.md", "# Project\n", "Initial commit")
    commit_file(repo, "src/app.py", "print('hello')\n", "Add app")

    _ = repo.git.checkout("-b", FEATURE_BRANCH)

    commit_file(repo, "src/auth/login.py", LOGIN_MODULE, "Add login")
    commit_file(repo, "README.md", "# Project\n\nNow with login.\n", "Document login")

    return repo


@pytest.fixture
def logging_middleware() -> StructuredLoggingMiddleware:
    return StructuredLoggingMiddleware(include_payloads=True)


@pytest.fixture
def fastmcp(logging_middleware: StructuredLoggingMiddleware):
    return FastMCP(
        name="Doi MCP",
        middleware=[logging_middleware],
    )


def handle_exclude_keys(dictionary: dict[str, Any], exclude_keys: list[str] | None = None) -> dict[str, Any]:
    if exclude_keys is None:
        return dictionary
    return {key: value for key, value in dictionary.items() if key not in exclude_keys}


@overload
def dump_for_snapshot(
    basemodel: None,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> None: ...


@overload
def dump_for_snapshot(
    basemodel: BaseModel,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> dict[str, Any]: ...


def dump_for_snapshot(
    basemodel: None | BaseModel,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> dict[str, Any] | None:
    if basemodel is None:
        return None

    return handle_exclude_keys(basemodel.model_dump(exclude_none=exclude_none, **dump_kwargs), exclude_keys)


def dump_list_for_snapshot(
    basemodel: None | Sequence[BaseModel],
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> list[dict[str, Any]] | None:
    if basemodel is None:
        return []

    return [dump_for_snapshot(item, exclude_keys, exclude_none, **dump_kwargs) for item in basemodel]


def dump_call_tool_result_for_snapshot(
    call_tool_result: CallToolResult,
    /,
) -> dict[str, Any]:
    return {
        "content": [item.model_dump() for item in call_tool_result.content],
        "structured_content": call_tool_result.structured_content,
    }
