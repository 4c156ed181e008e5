from collections.abc import Sequence
from logging import Logger
from pathlib import Path

from fastmcp.utilities.logging import get_logger
from git.exc import GitCommandError as GitPythonCommandError
from git.exc import InvalidGitRepositoryError, NoSuchPathError
from git.repo import Repo

from doi_mcp.config import DEFAULT_CONFIG
from doi_mcp.errors import GitCommandError, GitContextError, RepositoryNotFoundError
from doi_mcp.git.extract import (
    calculate_stats,
    git_command_args,
    merge_file_data,
    parse_commit_log,
    parse_name_status,
    parse_numstat,
    render_git_command,
    truncate_patch,
    validate_context,
)
from doi_mcp.models.git import BranchCommit, ChangedFile, GitContext, GitDiff


class LocalGitClient:
    """Reads the changes on the checked out branch of a local repository."""

    repository: Repo
    repository_path: Path
    base_branches: list[str]
    max_patch_characters: int
    logger: Logger

    def __init__(
        self,
        repository_path: Path | str = ".",
        base_branches: Sequence[str] | None = None,
        max_patch_characters: int | None = None,
        logger: Logger | None = None,
    ):
        self.logger = logger or get_logger(name=__name__)
        self.base_branches = list(base_branches or DEFAULT_CONFIG.base_branches)
        self.max_patch_characters = max_patch_characters if max_patch_characters is not None else DEFAULT_CONFIG.max_patch_characters

        try:
            self.repository = Repo(path=repository_path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryNotFoundError(repository_path=str(repository_path)) from e

        if self.repository.working_tree_dir is None:
            raise RepositoryNotFoundError(repository_path=str(repository_path))

        self.repository_path = Path(self.repository.working_tree_dir)

    def _run(self, name: str, **values: str) -> str:
        """Run one of the git command templates and return its standard output."""

        args: list[str] = git_command_args(name, **values)

        self.logger.debug(f"Running {render_git_command(name, **values)} in {self.repository_path}")

        try:
            output = self.repository.git.execute(["git", *args])
        except GitPythonCommandError as e:
            self.logger.debug(f"Git command {name} failed in {self.repository_path}: {e.stderr}")
            raise GitCommandError(command=render_git_command(name, **values), message=str(e.stderr).strip() or None) from e

        return str(output)

    def get_current_branch(self) -> str:
        return self._run("current_branch").strip()

    def branch_exists(self, branch: str) -> bool:
        try:
            _ = self._run("branch_exists", branch=branch)
        except GitCommandError:
            return False

        return True

    def resolve_base_branch(self, preferred: str | None = None) -> str:
        """Pick the branch to compare against: the preferred branch if given, else the first configured branch that exists."""

        candidates: list[str] = [preferred] if preferred else self.base_branches

        for candidate in candidates:
            if self.branch_exists(candidate):
                return candidate

        raise GitContextError(
            reason="None of the base branches exist in the repository.",
            extra_info={"base_branches": ", ".join(candidates), "repository_path": str(self.repository_path)},
        )

    def get_context(self, base_branch: str | None = None) -> GitContext:
        current_branch: str = self.get_current_branch()
        resolved_base: str = self.resolve_base_branch(preferred=base_branch)

        merge_base: str | None = None
        try:
            merge_base = self._run("merge_base", base=resolved_base).strip() or None
        except GitCommandError:
            self.logger.warning(f"No merge base found between {current_branch} and {resolved_base}.")

        return GitContext(
            repository_path=str(self.repository_path),
            current_branch=current_branch,
            base_branch=resolved_base,
            merge_base=merge_base,
        )

    def get_diff(self, base_branch: str | None = None, validate: bool = True) -> GitDiff:
        """Collect the changed files, commits and unified diff of the current branch against its base branch."""

        context: GitContext = self.get_context(base_branch=base_branch)

        self.logger.info(f"Collecting diff of {context.current_branch} against {context.base_branch} in {context.repository_path}")

        files: list[ChangedFile] = merge_file_data(
            numstat=parse_numstat(self._run("numstat", base=context.base_branch)),
            name_status=parse_name_status(self._run("name_status", base=context.base_branch)),
        )

        if validate:
            validate_context(context=context, files=files)

        commits: list[BranchCommit] = parse_commit_log(self._run("commit_log", base=context.base_branch))

        patch, patch_truncated = truncate_patch(self._run("patch", base=context.base_branch), max_characters=self.max_patch_characters)

        self.logger.info(f"Collected {len(files)} changed files and {len(commits)} commits on {context.current_branch}.")

        return GitDiff(
            context=context,
            files=files,
            stats=calculate_stats(files),
            commits=commits,
            patch=patch,
            patch_truncated=patch_truncated,
        )
