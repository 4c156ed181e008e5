from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ChangeType = Literal["added", "modified", "deleted", "renamed"]


class ChangedFile(BaseModel):
    """A single file-level change between the base branch and the current branch."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="The path of the file, relative to the repository root.")
    change_type: ChangeType = Field(description="How the file was changed.")
    lines_added: int = Field(ge=0, description="The number of lines added to the file.")
    lines_removed: int = Field(ge=0, description="The number of lines removed from the file.")
    old_path: str | None = Field(default=None, description="The previous path of the file, only set for renames.")


class DiffStats(BaseModel):
    """Aggregate line counts for a diff."""

    files_changed: int = Field(default=0, ge=0, description="The number of files changed.")
    lines_added: int = Field(default=0, ge=0, description="The total number of lines added.")
    lines_removed: int = Field(default=0, ge=0, description="The total number of lines removed.")

    @property
    def total_lines(self) -> int:
        return self.lines_added + self.lines_removed


class BranchCommit(BaseModel):
    """A commit on the current branch that is not on the base branch."""

    hash: str = Field(description="The full commit hash.")
    message: str = Field(description="The subject line of the commit message.")
    author: str | None = Field(default=None, description="The name of the commit author.")
    date: str | None = Field(default=None, description="The author date in ISO 8601 format.")

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


class GitContext(BaseModel):
    """Where the diff was taken from."""

    repository_path: str = Field(description="The root of the repository working tree.")
    current_branch: str = Field(description="The branch being quizzed. `HEAD` when detached.")
    base_branch: str = Field(description="The branch the current branch is compared against.")
    merge_base: str | None = Field(default=None, description="The merge base commit of the two branches.")

    @property
    def is_detached(self) -> bool:
        return self.current_branch == "HEAD"


class GitDiff(BaseModel):
    """Everything known about the changes on a branch."""

    context: GitContext
    files: list[ChangedFile] = Field(default_factory=list, description="The changed files, in the order git reported them.")
    stats: DiffStats = Field(default_factory=DiffStats)
    commits: list[BranchCommit] = Field(default_factory=list, description="The commits on the branch, newest first.")
    patch: str = Field(default="", description="The unified diff of the branch, possibly truncated.")
    patch_truncated: bool = Field(default=False, description="Whether the unified diff was truncated.")

    @property
    def file_paths(self) -> list[str]:
        return [file.path for file in self.files]
