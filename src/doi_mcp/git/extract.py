"""Git command templates and parsers for their textual output.

Nothing in this module runs git: hosts that run commands themselves can render the templates with
`render_git_command` and hand the output back to the parsers."""

import re
import shlex
from collections.abc import Sequence

from pydantic import BaseModel, Field

from doi_mcp.errors import GitContextError
from doi_mcp.models.git import BranchCommit, ChangedFile, ChangeType, DiffStats, GitContext

FIELD_SEPARATOR = "\x1f"

COMMIT_LOG_FORMAT = "%H%x1f%s%x1f%an%x1f%aI"

# Git still quotes paths with control characters, quotes or backslashes in them.
UNQUOTED_PATHS: tuple[str, ...] = ("-c", "core.quotePath=false")

GIT_COMMANDS: dict[str, tuple[str, ...]] = {
    "repository_root": ("rev-parse", "--show-toplevel"),
    "current_branch": ("rev-parse", "--abbrev-ref", "HEAD"),
    "branch_exists": ("rev-parse", "--verify", "--quiet", "{branch}"),
    "merge_base": ("merge-base", "{base}", "HEAD"),
    "numstat": (*UNQUOTED_PATHS, "diff", "--numstat", "-M", "{base}...HEAD"),
    "name_status": (*UNQUOTED_PATHS, "diff", "--name-status", "-M", "{base}...HEAD"),
    "commit_log": ("log", f"--pretty=format:{COMMIT_LOG_FORMAT}", "{base}..HEAD"),
    "patch": (*UNQUOTED_PATHS, "diff", "-M", "{base}...HEAD"),
}

PATCH_TRUNCATION_MARKER = "\n... [the remainder of the diff has been truncated] ..."

BRACE_RENAME_PATTERN = re.compile(r"^(?P<prefix>.*)\{(?P<old>.*) => (?P<new>.*)\}(?P<suffix>.*)$")

QUOTED_PATH_ESCAPE_PATTERN = re.compile(rb"\\([0-7]{3}|.)", re.DOTALL)

QUOTED_PATH_ESCAPES: dict[bytes, bytes] = {
    b"a": b"\a",
    b"b": b"\b",
    b"f": b"\f",
    b"n": b"\n",
    b"r": b"\r",
    b"t": b"\t",
    b"v": b"\v",
    b'"': b'"',
    b"\\": b"\\",
}

NAME_STATUS_CHANGE_TYPES: dict[str, ChangeType] = {
    "A": "added",
    "C": "added",
    "D": "deleted",
    "M": "modified",
    "R": "renamed",
    "T": "modified",
}


class NumstatEntry(BaseModel):
    """A line of `git diff --numstat` output."""

    path: str
    lines_added: int = Field(default=0, ge=0)
    lines_removed: int = Field(default=0, ge=0)
    binary: bool = False
    old_path: str | None = None


class NameStatusEntry(BaseModel):
    """A line of `git diff --name-status` output."""

    path: str
    change_type: ChangeType
    old_path: str | None = None


def git_command_args(name: str, **values: str) -> list[str]:
    """Fill in a command template. Raises a KeyError for unknown commands or missing values."""

    return [arg.format(**values) for arg in GIT_COMMANDS[name]]


def render_git_command(name: str, **values: str) -> str:
    return shlex.join(["git", *git_command_args(name, **values)])


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of a path, e.g. `"src/caf\\303\\251.py"` becomes `src/café.py`.

    Paths that are not wrapped in double quotes are returned unchanged."""

    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    def unescape(match: re.Match[bytes]) -> bytes:
        escape: bytes = match.group(1)
        if len(escape) == 3:
            return bytes([int(escape, 8) & 0xFF])
        return QUOTED_PATH_ESCAPES.get(escape, escape)

    raw: bytes = QUOTED_PATH_ESCAPE_PATTERN.sub(unescape, path[1:-1].encode("utf-8"))

    return raw.decode("utf-8", errors="replace")


def resolve_rename_path(path: str) -> tuple[str, str | None]:
    """Resolve a numstat rename notation to the new path and the old path.

    Handles both `old => new` and `src/{old => new}/file.py`."""

    if match := BRACE_RENAME_PATTERN.match(path):
        prefix, old, new, suffix = match.group("prefix", "old", "new", "suffix")
        new_path = f"{prefix}{new}{suffix}".replace("//", "/")
        old_path = f"{prefix}{old}{suffix}".replace("//", "/")
        return new_path, old_path

    if " => " in path:
        old_path, new_path = path.split(" => ", maxsplit=1)
        return new_path, old_path

    return path, None


def parse_line_count(value: str) -> int:
    # Binary files report `-` for both counts.
    if value == "-":
        return 0
    return int(value)


def parse_numstat(text: str) -> list[NumstatEntry]:
    entries: list[NumstatEntry] = []

    for line in text.splitlines():
        if not line.strip():
            continue

        parts = line.split("\t")
        if len(parts) < 3:
            continue

        added, removed = parts[0], parts[1]
        path, old_path = resolve_rename_path("\t".join(parts[2:]))
        path, old_path = unquote_path(path), unquote_path(old_path) if old_path else None

        entries.append(
            NumstatEntry(
                path=path,
                lines_added=parse_line_count(added),
                lines_removed=parse_line_count(removed),
                binary=added == "-" and removed == "-",
                old_path=old_path,
            )
        )

    return entries


def parse_name_status(text: str) -> list[NameStatusEntry]:
    entries: list[NameStatusEntry] = []

    for line in text.splitlines():
        if not line.strip():
            continue

        parts = line.split("\t")
        if len(parts) < 2:
            continue

        status = parts[0].strip()
        change_type: ChangeType = NAME_STATUS_CHANGE_TYPES.get(status[:1], "modified")

        # Renames and copies report the source path and then the destination path.
        if status[:1] in ("R", "C") and len(parts) >= 3:
            old_path, path = unquote_path(parts[1]), unquote_path(parts[2])
            entries.append(NameStatusEntry(path=path, change_type=change_type, old_path=old_path if change_type == "renamed" else None))
            continue

        entries.append(NameStatusEntry(path=unquote_path(parts[1]), change_type=change_type))

    return entries


def parse_commit_log(text: str) -> list[BranchCommit]:
    """Parse `git log` output produced with `COMMIT_LOG_FORMAT`. Commits stay newest first."""

    commits: list[BranchCommit] = []

    for line in text.splitlines():
        if not line.strip():
            continue

        fields = line.split(FIELD_SEPARATOR)
        if len(fields) < 2:
            continue

        commits.append(
            BranchCommit(
                hash=fields[0].strip(),
                message=fields[1].strip(),
                author=fields[2].strip() if len(fields) > 2 else None,
                date=fields[3].strip() if len(fields) > 3 else None,
            )
        )

    return commits


def merge_file_data(numstat: Sequence[NumstatEntry], name_status: Sequence[NameStatusEntry]) -> list[ChangedFile]:
    """Join line counts onto change types by path.

    Name-status order is kept. Files that only show up in the numstat output are treated as modified."""

    numstat_by_path: dict[str, NumstatEntry] = {entry.path: entry for entry in numstat}

    files: list[ChangedFile] = []
    seen_paths: set[str] = set()

    for entry in name_status:
        counts: NumstatEntry | None = numstat_by_path.get(entry.path)
        files.append(
            ChangedFile(
                path=entry.path,
                change_type=entry.change_type,
                lines_added=counts.lines_added if counts else 0,
                lines_removed=counts.lines_removed if counts else 0,
                old_path=entry.old_path,
            )
        )
        seen_paths.add(entry.path)

    for entry in numstat:
        if entry.path in seen_paths:
            continue

        files.append(
            ChangedFile(
                path=entry.path,
                change_type="modified",
                lines_added=entry.lines_added,
                lines_removed=entry.lines_removed,
            )
        )
        seen_paths.add(entry.path)

    return files


def calculate_stats(files: Sequence[ChangedFile]) -> DiffStats:
    return DiffStats(
        files_changed=len(files),
        lines_added=sum(file.lines_added for file in files),
        lines_removed=sum(file.lines_removed for file in files),
    )


def truncate_patch(patch: str, max_characters: int) -> tuple[str, bool]:
    if len(patch) <= max_characters:
        return patch, False

    return patch[:max_characters] + PATCH_TRUNCATION_MARKER, True


def validate_context(context: GitContext, files: Sequence[ChangedFile]) -> None:
    """Raise a GitContextError if there is nothing on the branch to quiz."""

    extra_info = {"current_branch": context.current_branch, "base_branch": context.base_branch}

    if context.is_detached:
        raise GitContextError(reason="HEAD is detached. Check out the branch you want to be quizzed on.", extra_info=extra_info)

    if context.current_branch == context.base_branch:
        raise GitContextError(
            reason="You are on the base branch. Check out a feature branch to be quizzed on its changes.", extra_info=extra_info
        )

    if not files:
        raise GitContextError(reason="There are no changes between the current branch and the base branch.", extra_info=extra_info)
