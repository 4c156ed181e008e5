"""Turn a branch's diff into a categorized, ranked and intent-annotated summary.

Everything here is a pure function of the `GitDiff` it is handed: no git calls, no clock, no I/O."""

import re
from collections import defaultdict
from collections.abc import Sequence

from doi_mcp.models.git import ChangedFile, GitDiff
from doi_mcp.models.summary import CATEGORY_PRIORITY, CategorizedChange, ChangeCategory, DiffSummary

DEFAULT_KEY_FILE_LIMIT = 5

# Path patterns are checked in this order and the first category with a matching pattern wins, so a
# `.github/workflows/tests.yml` file is configuration rather than testing.
CATEGORY_PATH_PATTERNS: tuple[tuple[ChangeCategory, tuple[re.Pattern[str], ...]], ...] = (
    (
        ChangeCategory.CONFIGURATION,
        (
            re.compile(r"\.config\.(js|ts|json|yaml|yml)$"),
            re.compile(r"package\.json$"),
            re.compile(r"tsconfig.*\.json$"),
            re.compile(r"\.env(\..+)?$"),
            re.compile(r"webpack|rollup|vite|esbuild", re.IGNORECASE),
            re.compile(r"docker|compose", re.IGNORECASE),
            re.compile(r"\.github/"),
            re.compile(r"Makefile$"),
            re.compile(r"\.yml$"),
            re.compile(r"\.yaml$"),
        ),
    ),
    (
        ChangeCategory.TESTING,
        (
            re.compile(r"\.(test|spec)\.(js|ts|jsx|tsx)$"),
            re.compile(r"__(tests|mocks)__/"),
            re.compile(r"\.test\."),
            re.compile(r"\.spec\."),
            re.compile(r"test/"),
            re.compile(r"tests/"),
            re.compile(r"jest\.config"),
            re.compile(r"vitest\.config"),
        ),
    ),
    (
        ChangeCategory.DOCUMENTATION,
        (
            re.compile(r"\.md$"),
            re.compile(r"\.mdx$"),
            re.compile(r"docs?/"),
            re.compile(r"README", re.IGNORECASE),
            re.compile(r"CHANGELOG", re.IGNORECASE),
            re.compile(r"LICENSE", re.IGNORECASE),
            re.compile(r"CONTRIBUTING", re.IGNORECASE),
        ),
    ),
)

SOURCE_FILE_PATTERN = re.compile(r"\.(ts|js|tsx|jsx|py|go|rs|java|cpp|c)$")
TEST_FILE_PATTERN = re.compile(r"\.(test|spec)\.")

SOURCE_FILE_BOOST = 1.5
ADDED_FILE_BOOST = 1.3
TEST_FILE_FACTOR = 0.7
CONFIGURATION_FILE_FACTOR = 0.5
DOCUMENTATION_FILE_FACTOR = 0.3

INTENT_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"feat(ure)?[/\-_]", re.IGNORECASE), "add new functionality"),
    (re.compile(r"fix[/\-_]", re.IGNORECASE), "fix a bug or issue"),
    (re.compile(r"bug[/\-_]", re.IGNORECASE), "address a bug"),
    (re.compile(r"refactor[/\-_]", re.IGNORECASE), "improve code structure"),
    (re.compile(r"perf(ormance)?[/\-_]", re.IGNORECASE), "improve performance"),
    (re.compile(r"docs?[/\-_]", re.IGNORECASE), "update documentation"),
    (re.compile(r"test[/\-_]", re.IGNORECASE), "add or improve tests"),
    (re.compile(r"chore[/\-_]", re.IGNORECASE), "perform maintenance tasks"),
    (re.compile(r"hotfix[/\-_]", re.IGNORECASE), "apply an urgent fix"),
    (re.compile(r"release[/\-_]", re.IGNORECASE), "prepare a release"),
    (re.compile(r"deps?[/\-_]", re.IGNORECASE), "update dependencies"),
    (re.compile(r"upgrade[/\-_]", re.IGNORECASE), "upgrade dependencies or tools"),
    (re.compile(r"migration?[/\-_]", re.IGNORECASE), "perform a data or code migration"),
)

BRANCH_DELIMITER_PATTERN = re.compile(r"[/\-_]")

# Checked in order when neither the branch name nor the commits say what the branch is for.
CATEGORY_INTENTS: tuple[tuple[ChangeCategory, str], ...] = (
    (ChangeCategory.NEW_FEATURE, "Add new functionality to the codebase"),
    (ChangeCategory.DELETION, "Remove unused code or features"),
    (ChangeCategory.REFACTORING, "Improve code structure without changing behavior"),
    (ChangeCategory.CONFIGURATION, "Update project configuration"),
)
DEFAULT_INTENT = "Make changes to the codebase"

# Upper bounds (exclusive) on total changed lines for each size descriptor.
SIZE_DESCRIPTORS: tuple[tuple[int, str], ...] = (
    (50, "small"),
    (200, "moderate"),
    (500, "substantial"),
)
LARGEST_SIZE_DESCRIPTOR = "large"


def pluralize(count: int, noun: str, plural: str | None = None) -> str:
    if count > 1:
        return plural or f"{noun}s"
    return noun


def categorize_file_by_path(file_path: str) -> ChangeCategory | None:
    """Categorize a file by its path alone. Returns None when the change type should decide."""

    for category, patterns in CATEGORY_PATH_PATTERNS:
        if any(pattern.search(file_path) for pattern in patterns):
            return category

    return None


def categorize_change(file: ChangedFile) -> ChangeCategory:
    if path_category := categorize_file_by_path(file.path):
        return path_category

    match file.change_type:
        case "added":
            return ChangeCategory.NEW_FEATURE
        case "deleted":
            return ChangeCategory.DELETION
        case "renamed":
            return ChangeCategory.REFACTORING
        case _:
            return ChangeCategory.MODIFIED_LOGIC


def generate_category_description(category: ChangeCategory, files: Sequence[ChangedFile]) -> str:
    file_count = len(files)
    total_added = sum(file.lines_added for file in files)
    total_removed = sum(file.lines_removed for file in files)
    any_added = any(file.change_type == "added" for file in files)

    match category:
        case ChangeCategory.NEW_FEATURE:
            return f"Added {file_count} new {pluralize(file_count, 'file')} (+{total_added} lines)"
        case ChangeCategory.MODIFIED_LOGIC:
            return f"Modified logic in {file_count} {pluralize(file_count, 'file')} (+{total_added}/-{total_removed} lines)"
        case ChangeCategory.REFACTORING:
            return f"Refactored/renamed {file_count} {pluralize(file_count, 'file')}"
        case ChangeCategory.DELETION:
            return f"Removed {file_count} {pluralize(file_count, 'file')} (-{total_removed} lines)"
        case ChangeCategory.CONFIGURATION:
            return f"Updated configuration in {file_count} {pluralize(file_count, 'file')}"
        case ChangeCategory.TESTING:
            return f"{pluralize(file_count, 'Test')} {'added' if any_added else 'modified'} (+{total_added}/-{total_removed} lines)"
        case ChangeCategory.DOCUMENTATION:
            return f"Documentation {'added' if any_added else 'updated'}"


def categorize_changes(files: Sequence[ChangedFile]) -> list[CategorizedChange]:
    """Group files by change category, most important category first."""

    grouped: dict[ChangeCategory, list[ChangedFile]] = defaultdict(list)

    for file in files:
        grouped[categorize_change(file)].append(file)

    return [
        CategorizedChange(
            category=category,
            description=generate_category_description(category, grouped[category]),
            files=[file.path for file in grouped[category]],
        )
        for category in CATEGORY_PRIORITY
        if grouped.get(category)
    ]


def score_file(file: ChangedFile) -> float:
    """Score how important a file is to understand.

    The factors compound, so they must be applied in this order."""

    score: float = file.lines_added + file.lines_removed

    if SOURCE_FILE_PATTERN.search(file.path):
        score *= SOURCE_FILE_BOOST

    if file.change_type == "added":
        score *= ADDED_FILE_BOOST

    if TEST_FILE_PATTERN.search(file.path):
        score *= TEST_FILE_FACTOR

    path_category = categorize_file_by_path(file.path)

    if path_category == ChangeCategory.CONFIGURATION:
        score *= CONFIGURATION_FILE_FACTOR

    if path_category == ChangeCategory.DOCUMENTATION:
        score *= DOCUMENTATION_FILE_FACTOR

    return score


def identify_key_files(files: Sequence[ChangedFile], limit: int = DEFAULT_KEY_FILE_LIMIT) -> list[str]:
    """Identify the files most worth understanding. Files with equal scores keep their input order."""

    ranked: list[ChangedFile] = sorted(files, key=score_file, reverse=True)

    return [file.path for file in ranked[: max(limit, 0)]]


def infer_intent_from_branch(branch_name: str) -> str | None:
    for pattern, intent in INTENT_PATTERNS:
        if not pattern.search(branch_name):
            continue

        parts: list[str] = BRANCH_DELIMITER_PATTERN.split(branch_name)
        description: str = " ".join(parts[1:]).replace("-", " ").replace("_", " ")

        if description:
            return f"{intent}: {description}"

        return intent

    return None


def infer_intent(diff: GitDiff) -> str:
    """Infer what the branch is for from its name, its commits or, failing that, its changes."""

    if branch_intent := infer_intent_from_branch(diff.context.current_branch):
        return branch_intent

    if diff.commits:
        oldest_commit = diff.commits[-1]
        return f"Based on commits: {oldest_commit.message}"

    categories: set[ChangeCategory] = {change.category for change in categorize_changes(diff.files)}

    for category, intent in CATEGORY_INTENTS:
        if category in categories:
            return intent

    return DEFAULT_INTENT


def describe_size(total_lines: int) -> str:
    for upper_bound, descriptor in SIZE_DESCRIPTORS:
        if total_lines < upper_bound:
            return descriptor

    return LARGEST_SIZE_DESCRIPTOR


def generate_overview(diff: GitDiff) -> str:
    """Generate the one sentence overview shown above the quiz."""

    file_count = len(diff.files)
    size = describe_size(diff.stats.total_lines)
    files_noun = "file" if file_count == 1 else "files"

    return f"A {size} change across {file_count} {files_noun} to {infer_intent(diff).lower()}."


def generate_diff_summary(diff: GitDiff, key_file_limit: int = DEFAULT_KEY_FILE_LIMIT) -> DiffSummary:
    return DiffSummary(
        overview=generate_overview(diff),
        changes=categorize_changes(diff.files),
        inferred_intent=infer_intent(diff),
        key_files=identify_key_files(diff.files, limit=key_file_limit),
        stats=diff.stats,
        files_changed=diff.file_paths,
    )
