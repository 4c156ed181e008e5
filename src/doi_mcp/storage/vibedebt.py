"""Saving and loading vibe debt: the questions a developer skipped or got wrong.

Vibe debt is stored as JSON files in the project directory, one file per branch per day."""

import re
from collections.abc import Callable, Sequence
from datetime import UTC, date, datetime
from pathlib import Path

from anyio import Path as AsyncPath
from anyio import open_file
from fastmcp.utilities.logging import get_logger
from pydantic import ValidationError

from doi_mcp.errors import InvalidVibeDebtRecordError
from doi_mcp.models.quiz import QuestionResult, QuizStats
from doi_mcp.models.summary import DiffSummary
from doi_mcp.models.vibedebt import (
    SCHEMA_VERSION,
    VibeDebtDiffSummary,
    VibeDebtQuestion,
    VibeDebtRecord,
    VibeDebtStats,
)

logger = get_logger(__name__)

DEFAULT_VIBE_DEBT_DIR = "VibeDebt"

UNSAFE_FILENAME_CHARACTERS = re.compile(r'[/\\:*?"<>|]')
EDGE_DASHES = re.compile(r"^-+|-+$")
REPEATED_DASHES = re.compile(r"-{2,}")

STORAGE_COMMANDS: dict[str, Callable[..., str]] = {
    "create_dir": lambda project_root=".", directory_name=DEFAULT_VIBE_DEBT_DIR: (
        f'mkdir -p "{get_vibe_debt_dir(project_root, directory_name)}"'
    ),
    "check_dir": lambda project_root=".", directory_name=DEFAULT_VIBE_DEBT_DIR: (
        f'test -d "{get_vibe_debt_dir(project_root, directory_name)}" && echo "exists" || echo "missing"'
    ),
    "list_files": lambda project_root=".", directory_name=DEFAULT_VIBE_DEBT_DIR: (
        f'ls -la "{get_vibe_debt_dir(project_root, directory_name)}" 2>/dev/null || echo "No vibe debt files"'
    ),
    "write_file": lambda path: f'cat > "{path}"',
    "read_file": lambda path: f'cat "{path}"',
}

WRITE_INSTRUCTIONS = """
To save vibe debt:

1. Create the directory:
   ```bash
   mkdir -p VibeDebt
   ```

2. Generate the filename:
   - Sanitize the branch name (replace /\\:*?"<>| with -)
   - Format: <branch-name>_<YYYY-MM-DD>.json

3. Write the JSON file with this structure:
   ```json
   {
     "branchName": "feature/my-branch",
     "date": "2024-01-15",
     "diffSummary": {"overview": "...", "filesChanged": ["..."], "linesAdded": 123, "linesRemoved": 45},
     "vibeDebt": [
       {
         "id": "q_why_1",
         "question": "...",
         "options": {"A": "...", "B": "...", "C": "...", "D": "..."},
         "correctAnswer": "B",
         "explanation": "...",
         "status": "skipped",
         "userAnswer": null,
         "relatedFiles": ["..."],
         "category": "why"
       }
     ],
     "stats": {"totalQuestions": 5, "correct": 2, "incorrect": 1, "skipped": 2, "vibeDebtPercent": 60},
     "schemaVersion": 1
   }
   ```
"""

GITIGNORE_SUGGESTION = """
# Uncomment to ignore personal vibe debt
# VibeDebt/
"""


def today() -> date:
    return datetime.now(tz=UTC).date()


def sanitize_branch_name(branch_name: str) -> str:
    sanitized = UNSAFE_FILENAME_CHARACTERS.sub("-", branch_name)
    sanitized = EDGE_DASHES.sub("", sanitized)
    return REPEATED_DASHES.sub("-", sanitized)


def generate_filename(branch_name: str, on_date: date | None = None) -> str:
    """Generate a vibe debt filename, `<sanitized-branch-name>_<YYYY-MM-DD>.json`."""

    return f"{sanitize_branch_name(branch_name)}_{(on_date or today()).isoformat()}.json"


def get_vibe_debt_dir(project_root: Path | str = ".", directory_name: str = DEFAULT_VIBE_DEBT_DIR) -> Path:
    return Path(project_root) / directory_name


def get_vibe_debt_path(
    branch_name: str,
    project_root: Path | str = ".",
    on_date: date | None = None,
    directory_name: str = DEFAULT_VIBE_DEBT_DIR,
) -> Path:
    return get_vibe_debt_dir(project_root, directory_name=directory_name) / generate_filename(branch_name, on_date)


def to_vibe_debt_question(result: QuestionResult) -> VibeDebtQuestion:
    if not result.is_debt:
        msg = f"Question {result.question.id} is {result.status} and is not vibe debt."
        raise ValueError(msg)

    question = result.question

    return VibeDebtQuestion(
        id=question.id,
        question=question.question,
        options=question.options,
        correct_answer=question.correct_answer,
        explanation=question.explanation,
        status=result.status,  # pyright: ignore[reportArgumentType]
        user_answer=result.user_answer,
        related_files=question.related_files,
        category=question.category,
    )


def create_vibe_debt_record(
    branch_name: str,
    summary: DiffSummary,
    results: Sequence[QuestionResult],
    stats: QuizStats,
    on_date: date | None = None,
) -> VibeDebtRecord:
    """Create a vibe debt record holding only the skipped and incorrect questions."""

    return VibeDebtRecord(
        branch_name=branch_name,
        date=(on_date or today()).isoformat(),
        diff_summary=VibeDebtDiffSummary(
            overview=summary.overview,
            files_changed=summary.files_changed,
            lines_added=summary.stats.lines_added,
            lines_removed=summary.stats.lines_removed,
        ),
        vibe_debt=[to_vibe_debt_question(result) for result in results if result.is_debt],
        stats=VibeDebtStats(**stats.model_dump()),
        schema_version=SCHEMA_VERSION,
    )


def serialize_record(record: VibeDebtRecord) -> str:
    return record.model_dump_json(indent=2, by_alias=True)


def parse_record(text: str, source: str | None = None) -> VibeDebtRecord:
    """Parse a vibe debt file.

    Raises:
        InvalidVibeDebtRecordError: If the text is not JSON or is missing required fields.
    """

    try:
        record: VibeDebtRecord = VibeDebtRecord.model_validate_json(text)
    except ValidationError as e:
        raise InvalidVibeDebtRecordError(message=f"{e.error_count()} validation errors", source=source) from e

    if record.schema_version > SCHEMA_VERSION:
        logger.warning(
            f"Vibe debt record {source or record.branch_name} has a newer schema version ({record.schema_version}). "
            "Some fields may not be read correctly."
        )

    return record


async def write_vibe_debt_record(
    record: VibeDebtRecord, project_root: Path | str = ".", directory_name: str = DEFAULT_VIBE_DEBT_DIR
) -> Path:
    """Write a vibe debt record, replacing any record for the same branch and day. Returns the path written."""

    path: Path = get_vibe_debt_path(
        branch_name=record.branch_name,
        project_root=project_root,
        on_date=date.fromisoformat(record.date),
        directory_name=directory_name,
    )

    await AsyncPath(path.parent).mkdir(parents=True, exist_ok=True)

    async with await open_file(file=path, mode="w", encoding="utf-8") as file:
        _ = await file.write(serialize_record(record) + "\n")

    logger.info(f"Wrote {len(record.vibe_debt)} vibe debt questions to {path}")

    return path


async def read_vibe_debt_record(path: Path | str) -> VibeDebtRecord:
    async with await open_file(file=path, encoding="utf-8") as file:
        text: str = await file.read()

    return parse_record(text, source=str(path))


def list_vibe_debt_files(project_root: Path | str = ".", directory_name: str = DEFAULT_VIBE_DEBT_DIR) -> list[Path]:
    directory: Path = get_vibe_debt_dir(project_root, directory_name=directory_name)

    if not directory.is_dir():
        return []

    return sorted(directory.glob("*.json"))


def get_gitignore_entry(ignore: bool = False) -> str | None:
    """Return the .gitignore entry for vibe debt, or None to keep it tracked so the team can see it."""

    if ignore:
        return f"{DEFAULT_VIBE_DEBT_DIR}/"

    return None
