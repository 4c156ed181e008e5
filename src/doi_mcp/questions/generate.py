from collections.abc import Sequence

from doi_mcp.config import DEFAULT_CONFIG, DoiConfig
from doi_mcp.models.questions import QUESTION_CATEGORIES, QuestionCategory, QuestionSet
from doi_mcp.models.summary import DiffSummary

MAX_COMPLEXITY_SCORE = 10

QUESTION_TEMPLATES: dict[QuestionCategory, list[str]] = {
    "why": [
        "Why was {file} changed as part of this branch?",
        "What problem does the change to {file} solve?",
        "Why was this approach chosen over the obvious alternative?",
    ],
    "what": [
        "What does the new code in {file} do?",
        "What is the observable behavior change after this branch is merged?",
        "What data does {file} now read or write that it did not before?",
    ],
    "how": [
        "How does {file} interact with the rest of the change?",
        "How is the new behavior wired into the existing code path?",
        "How does control flow through the changed function?",
    ],
    "impact": [
        "Which callers of {file} are affected by this change?",
        "What could break elsewhere if this change has a bug?",
        "What performance or resource impact does this change have?",
    ],
    "edge-case": [
        "What happens in {file} when the input is empty or missing?",
        "Which error path does this change add or alter?",
        "What happens if this code runs twice or concurrently?",
    ],
}

QUESTION_GENERATION_GUIDELINES = """
- Every question must be answerable from the diff alone. Do not ask about code you were not shown.
- Ask about the reasoning and behavior of the change, not trivia such as variable names or line numbers.
- Prefer the key files. Spread questions across different files when the change touches several.
- Each question has exactly four options (A, B, C and D) and exactly one correct option.
- Vary the position of the correct option across the quiz.
- Every explanation references the specific file and code that makes the correct answer correct.
- Keep questions under 40 words and options under 25 words.
"""

DISTRACTOR_GUIDELINES = """
- Distractors must be plausible to someone who skimmed the diff, but clearly wrong to someone who read it.
- Base distractors on realistic misreadings: the old behavior, a neighbouring code path, an off-by-one, a swapped condition.
- Do not use "all of the above", "none of the above" or joke options.
- Keep all four options similar in length and grammatical form so the answer is not given away by its shape.
"""


def calculate_complexity_score(summary: DiffSummary) -> int:
    """Score the complexity of a change from 1 (trivial) to 10 (sprawling)."""

    total_lines: int = summary.stats.total_lines
    file_count: int = len(summary.files_changed)
    category_count: int = len(summary.changes)

    if total_lines < 50:
        line_points = 1
    elif total_lines < 200:
        line_points = 2
    elif total_lines < 500:
        line_points = 3
    elif total_lines < 1000:
        line_points = 4
    else:
        line_points = 5

    if file_count <= 2:
        file_points = 0
    elif file_count <= 5:
        file_points = 1
    elif file_count <= 10:
        file_points = 2
    else:
        file_points = 3

    if category_count >= 4:
        category_points = 2
    elif category_count >= 2:
        category_points = 1
    else:
        category_points = 0

    return max(1, min(MAX_COMPLEXITY_SCORE, line_points + file_points + category_points))


def calculate_recommended_question_count(summary: DiffSummary, config: DoiConfig = DEFAULT_CONFIG) -> int:
    """Scale the number of questions with the complexity of the change, within the configured bounds."""

    score: int = calculate_complexity_score(summary)
    question_range: int = config.max_questions - config.min_questions

    return config.min_questions + ((score - 1) * question_range) // (MAX_COMPLEXITY_SCORE - 1)


def distribute_question_categories(count: int) -> list[QuestionCategory]:
    return [QUESTION_CATEGORIES[index % len(QUESTION_CATEGORIES)] for index in range(max(count, 0))]


def generate_question_id(category: QuestionCategory, index: int) -> str:
    return f"q_{category.replace('-', '_')}_{index}"


def plan_question_ids(categories: Sequence[QuestionCategory]) -> list[tuple[str, QuestionCategory]]:
    """Assign ids to a planned list of categories, numbering each category from 1."""

    counts: dict[QuestionCategory, int] = {}
    planned: list[tuple[str, QuestionCategory]] = []

    for category in categories:
        counts[category] = counts.get(category, 0) + 1
        planned.append((generate_question_id(category, counts[category]), category))

    return planned


def create_empty_question_set(branch_name: str, summary: DiffSummary, config: DoiConfig = DEFAULT_CONFIG) -> QuestionSet:
    return QuestionSet(
        branch_name=branch_name,
        questions=[],
        recommended_count=calculate_recommended_question_count(summary, config=config),
    )
