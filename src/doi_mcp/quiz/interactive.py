"""Text and payloads for presenting a quiz through the host's question UI, and the bookkeeping of answers."""

from collections.abc import Sequence
from typing import Any

from doi_mcp.models.questions import ANSWER_KEYS, AnswerKey, MCQuestion
from doi_mcp.models.quiz import QuestionResult, QuestionStatus, QuizStats

SKIP_OPTION_LABEL = "Skip"

ASK_USER_QUESTION_TEMPLATE: dict[str, Any] = {
    "header": "Question {index}/{total}",
    "question": "{question}",
    "multiSelect": False,
    "options": [],
}

FEEDBACK_TEMPLATES: dict[QuestionStatus, str] = {
    "correct": "Correct! {explanation}",
    "incorrect": "Not quite. The answer is {correct_answer}: {correct_option}\n\n{explanation}",
    "skipped": "Skipped. The answer is {correct_answer}: {correct_option}\n\n{explanation}",
    "pending": "Question {id} has not been answered yet.",
}

# Checked in order, the first message whose minimum percent correct is met is used.
SCORE_MESSAGES: tuple[tuple[int, str], ...] = (
    (100, "Perfect score. You know this change inside and out."),
    (80, "Great job. You have a solid understanding of this change."),
    (60, "Not bad, but a few parts of this change deserve another look."),
    (40, "You have a partial understanding of this change. Review the vibe debt before merging."),
    (0, "This change is mostly vibes. Review the vibe debt before merging."),
)


def format_question_for_presentation(question: MCQuestion, index: int, total: int) -> dict[str, Any]:
    """Build the payload for one question of an AskUserQuestion prompt. `index` is 1-based."""

    options: list[dict[str, str]] = [{"label": key, "description": question.options[key]} for key in ANSWER_KEYS]
    options.append({"label": SKIP_OPTION_LABEL, "description": "Skip this question and record it as vibe debt."})

    return {
        **ASK_USER_QUESTION_TEMPLATE,
        "header": ASK_USER_QUESTION_TEMPLATE["header"].format(index=index, total=total),
        "question": ASK_USER_QUESTION_TEMPLATE["question"].format(question=question.question),
        "options": options,
    }


def normalize_answer(answer: str | None) -> AnswerKey | None:
    """Map a raw answer from the host to an option key. Anything that is not A-D counts as a skip."""

    if answer is None:
        return None

    normalized: str = answer.strip().upper()

    for key in ANSWER_KEYS:
        if normalized == key:
            return key

        # Hosts sometimes echo the whole option, like `B) Retries the request`.
        if len(normalized) > 1 and normalized[0] == key and normalized[1] in ").: ":
            return key

    return None


def grade_answer(question: MCQuestion, answer: str | None) -> QuestionResult:
    user_answer: AnswerKey | None = normalize_answer(answer)

    if user_answer is None:
        return QuestionResult(question=question, status="skipped", user_answer=None)

    status: QuestionStatus = "correct" if user_answer == question.correct_answer else "incorrect"

    return QuestionResult(question=question, status=status, user_answer=user_answer)


def generate_feedback(result: QuestionResult) -> str:
    question = result.question

    return FEEDBACK_TEMPLATES[result.status].format(
        id=question.id,
        correct_answer=question.correct_answer,
        correct_option=question.options[question.correct_answer],
        explanation=question.explanation,
    )


def calculate_vibe_debt_percent(total_questions: int, incorrect: int, skipped: int) -> int:
    if total_questions == 0:
        return 0

    return round((incorrect + skipped) / total_questions * 100)


def create_initial_stats(total_questions: int) -> QuizStats:
    return QuizStats(total_questions=total_questions)


def update_stats(stats: QuizStats, status: QuestionStatus) -> QuizStats:
    """Return new stats with one more answer of the given status counted."""

    if status == "pending":
        return stats

    correct = stats.correct + (status == "correct")
    incorrect = stats.incorrect + (status == "incorrect")
    skipped = stats.skipped + (status == "skipped")

    return QuizStats(
        total_questions=stats.total_questions,
        correct=correct,
        incorrect=incorrect,
        skipped=skipped,
        vibe_debt_percent=calculate_vibe_debt_percent(stats.total_questions, incorrect, skipped),
    )


def calculate_stats_from_results(results: Sequence[QuestionResult]) -> QuizStats:
    stats: QuizStats = create_initial_stats(total_questions=len(results))

    for result in results:
        stats = update_stats(stats, result.status)

    return stats


def skip_remaining(results: Sequence[QuestionResult]) -> list[QuestionResult]:
    """Mark every unanswered question as skipped, for when the user ends the quiz early."""

    return [result.model_copy(update={"status": "skipped"}) if result.status == "pending" else result for result in results]


def generate_progress_display(index: int, total: int, stats: QuizStats) -> str:
    return f"Question {index}/{total} | Correct: {stats.correct} | Incorrect: {stats.incorrect} | Skipped: {stats.skipped}"


def score_message(stats: QuizStats) -> str:
    percent_correct: int = round(stats.correct / stats.total_questions * 100) if stats.total_questions else 0

    for minimum_percent, message in SCORE_MESSAGES:
        if percent_correct >= minimum_percent:
            return message

    return SCORE_MESSAGES[-1][1]


def generate_results_summary(stats: QuizStats) -> str:
    lines: list[str] = [
        "## Quiz Results",
        "",
        f"- Correct: {stats.correct}/{stats.total_questions}",
        f"- Incorrect: {stats.incorrect}",
        f"- Skipped: {stats.skipped}",
        f"- Vibe debt: {stats.vibe_debt_percent}%",
        "",
        score_message(stats),
    ]

    return "\n".join(lines)
