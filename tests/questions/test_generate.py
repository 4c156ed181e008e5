import pytest

from doi_mcp.analyzer.summarize import generate_diff_summary
from doi_mcp.config import DoiConfig
from doi_mcp.models.git import ChangedFile
from doi_mcp.models.summary import DiffSummary
from doi_mcp.questions.generate import (
    QUESTION_TEMPLATES,
    calculate_complexity_score,
    calculate_recommended_question_count,
    create_empty_question_set,
    distribute_question_categories,
    generate_question_id,
    plan_question_ids,
)
from tests.conftest import make_diff, make_file


def summarize(files: list[ChangedFile]) -> DiffSummary:
    return generate_diff_summary(make_diff(files))


@pytest.fixture
def small_summary() -> DiffSummary:
    return summarize([make_file("src/auth/login.py", "modified", 8, 2)])


@pytest.fixture
def medium_summary() -> DiffSummary:
    return summarize(
        [
            make_file("src/auth/login.py", "added", 120),
            make_file("src/auth/session.py", "added", 100),
            make_file("src/app.py", "modified", 40, 20),
            make_file("src/routes.py", "modified", 15, 5),
        ]
    )


@pytest.fixture
def large_summary() -> DiffSummary:
    files = [make_file(f"src/module_{index}.py", "added", 100) for index in range(8)]
    files.extend(
        [
            make_file("src/legacy.py", "deleted", lines_removed=100),
            make_file("package.json", "modified", 50, 50),
            make_file("tests/test_module.py", "added", 100),
            make_file("docs/modules.md", "added", 100),
        ]
    )
    return summarize(files)


def test_question_templates_cover_every_category():
    assert set(QUESTION_TEMPLATES) == {"why", "what", "how", "impact", "edge-case"}
    assert all(len(templates) == 3 for templates in QUESTION_TEMPLATES.values())


def test_calculate_complexity_score(small_summary: DiffSummary, medium_summary: DiffSummary, large_summary: DiffSummary):
    assert calculate_complexity_score(small_summary) == 1
    assert calculate_complexity_score(medium_summary) == 5
    assert calculate_complexity_score(large_summary) == 10


def test_calculate_recommended_question_count(small_summary: DiffSummary, medium_summary: DiffSummary, large_summary: DiffSummary):
    assert calculate_recommended_question_count(small_summary) == 3
    assert calculate_recommended_question_count(medium_summary) == 6
    assert calculate_recommended_question_count(large_summary) == 10


def test_calculate_recommended_question_count_custom_bounds(small_summary: DiffSummary, large_summary: DiffSummary):
    config = DoiConfig(min_questions=2, max_questions=4)

    assert calculate_recommended_question_count(small_summary, config=config) == 2
    assert calculate_recommended_question_count(large_summary, config=config) == 4


def test_distribute_question_categories():
    assert distribute_question_categories(7) == ["why", "what", "how", "impact", "edge-case", "why", "what"]
    assert distribute_question_categories(0) == []


def test_generate_question_id():
    assert generate_question_id("why", 1) == "q_why_1"
    assert generate_question_id("edge-case", 2) == "q_edge_case_2"


def test_plan_question_ids():
    assert plan_question_ids(distribute_question_categories(7)) == [
        ("q_why_1", "why"),
        ("q_what_1", "what"),
        ("q_how_1", "how"),
        ("q_impact_1", "impact"),
        ("q_edge_case_1", "edge-case"),
        ("q_why_2", "why"),
        ("q_what_2", "what"),
    ]


def test_create_empty_question_set(medium_summary: DiffSummary):
    question_set = create_empty_question_set("feature/login-flow", medium_summary)

    assert question_set.branch_name == "feature/login-flow"
    assert question_set.questions == []
    assert question_set.recommended_count == 6
