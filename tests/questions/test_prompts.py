from inline_snapshot import snapshot
from mcp.types import TextContent

from doi_mcp.analyzer.summarize import generate_diff_summary
from doi_mcp.models.git import BranchCommit, GitDiff
from doi_mcp.questions.prompts import QUESTION_SYSTEM_PROMPT, PromptBuilder, build_question_prompt
from tests.conftest import make_diff, make_file

PATCH = """diff --git a/src/auth/login.py b/src/auth/login.py
new file mode 100644
--- /dev/null
+++ b/src/auth/login.py
@@ -0,0 +1,2 @@
+def login(username: str, password: str) -> bool:
+    return bool(username and password)"""


def login_diff() -> GitDiff:
    return make_diff(
        [make_file("src/auth/login.py", "added", 2)],
        commits=[BranchCommit(hash="a" * 40, message="Add login")],
        patch=PATCH,
    )


def test_question_system_prompt():
    assert QUESTION_SYSTEM_PROMPT.startswith("# Who you are\n")
    assert "# Deeply Rooted" in QUESTION_SYSTEM_PROMPT
    assert "# Response Format" in QUESTION_SYSTEM_PROMPT


def test_prompt_builder():
    builder = PromptBuilder()

    _ = builder.add_text_section(title="Intro", text=["line one", "line two"])
    _ = builder.add_yaml_section(title="Data", obj={"files": ["a.py"]}, level=2)

    assert builder.render_text() == snapshot("""\
# Intro
line one
line two

## Data
```yaml
files:
- a.py
```\
""")


def test_prompt_builder_to_sampling_messages():
    builder = PromptBuilder().add_text_section(title="Intro", text="Hello")

    messages = builder.to_sampling_messages()

    assert len(messages) == 1
    assert messages[0].role == "user"
    assert isinstance(messages[0].content, TextContent)
    assert messages[0].content.text == "# Intro\nHello"


def test_build_question_prompt():
    diff = login_diff()
    summary = generate_diff_summary(diff)

    prompt = build_question_prompt(diff=diff, summary=summary, question_count=3).render_text()

    assert [line for line in prompt.splitlines() if line.startswith("# ")] == snapshot(
        [
            "# Branch",
            "# Changes",
            "# Commits",
            "# Questions To Write",
            "# Question Guidelines",
            "# Distractor Guidelines",
            "# Unified Diff",
        ]
    )
    assert "Branch `feature/login-flow` compared against `main`." in prompt
    assert "Inferred intent: add new functionality: login flow" in prompt
    assert "- aaaaaaa Add login" in prompt
    assert "Write exactly 3 questions" in prompt
    assert "- `q_why_1` (why), for example: Why was src/auth/login.py changed as part of this branch?" in prompt
    assert "- `q_how_1` (how)" in prompt
    assert "q_impact_1" not in prompt
    assert PATCH in prompt


def test_build_question_prompt_truncated_diff():
    diff = login_diff().model_copy(update={"commits": [], "patch_truncated": True})

    prompt = build_question_prompt(diff=diff, summary=generate_diff_summary(diff), question_count=3).render_text()

    assert "# Unified Diff (truncated)" in prompt
    assert "# Commits" not in prompt
