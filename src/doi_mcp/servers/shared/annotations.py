from typing import Annotated

from pydantic import Field

REPOSITORY_PATH = Annotated[
    str, Field(description="The path to the local git repository, or any directory inside it. Defaults to the working directory.")
]
BASE_BRANCH = Annotated[
    str | None,
    Field(description="The branch to compare the current branch against. If not provided, `main` or `master` is used."),
]
QUESTION_COUNT = Annotated[
    int | None,
    Field(description="The number of questions to write. If not provided, the count is scaled to the size of the change."),
]
QUESTION_INDEX = Annotated[int, Field(description="The 1-based position of the question in the quiz.")]
QUESTION_TOTAL = Annotated[int, Field(description="The total number of questions in the quiz.")]
ANSWER = Annotated[
    str | None,
    Field(description="The option the user picked (A, B, C or D). Anything else, including `Skip` or null, is recorded as skipped."),
]
