ExtraInfoType = dict[str, str | None]


class DoiError(Exception):
    """A base error from the Doi MCP server."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class GitCommandError(DoiError):
    """A git command failed to run against the local repository."""

    def __init__(self, command: str, message: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(message="A git command failed.", extra_info={"command": command, "message": message, **extra_info})


class RepositoryNotFoundError(DoiError):
    """The provided path is not inside a git repository."""

    def __init__(self, repository_path: str):
        super().__init__(message="The path is not a git repository.", extra_info={"repository_path": repository_path})


class GitContextError(DoiError):
    """The repository is not in a state where the branch can be quizzed."""

    def __init__(self, reason: str, extra_info: ExtraInfoType | None = None):
        super().__init__(message=reason, extra_info=extra_info)


class InvalidVibeDebtRecordError(DoiError):
    """A vibe debt file could not be parsed."""

    def __init__(self, message: str | None = None, source: str | None = None):
        super().__init__(message="Invalid vibe debt record.", extra_info={"source": source, "message": message})


class SamplingSupportRequiredError(DoiError):
    """The connected client cannot sample and no server-side handler is configured."""

    def __init__(self):
        super().__init__(message="Your client does not support sampling. Sampling support is required to generate questions.")


class StructuredSamplingValidationError(DoiError):
    """The sampled response did not contain a valid structured object."""

    def __init__(self, object_type: str, message: str | None = None):
        super().__init__(
            message="The sampling call failed to generate a valid structured response.",
            extra_info={"object_type": object_type, "message": message},
        )
