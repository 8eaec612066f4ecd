from typing import List, Optional


class ActionRefError(Exception):
    """Base exception for all actionref errors"""
    pass


class ConfigurationError(ActionRefError):
    """Raised when the caller supplied contradictory or invalid inputs"""
    pass


class MissingEnvironmentVariable(ActionRefError):
    """Raised when a required environment variable is unset or empty"""
    pass


class InvalidEnvironmentValue(ActionRefError):
    """Raised when an environment variable holds a value that cannot be used"""
    pass


class WorkflowEventError(ActionRefError):
    """Raised when the workflow event payload cannot be read"""
    pass


class MissingToolError(ActionRefError):
    """Raised when a required external program is not on PATH"""
    pass


class FileCmdNotFoundError(MissingToolError):
    """Raised when the `file` program is not installed"""
    pass


def pretty_print_invocation(cmd: str, args: List[str]) -> str:
    return " ".join(
        f"'{part}'" if any(char.isspace() for char in part) else part
        for part in [cmd, *args]
    )


def ensure_ends_in_period(text: str) -> str:
    return text if text.endswith(".") else f"{text}."


class CommandInvocationError(ActionRefError):
    """
    A tool invocation that exited non-zero or could not be started.

    Carries the command, its arguments, the exit code (``None`` when the
    process never started), the captured stderr and the captured stdout.
    """

    def __init__(
        self,
        cmd: str,
        args: List[str],
        exit_code: Optional[int],
        stderr: str,
        stdout: str
    ):
        self.cmd = cmd
        self.args_list = list(args)
        self.exit_code = exit_code
        self.stderr = stderr
        self.stdout = stdout

        pretty_command = pretty_print_invocation(cmd, self.args_list)
        lines = stderr.strip().split("\n")
        last_line = ensure_ends_in_period(lines[-1].strip() or "n/a")
        super().__init__(
            f'Failed to run "{pretty_command}". '
            f"Exit code was {exit_code} and last log line was: {last_line} See the logs for more details."
        )
