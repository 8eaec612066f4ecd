import shutil
from typing import List, Optional, TextIO

from actionref.core import log
from actionref.core.exceptions import CommandInvocationError, MissingToolError
from actionref.core.tool_runner import run_tool

NOT_A_REPOSITORY = "not a git repository"


class Git:
    """
    Runs git subcommands inside one checkout.

    Every call resolves the git executable again, so a missing git is reported
    at the point of use rather than at construction. Failures are logged with
    the caller's context before being re-raised unchanged; callers decide
    whether a failure is fatal. git's stderr is mirrored to ``output``,
    ``sys.stdout`` when none is given.
    """
    path: Optional[str]
    output: Optional[TextIO]

    def __init__(self, checkout_path: Optional[str] = None, output: Optional[TextIO] = None):
        self.path = checkout_path
        self.output = output

    @staticmethod
    def find_executable() -> str:
        git_path = shutil.which("git")
        if git_path is None:
            raise MissingToolError("Unable to find the git executable on PATH.")
        return git_path

    async def run(self, args: List[str], custom_error_message: str) -> str:
        """
        Run a git subcommand and return its stripped stdout.

        Args:
            args: Arguments following the git executable
            custom_error_message: Context logged when the command fails

        Raises:
            MissingToolError: git is not installed
            CommandInvocationError: git exited non-zero
        """
        git_path = self.find_executable()
        log.debug(f"Running git command: git {' '.join(args)}")
        try:
            stdout = await run_tool(git_path, args, cwd=self.path, no_stream_stdout=True, output=self.output)
        except CommandInvocationError as error:
            reason = error.stderr
            if NOT_A_REPOSITORY in error.stderr:
                reason = "The checkout path provided to the action does not appear to be a git repository."
            log.info(f"git call failed. {custom_error_message} Error: {reason}")
            raise
        return stdout.strip()
