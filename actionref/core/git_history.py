from typing import List, Optional, TextIO

from actionref.core import log
from actionref.core.exceptions import CommandInvocationError, MissingToolError
from actionref.core.git_interface import Git

HUNK_HEADER_PREFIXES = ("--- ", "+++ ", "@@ ")


class GitHistory:
    """
    History queries used for incremental analysis.

    All of these are optional enrichments: a failing git command is logged by
    Git.run and then reported as an empty or missing result, never raised.
    """

    def __init__(
        self,
        checkout_path: Optional[str] = None,
        git: Optional[Git] = None,
        output: Optional[TextIO] = None
    ):
        self.git = git or Git(checkout_path, output)

    async def deepen_history(self) -> bool:
        """Deepen the history of a shallow checkout by one commit."""
        try:
            await self.git.run(
                ["fetch", "--no-tags", "--deepen=1"],
                "Cannot deepen the shallow repository.",
            )
            return True
        except (CommandInvocationError, MissingToolError):
            return False

    async def fetch_branch(self, branch: str, extra_flags: Optional[List[str]] = None) -> bool:
        """Fetch ``branch`` from origin into the local branch of the same name."""
        try:
            await self.git.run(
                ["fetch", "--no-tags", *(extra_flags or []), "origin", f"{branch}:{branch}"],
                f"Cannot fetch {branch}.",
            )
            return True
        except (CommandInvocationError, MissingToolError):
            return False

    async def get_all_merge_bases(self, refs: List[str]) -> List[str]:
        """
        Compute all merge bases of the given refs.

        Returns:
            List of commit oids, empty when there is no merge base or git failed
        """
        try:
            stdout = await self.git.run(
                ["merge-base", "--all", *refs],
                f"Cannot get merge base of {','.join(refs)}.",
            )
        except (CommandInvocationError, MissingToolError):
            return []
        return stdout.strip().split("\n")

    async def get_diff_hunk_headers(self, from_ref: str, to_ref: str) -> Optional[List[str]]:
        """
        Compute the diff hunk headers between two refs.

        Returns:
            The ``---``, ``+++`` and ``@@`` lines of a zero-context diff in
            their original order, or None if the diff could not be determined
        """
        try:
            stdout = await self.git.run(
                [
                    "-c",
                    "core.quotePath=false",
                    "diff",
                    "--no-renames",
                    "--irreversible-delete",
                    "-U0",
                    from_ref,
                    to_ref,
                ],
                f"Cannot get diff from {from_ref} to {to_ref}.",
            )
        except (CommandInvocationError, MissingToolError):
            return None

        headers = [line for line in stdout.split("\n") if line.startswith(HUNK_HEADER_PREFIXES)]
        log.debug(f"Found {len(headers)} diff hunk header lines between {from_ref} and {to_ref}")
        return headers
