import re
from typing import Optional, TextIO

from actionref.core import log
from actionref.core.environment import ActionsEnvironment
from actionref.core.exceptions import (
    CommandInvocationError,
    ConfigurationError,
    MissingEnvironmentVariable,
    MissingToolError,
)
from actionref.core.git_interface import Git
from actionref.core.inputs import ActionInputs
from actionref.core.refs import PullMergeRef, parse_ref

COMMIT_OID_PATTERN = re.compile(r"^[0-9a-fA-F]{40}$")


class RefResolver:
    """
    Works out which commit and ref the results of this run belong to.

    Inputs given to the step take priority over the runner's environment. For
    pull requests the checked-out commit is compared against the merge commit
    the runner announced, because a workflow may have run
    ``git checkout HEAD^2`` to analyze the head of the pull request instead.
    """

    def __init__(
        self,
        inputs: Optional[ActionInputs] = None,
        environment: Optional[ActionsEnvironment] = None,
        output: Optional[TextIO] = None
    ):
        self.environment = environment or ActionsEnvironment()
        self.output = output
        self.inputs = inputs or ActionInputs.from_env(self.environment.environ)

    async def get_commit_oid(self, checkout_path: Optional[str], ref: str = "HEAD") -> str:
        """
        Gets the SHA of ``ref`` in the checkout.

        Falls back to the `sha` input and then GITHUB_SHA when git cannot
        answer. The two only differ when a pull request workflow has moved
        HEAD off the merge commit, which requires git to be available.
        """
        try:
            stdout = await Git(checkout_path, self.output).run(
                ["rev-parse", ref],
                "Continuing with commit SHA from user input or environment.",
            )
            return stdout.strip()
        except (CommandInvocationError, MissingToolError):
            return self.inputs.sha or self.environment.get_required("GITHUB_SHA")

    def get_ref_from_env(self) -> str:
        """
        The ref announced by the runner.

        GITHUB_REF is protected and cannot be overwritten, so it is preferred.
        Dynamic workflows do not always set it, in which case CODE_SCANNING_REF
        is accepted instead.
        """
        try:
            return self.environment.get_required("GITHUB_REF")
        except MissingEnvironmentVariable:
            fallback = self.environment.get_optional("CODE_SCANNING_REF")
            if not fallback:
                raise
            return fallback

    def checkout_path(self, required: bool = True) -> Optional[str]:
        """
        The checkout git runs in: the `checkout_path` input, else the
        `source-root` input, else GITHUB_WORKSPACE.

        With ``required`` unset a missing GITHUB_WORKSPACE gives None, which
        runs git in the current directory.
        """
        path = self.inputs.checkout_path or self.inputs.source_root
        if path:
            return path
        if required:
            return self.environment.get_required("GITHUB_WORKSPACE")
        return self.environment.get_optional("GITHUB_WORKSPACE")

    async def get_ref(self) -> str:
        """
        Get the ref currently being analyzed.

        This is "refs/heads/<branch>" on a push and "refs/pull/<n>/merge" on a
        pull request, rewritten to "refs/pull/<n>/head" when the checkout is
        no longer on the merge commit.
        """
        ref_input = self.inputs.ref
        sha_input = self.inputs.sha
        if bool(ref_input) != bool(sha_input):
            raise ConfigurationError("Both 'ref' and 'sha' are required if one of them is provided.")

        # A user-provided ref is where they want results to go, no questions asked
        if ref_input:
            return ref_input

        ref = self.get_ref_from_env()
        sha = self.environment.get_required("GITHUB_SHA")

        parsed = parse_ref(ref)
        if not isinstance(parsed, PullMergeRef):
            return ref

        checkout_path = self.checkout_path()
        head = await self.get_commit_oid(checkout_path, "HEAD")
        if sha == head:
            return ref

        # actions/checkout@v1 checks out GITHUB_REF rather than GITHUB_SHA, and the
        # two can race apart. Compare against what the fetched merge ref points at.
        remote_merge_oid = await self.get_commit_oid(checkout_path, parsed.remote_tracking())
        if remote_merge_oid == head:
            return ref

        new_ref = str(parsed.to_head())
        log.debug(f"No longer on merge commit, rewriting ref from {ref} to {new_ref}.")
        return new_ref

    async def determine_base_branch_head_commit_oid(
        self,
        checkout_path_override: Optional[str] = None
    ) -> Optional[str]:
        """
        Find the head of the base branch of a pull request.

        GitHub creates the merge commit with the base branch tip as its first
        parent and the pull request head as its second.

        Returns:
            The base branch head SHA, or None when the run was not triggered by
            a pull request or the merge commit does not look as expected
        """
        if self.environment.workflow_event_name() != "pull_request":
            return None

        merge_sha = self.environment.get_required("GITHUB_SHA")
        checkout_path = checkout_path_override or self.inputs.checkout_path

        try:
            stdout = await Git(checkout_path, self.output).run(
                ["show", "-s", "--format=raw", merge_sha],
                "Will calculate the base branch SHA on the server.",
            )
        except (CommandInvocationError, MissingToolError):
            return None

        commit_oid = ""
        base_oid = ""
        head_oid = ""
        for line in stdout.split("\n"):
            if line.startswith("commit ") and not commit_oid:
                commit_oid = line[len("commit "):]
            elif line.startswith("parent "):
                if not base_oid:
                    base_oid = line[len("parent "):]
                elif not head_oid:
                    head_oid = line[len("parent "):]

        if (
            commit_oid == merge_sha
            and COMMIT_OID_PATTERN.match(base_oid)
            and COMMIT_OID_PATTERN.match(head_oid)
        ):
            return base_oid
        log.debug(f"Commit {merge_sha} is not a pull request merge commit, unable to determine base branch head")
        return None
