import io
from unittest.mock import patch

import pytest

from actionref.core.exceptions import (
    CommandInvocationError,
    ConfigurationError,
    MissingEnvironmentVariable,
    MissingToolError,
)
from actionref.core.git_interface import Git
from actionref.core.inputs import ActionInputs
from actionref.core.ref_resolver import RefResolver

MERGE_SHA = "a" * 40
HEAD_SHA = "b" * 40
REMOTE_SHA = "c" * 40
BASE_SHA = "d" * 40


def fake_git(responses, calls=None):
    """Patch Git.run with answers keyed by the joined git arguments."""
    async def fake_run(self, args, custom_error_message):
        key = " ".join(args)
        if calls is not None:
            calls.append((self.path, key))
        answer = responses.get(key)
        if answer is None or isinstance(answer, Exception):
            raise answer or CommandInvocationError("git", args, 128, f"fatal: bad revision '{key}'", "")
        return answer
    return patch.object(Git, "run", new=fake_run)


class TestGetCommitOid:
    @pytest.mark.asyncio
    async def test_uses_git(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment())
        with fake_git({"rev-parse HEAD": HEAD_SHA}):
            assert await resolver.get_commit_oid("/repo") == HEAD_SHA

    @pytest.mark.asyncio
    async def test_falls_back_to_sha_input(self, make_environment):
        resolver = RefResolver(ActionInputs(ref="refs/heads/x", sha=BASE_SHA), make_environment())
        with fake_git({}):
            assert await resolver.get_commit_oid("/repo") == BASE_SHA

    @pytest.mark.asyncio
    async def test_falls_back_to_environment(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment())
        with fake_git({}):
            assert await resolver.get_commit_oid("/repo", "refs/heads/main") == MERGE_SHA

    @pytest.mark.asyncio
    async def test_falls_back_when_git_is_missing(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment())
        with fake_git({"rev-parse HEAD": MissingToolError("no git")}):
            assert await resolver.get_commit_oid("/repo") == MERGE_SHA

    @pytest.mark.asyncio
    async def test_fails_only_without_fallback(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(GITHUB_SHA=None))
        with fake_git({}):
            with pytest.raises(MissingEnvironmentVariable):
                await resolver.get_commit_oid("/repo")


class TestGetRefFromEnv:
    def test_prefers_github_ref(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(CODE_SCANNING_REF="refs/heads/other"))
        assert resolver.get_ref_from_env() == "refs/heads/main"

    def test_falls_back_to_code_scanning_ref(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(GITHUB_REF=None, CODE_SCANNING_REF="refs/heads/dyn"))
        assert resolver.get_ref_from_env() == "refs/heads/dyn"

    def test_raises_when_both_missing(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(GITHUB_REF=None))
        with pytest.raises(MissingEnvironmentVariable, match="GITHUB_REF"):
            resolver.get_ref_from_env()


class TestGetRef:
    @pytest.mark.asyncio
    async def test_ref_without_sha_is_a_configuration_error(self, make_environment):
        resolver = RefResolver(ActionInputs(ref="refs/heads/main"), make_environment())
        with pytest.raises(ConfigurationError, match="Both 'ref' and 'sha' are required"):
            await resolver.get_ref()

    @pytest.mark.asyncio
    async def test_sha_without_ref_is_a_configuration_error(self, make_environment):
        resolver = RefResolver(ActionInputs(sha=HEAD_SHA), make_environment())
        with pytest.raises(ConfigurationError):
            await resolver.get_ref()

    @pytest.mark.asyncio
    async def test_ref_input_is_returned_verbatim(self, make_environment):
        resolver = RefResolver(ActionInputs(ref="refs/heads/main", sha=HEAD_SHA), make_environment())
        calls = []
        with fake_git({}, calls):
            assert await resolver.get_ref() == "refs/heads/main"
        assert calls == []

    @pytest.mark.asyncio
    async def test_merge_ref_input_is_not_rewritten(self, make_environment):
        resolver = RefResolver(ActionInputs(ref="refs/pull/5/merge", sha=MERGE_SHA), make_environment())
        with fake_git({"rev-parse HEAD": HEAD_SHA, "rev-parse refs/remotes/pull/5/merge": REMOTE_SHA}):
            assert await resolver.get_ref() == "refs/pull/5/merge"

    @pytest.mark.asyncio
    async def test_branch_ref_from_environment(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment())
        calls = []
        with fake_git({}, calls):
            assert await resolver.get_ref() == "refs/heads/main"
        assert calls == []

    @pytest.mark.asyncio
    async def test_requires_github_sha(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(GITHUB_SHA=None))
        with pytest.raises(MissingEnvironmentVariable, match="GITHUB_SHA"):
            await resolver.get_ref()

    @pytest.mark.asyncio
    async def test_merge_ref_still_on_merge_commit(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(GITHUB_REF="refs/pull/5/merge"))
        calls = []
        with fake_git({"rev-parse HEAD": MERGE_SHA}, calls):
            assert await resolver.get_ref() == "refs/pull/5/merge"
        assert [key for _, key in calls] == ["rev-parse HEAD"]

    @pytest.mark.asyncio
    async def test_merge_ref_rewritten_to_head_ref(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(GITHUB_REF="refs/pull/5/merge"))
        calls = []
        with fake_git({"rev-parse HEAD": HEAD_SHA, "rev-parse refs/remotes/pull/5/merge": REMOTE_SHA}, calls):
            assert await resolver.get_ref() == "refs/pull/5/head"
        assert [key for _, key in calls] == ["rev-parse HEAD", "rev-parse refs/remotes/pull/5/merge"]

    @pytest.mark.asyncio
    async def test_merge_ref_kept_when_remote_ref_matches_head(self, make_environment, no_inputs):
        # actions/checkout@v1 can check out GITHUB_REF after it moved past GITHUB_SHA
        resolver = RefResolver(no_inputs, make_environment(GITHUB_REF="refs/pull/5/merge"))
        with fake_git({"rev-parse HEAD": HEAD_SHA, "rev-parse refs/remotes/pull/5/merge": HEAD_SHA}):
            assert await resolver.get_ref() == "refs/pull/5/merge"

    @pytest.mark.asyncio
    async def test_rev_parse_uses_checkout_path_input(self, make_environment):
        inputs = ActionInputs(checkout_path="/checkout", source_root="/source")
        resolver = RefResolver(inputs, make_environment(GITHUB_REF="refs/pull/5/merge"))
        calls = []
        with fake_git({"rev-parse HEAD": MERGE_SHA}, calls):
            await resolver.get_ref()
        assert calls[0][0] == "/checkout"

    @pytest.mark.asyncio
    async def test_rev_parse_uses_source_root_then_workspace(self, make_environment, base_env):
        calls = []
        with fake_git({"rev-parse HEAD": MERGE_SHA}, calls):
            await RefResolver(ActionInputs(source_root="/source"), make_environment(GITHUB_REF="refs/pull/5/merge")).get_ref()
            await RefResolver(ActionInputs(), make_environment(GITHUB_REF="refs/pull/5/merge")).get_ref()
        assert calls[0][0] == "/source"
        assert calls[1][0] == base_env["GITHUB_WORKSPACE"]

    @pytest.mark.asyncio
    async def test_git_failure_keeps_merge_ref(self, make_environment, no_inputs):
        # Without git, HEAD falls back to GITHUB_SHA which equals the merge commit
        resolver = RefResolver(no_inputs, make_environment(GITHUB_REF="refs/pull/5/merge"))
        with fake_git({}):
            assert await resolver.get_ref() == "refs/pull/5/merge"


class TestDetermineBaseBranchHeadCommitOid:
    RAW_MERGE_COMMIT = "\n".join([
        f"commit {MERGE_SHA}",
        "tree " + "e" * 40,
        f"parent {BASE_SHA}",
        f"parent {HEAD_SHA}",
        "author Octo Cat <octo@example.com> 1700000000 +0000",
        "committer GitHub <noreply@github.com> 1700000000 +0000",
        "",
        f"    Merge {HEAD_SHA} into {BASE_SHA}",
    ])

    @pytest.mark.asyncio
    async def test_not_a_pull_request(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(GITHUB_EVENT_NAME="push"))
        calls = []
        with fake_git({f"show -s --format=raw {MERGE_SHA}": self.RAW_MERGE_COMMIT}, calls):
            assert await resolver.determine_base_branch_head_commit_oid() is None
        assert calls == []

    @pytest.mark.asyncio
    async def test_returns_first_parent(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(GITHUB_EVENT_NAME="pull_request"))
        with fake_git({f"show -s --format=raw {MERGE_SHA}": self.RAW_MERGE_COMMIT}):
            assert await resolver.determine_base_branch_head_commit_oid() == BASE_SHA

    @pytest.mark.asyncio
    async def test_uses_checkout_path_override(self, make_environment):
        resolver = RefResolver(ActionInputs(checkout_path="/input"), make_environment(GITHUB_EVENT_NAME="pull_request"))
        calls = []
        with fake_git({f"show -s --format=raw {MERGE_SHA}": self.RAW_MERGE_COMMIT}, calls):
            await resolver.determine_base_branch_head_commit_oid("/override")
            await resolver.determine_base_branch_head_commit_oid()
        assert [path for path, _ in calls] == ["/override", "/input"]

    @pytest.mark.asyncio
    async def test_single_parent_commit(self, make_environment, no_inputs):
        raw = "\n".join([f"commit {MERGE_SHA}", "tree " + "e" * 40, f"parent {BASE_SHA}"])
        resolver = RefResolver(no_inputs, make_environment(GITHUB_EVENT_NAME="pull_request"))
        with fake_git({f"show -s --format=raw {MERGE_SHA}": raw}):
            assert await resolver.determine_base_branch_head_commit_oid() is None

    @pytest.mark.asyncio
    async def test_commit_mismatch(self, make_environment, no_inputs):
        raw = self.RAW_MERGE_COMMIT.replace(f"commit {MERGE_SHA}", f"commit {REMOTE_SHA}")
        resolver = RefResolver(no_inputs, make_environment(GITHUB_EVENT_NAME="pull_request"))
        with fake_git({f"show -s --format=raw {MERGE_SHA}": raw}):
            assert await resolver.determine_base_branch_head_commit_oid() is None

    @pytest.mark.asyncio
    async def test_malformed_parent(self, make_environment, no_inputs):
        raw = self.RAW_MERGE_COMMIT.replace(f"parent {BASE_SHA}", "parent not-a-sha")
        resolver = RefResolver(no_inputs, make_environment(GITHUB_EVENT_NAME="pull_request"))
        with fake_git({f"show -s --format=raw {MERGE_SHA}": raw}):
            assert await resolver.determine_base_branch_head_commit_oid() is None

    @pytest.mark.asyncio
    async def test_git_failure(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(GITHUB_EVENT_NAME="pull_request"))
        with fake_git({}):
            assert await resolver.determine_base_branch_head_commit_oid() is None


class TestCheckoutPath:
    def test_checkout_path_input_wins(self, make_environment):
        resolver = RefResolver(ActionInputs(checkout_path="/checkout", source_root="/source"), make_environment())
        assert resolver.checkout_path() == "/checkout"

    def test_source_root_input(self, make_environment):
        resolver = RefResolver(ActionInputs(source_root="/source"), make_environment())
        assert resolver.checkout_path() == "/source"

    def test_workspace(self, make_environment, no_inputs, base_env):
        resolver = RefResolver(no_inputs, make_environment())
        assert resolver.checkout_path() == base_env["GITHUB_WORKSPACE"]

    def test_missing_workspace(self, make_environment, no_inputs):
        resolver = RefResolver(no_inputs, make_environment(GITHUB_WORKSPACE=None))
        with pytest.raises(MissingEnvironmentVariable):
            resolver.checkout_path()
        assert resolver.checkout_path(required=False) is None


class TestOutputStream:
    @pytest.mark.asyncio
    async def test_git_output_goes_to_resolver_stream(self, make_environment, no_inputs):
        stream = io.StringIO()
        resolver = RefResolver(no_inputs, make_environment(), output=stream)
        seen = []

        async def fake_run(self, args, custom_error_message):
            seen.append(self.output)
            return HEAD_SHA

        with patch.object(Git, "run", new=fake_run):
            await resolver.get_commit_oid("/repo")
        assert seen == [stream]
