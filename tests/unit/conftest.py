import json

import pytest

from actionref.core.environment import ActionsEnvironment
from actionref.core.inputs import ActionInputs

MERGE_SHA = "a" * 40


@pytest.fixture
def base_env(tmp_path):
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps({"repository": {"default_branch": "main"}}))
    return {
        "GITHUB_REF": "refs/heads/main",
        "GITHUB_SHA": MERGE_SHA,
        "GITHUB_WORKSPACE": str(tmp_path),
        "GITHUB_EVENT_NAME": "push",
        "GITHUB_EVENT_PATH": str(event_path),
        "GITHUB_RUN_ID": "1234",
        "GITHUB_RUN_ATTEMPT": "1",
        "RUNNER_TEMP": str(tmp_path / "runner" / "_temp"),
    }


@pytest.fixture
def make_environment(base_env):
    def _make(**overrides):
        env = dict(base_env)
        for name, value in overrides.items():
            if value is None:
                env.pop(name, None)
            else:
                env[name] = value
        return ActionsEnvironment(env)
    return _make


@pytest.fixture
def no_inputs():
    return ActionInputs()
