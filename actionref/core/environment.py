import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from actionref.core.exceptions import (
    InvalidEnvironmentValue,
    MissingEnvironmentVariable,
    WorkflowEventError,
)

TEMP_DIRECTORY_OVERRIDE = "ACTIONREF_TEMP"
DEFAULT_BRANCH_OVERRIDE = "CODE_SCANNING_IS_ANALYZING_DEFAULT_BRANCH"


class ActionsEnvironment:
    """
    Read access to the variables a GitHub Actions runner provides.

    Wraps a mapping (``os.environ`` unless one is given) so that every lookup
    happens at call time and tests can hand in a plain dict.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def get_optional(self, name: str) -> Optional[str]:
        value = self.environ.get(name)
        return value if value else None

    def get_required(self, name: str) -> str:
        value = self.environ.get(name)
        if not value:
            raise MissingEnvironmentVariable(f"{name} environment variable must be set")
        return value

    def temporary_directory(self) -> str:
        return self.get_optional(TEMP_DIRECTORY_OVERRIDE) or self.get_required("RUNNER_TEMP")

    def workflow_event_name(self) -> str:
        """The event that triggered the workflow; "dynamic" for default setup runs."""
        return self.get_required("GITHUB_EVENT_NAME")

    def workflow_event(self) -> Any:
        """Returns the contents of GITHUB_EVENT_PATH as parsed JSON."""
        event_path = self.get_required("GITHUB_EVENT_PATH")
        try:
            with open(event_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as error:
            raise WorkflowEventError(f"Unable to read workflow event JSON from {event_path}: {error}")

    def workflow_run_id(self) -> int:
        value = self.get_required("GITHUB_RUN_ID")
        try:
            run_id = int(value, 10)
        except ValueError:
            raise InvalidEnvironmentValue(
                f"GITHUB_RUN_ID must define a non NaN workflow run ID. Current value is {value}"
            )
        if run_id < 0:
            raise InvalidEnvironmentValue(
                f"GITHUB_RUN_ID must be a non-negative integer. Current value is {value}"
            )
        return run_id

    def workflow_run_attempt(self) -> int:
        value = self.get_required("GITHUB_RUN_ATTEMPT")
        try:
            attempt = int(value, 10)
        except ValueError:
            raise InvalidEnvironmentValue(
                f"GITHUB_RUN_ATTEMPT must define a non NaN workflow run attempt. Current value is {value}"
            )
        if attempt <= 0:
            raise InvalidEnvironmentValue(
                f"GITHUB_RUN_ATTEMPT must be a positive integer. Current value is {value}"
            )
        return attempt

    def is_self_hosted_runner(self) -> bool:
        return self.environ.get("RUNNER_ENVIRONMENT") == "self-hosted"

    def is_default_setup(self) -> bool:
        return self.workflow_event_name() == "dynamic"

    def is_default_branch_override(self) -> bool:
        return self.environ.get(DEFAULT_BRANCH_OVERRIDE) == "true"

    def relative_script_path(self, script_path: Optional[str] = None) -> str:
        """Location of ``script_path`` relative to the runner's downloaded actions directory."""
        runner_temp = self.get_required("RUNNER_TEMP")
        actions_directory = Path(runner_temp).parent / "_actions"
        return os.path.relpath(script_path or __file__, actions_directory)

    def is_running_local_action(self, script_path: Optional[str] = None) -> bool:
        """True when the workflow runs a local copy of the action instead of a downloaded one."""
        relative_path = self.relative_script_path(script_path)
        return relative_path.startswith("..") or os.path.isabs(relative_path)
