import asyncio
import sys
import traceback
from typing import Any, List, Optional

from dotenv import load_dotenv

from actionref.config import CliConfig
from actionref.core.debug_logs import print_debug_logs
from actionref.core.default_branch import is_analyzing_default_branch
from actionref.core.environment import ActionsEnvironment
from actionref.core.exceptions import (
    ActionRefError,
    ConfigurationError,
    InvalidEnvironmentValue,
    MissingEnvironmentVariable,
)
from actionref.core.git_history import GitHistory
from actionref.core.git_paths import decode_git_file_path
from actionref.core.logging import initialize_logging, set_debug_mode
from actionref.core.ref_resolver import RefResolver
from actionref.core.tool_runner import get_file_type
from actionref.output import OutputHandler

core_logger, log = initialize_logging()

load_dotenv()


def cli():
    try:
        sys.exit(main_code())
    except KeyboardInterrupt:
        log.info("Keyboard Interrupt detected, exiting")
        sys.exit(2)
    except (ConfigurationError, MissingEnvironmentVariable, InvalidEnvironmentValue) as error:
        log.error(f"Invalid configuration: {error}")
        sys.exit(2)
    except ActionRefError as error:
        log.error(str(error))
        sys.exit(3)
    except Exception as error:
        log.error("Unexpected error when running the cli")
        log.error(error)
        traceback.print_exc()
        sys.exit(3)


def main_code(args_list: List[str] = None) -> int:
    config = CliConfig.from_args(args_list)
    if config.enable_debug:
        set_debug_mode(True)
        log.debug("Debug logging enabled")
    log.debug(f"config: {config.to_dict()}")

    environment = ActionsEnvironment()
    # stdout carries the result, so mirrored tool output goes to stderr
    resolver = RefResolver(config.to_inputs(), environment, output=sys.stderr)
    output_handler = OutputHandler(config)

    result = asyncio.run(run_command(config, resolver, environment))
    output_handler.handle_output(result)
    return output_handler.return_exit_code(result)


def _require_targets(config: CliConfig, count: int, usage: str) -> None:
    if len(config.targets) < count:
        raise ConfigurationError(f"The {config.command} command requires {usage}.")


def parse_database_targets(targets: List[str]) -> dict:
    """Turns "language=path" targets into a language to database path mapping"""
    databases = {}
    for target in targets:
        language, separator, path = target.partition("=")
        if not separator or not language or not path:
            raise ConfigurationError(f"Expected <language>=<database path>, got {target}")
        databases[language] = path
    return databases


async def run_command(config: CliConfig, resolver: RefResolver, environment: ActionsEnvironment) -> Any:
    checkout_path = resolver.checkout_path(required=False)
    history = GitHistory(checkout_path, output=resolver.output)
    command = config.command

    if command == "ref":
        return await resolver.get_ref()
    if command == "commit":
        ref = config.targets[0] if config.targets else "HEAD"
        return await resolver.get_commit_oid(checkout_path, ref)
    if command == "base-commit":
        return await resolver.determine_base_branch_head_commit_oid(checkout_path)
    if command == "merge-bases":
        _require_targets(config, 2, "at least two refs")
        return await history.get_all_merge_bases(config.targets)
    if command == "diff-hunks":
        _require_targets(config, 2, "a from ref and a to ref")
        return await history.get_diff_hunk_headers(config.targets[0], config.targets[1])
    if command == "deepen":
        return await history.deepen_history()
    if command == "fetch":
        _require_targets(config, 1, "a branch name")
        return await history.fetch_branch(config.targets[0], config.fetch_flags)
    if command == "default-branch":
        return await is_analyzing_default_branch(resolver, environment)
    if command == "file-type":
        _require_targets(config, 1, "a file path")
        return await get_file_type(config.targets[0], output=resolver.output)
    if command == "debug-logs":
        return print_debug_logs(parse_database_targets(config.targets))
    if command == "decode-path":
        return [decode_git_file_path(target) for target in config.targets]
    if command == "context":
        return await build_context(config, resolver, environment, checkout_path)
    raise ConfigurationError(f"Unknown command {command}")


async def build_context(
    config: CliConfig,
    resolver: RefResolver,
    environment: ActionsEnvironment,
    checkout_path: Optional[str] = None
) -> dict:
    """Everything a downstream upload needs to know about this run"""
    return {
        "ref": await resolver.get_ref(),
        "commit_oid": await resolver.get_commit_oid(checkout_path),
        "base_commit_oid": await resolver.determine_base_branch_head_commit_oid(checkout_path),
        "is_default_branch": await is_analyzing_default_branch(resolver, environment),
        "upload": resolver.inputs.upload_kind,
        "run_id": environment.workflow_run_id(),
        "run_attempt": environment.workflow_run_attempt(),
        "self_hosted_runner": environment.is_self_hosted_runner(),
        "default_setup": environment.is_default_setup(),
        "version": config.version,
    }


if __name__ == "__main__":
    cli()
