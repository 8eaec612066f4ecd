import argparse
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from actionref import __version__
from actionref.core.inputs import ActionInputs

COMMANDS = [
    "ref",
    "commit",
    "base-commit",
    "merge-bases",
    "diff-hunks",
    "deepen",
    "fetch",
    "default-branch",
    "file-type",
    "debug-logs",
    "decode-path",
    "context",
]


@dataclass
class CliConfig:
    command: str
    targets: List[str] = field(default_factory=list)
    ref: Optional[str] = None
    sha: Optional[str] = None
    checkout_path: Optional[str] = None
    source_root: Optional[str] = None
    upload: Optional[str] = None
    fetch_flags: List[str] = field(default_factory=list)
    enable_debug: bool = False
    enable_json: bool = False
    version: str = __version__

    @classmethod
    def from_args(cls, args_list: Optional[List[str]] = None, environ=None) -> 'CliConfig':
        parser = create_argument_parser()
        args = parser.parse_args(args_list)

        # Flags win over the step inputs the runner exposes as INPUT_* variables
        env_inputs = ActionInputs.from_env(environ)

        config_args = {
            'command': args.command,
            'targets': args.targets,
            'ref': args.ref or env_inputs.ref,
            'sha': args.sha or env_inputs.sha,
            'checkout_path': args.checkout_path or env_inputs.checkout_path,
            'source_root': args.source_root or env_inputs.source_root,
            'upload': args.upload or env_inputs.upload,
            'fetch_flags': args.fetch_flags or [],
            'enable_debug': args.enable_debug,
            'enable_json': args.enable_json,
        }
        return cls(**config_args)

    def to_inputs(self) -> ActionInputs:
        return ActionInputs(
            ref=self.ref,
            sha=self.sha,
            checkout_path=self.checkout_path,
            source_root=self.source_root,
            upload=self.upload,
        )

    def to_dict(self) -> dict:
        return asdict(self)


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="actionref",
        description="Resolve the ref and commit that CI analysis results belong to, and query the git history used for incremental analysis."
    )
    parser.add_argument(
        "command",
        choices=COMMANDS,
        metavar="<command>",
        help=f"Operation to run, one of: {', '.join(COMMANDS)}"
    )
    parser.add_argument(
        "targets",
        nargs="*",
        metavar="<target>",
        help="Refs, branch, or path the command operates on"
    )

    # Step inputs
    input_group = parser.add_argument_group('Inputs')
    input_group.add_argument(
        "--ref",
        metavar="<ref>",
        help="Ref to attribute results to (can also be set via INPUT_REF env var)"
    )
    input_group.add_argument(
        "--sha",
        metavar="<sha>",
        help="Commit SHA to attribute results to (can also be set via INPUT_SHA env var)"
    )
    input_group.add_argument(
        "--checkout-path",
        dest="checkout_path",
        metavar="<path>",
        help="Path of the git checkout (can also be set via INPUT_CHECKOUT_PATH env var)"
    )
    input_group.add_argument(
        "--checkout_path",
        dest="checkout_path",
        help=argparse.SUPPRESS
    )
    input_group.add_argument(
        "--source-root",
        dest="source_root",
        metavar="<path>",
        help="Alternate source root used when no checkout path is given"
    )
    input_group.add_argument(
        "--upload",
        metavar="<mode>",
        help="Upload mode: always, failure-only or never"
    )

    # Git options
    git_group = parser.add_argument_group('Git')
    git_group.add_argument(
        "--fetch-flag",
        dest="fetch_flags",
        metavar="<flag>",
        action="append",
        help="Extra flag passed to git fetch, may be repeated"
    )

    # Output Configuration
    output_group = parser.add_argument_group('Output Configuration')
    output_group.add_argument(
        "--enable-debug",
        dest="enable_debug",
        action="store_true",
        help="Enable debug logging"
    )
    output_group.add_argument(
        "--enable_debug",
        dest="enable_debug",
        action="store_true",
        help=argparse.SUPPRESS
    )
    output_group.add_argument(
        "--enable-json",
        dest="enable_json",
        action="store_true",
        help="Output in JSON format"
    )
    output_group.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser
