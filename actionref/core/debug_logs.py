import os
import sys
from dataclasses import dataclass
from typing import Callable, Iterator, List, Mapping, Optional, TextIO

from actionref.core import log


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    path: str
    is_file: bool
    is_dir: bool


DirectoryLister = Callable[[str], List[DirectoryEntry]]


def list_directory(directory: str) -> List[DirectoryEntry]:
    with os.scandir(directory) as entries:
        return [
            DirectoryEntry(
                name=entry.name,
                path=os.path.abspath(entry.path),
                is_file=entry.is_file(),
                is_dir=entry.is_dir(),
            )
            for entry in entries
        ]


def walk_log_files(directory: str, list_directory: DirectoryLister = list_directory) -> Iterator[DirectoryEntry]:
    """
    Yield every file below ``directory``.

    Uses an explicit stack instead of recursion so deeply nested log
    directories cannot exhaust the interpreter's recursion limit.
    """
    pending = [directory]
    while pending:
        current = pending.pop()
        entries = sorted(list_directory(current), key=lambda entry: entry.name)
        if not entries:
            log.info(f"No debug logs found at directory {current}.")
        subdirectories = []
        for entry in entries:
            if entry.is_file:
                yield entry
            elif entry.is_dir:
                subdirectories.append(entry.path)
        # Reversed so subdirectories are visited in name order
        pending.extend(reversed(subdirectories))


def print_debug_logs(
    databases: Mapping[str, str],
    output: Optional[TextIO] = None,
    list_directory: DirectoryLister = list_directory,
    is_directory: Callable[[str], bool] = os.path.isdir,
) -> int:
    """
    Print the debug logs of each database inside a collapsible log group.

    Args:
        databases: Language name to database directory
        output: Text stream to print to, sys.stdout by default
        list_directory: Lister used to walk the log directories
        is_directory: Existence check for the log directories

    Returns:
        int: Number of log files printed
    """
    output = output or sys.stdout
    printed = 0
    for language, database_path in databases.items():
        logs_directory = os.path.join(database_path, "log")
        if not is_directory(logs_directory):
            log.info(f"Directory {logs_directory} does not exist.")
            continue

        for entry in walk_log_files(logs_directory, list_directory):
            output.write(f"::group::Debug Logs - {language} - {entry.name} from file at path {entry.path}\n")
            with open(entry.path, "r", encoding="utf-8", errors="replace") as f:
                output.write(f.read())
            output.write("\n::endgroup::\n")
            printed += 1
    return printed
