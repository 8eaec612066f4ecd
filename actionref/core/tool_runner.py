import asyncio
import codecs
import shutil
import sys
from typing import List, Optional, TextIO

from actionref.core import log
from actionref.core.exceptions import CommandInvocationError, FileCmdNotFoundError

# Maximum number of characters kept from a program's stderr. Stops a program
# that fails while printing many log lines from exhausting memory.
MAX_STDERR_BUFFER_SIZE = 20000

READ_CHUNK_SIZE = 64 * 1024


class StderrBuffer:
    """Accumulates stderr text, keeping only the newest characters."""

    def __init__(self, max_size: int = MAX_STDERR_BUFFER_SIZE):
        self.max_size = max_size
        self._text = ""

    def append(self, data: str) -> None:
        if len(data) > self.max_size:
            # Nothing buffered earlier could survive alongside this chunk
            self._text = data[len(data) - self.max_size + 1:]
            return
        self._text += data
        if len(self._text) > self.max_size:
            self._text = self._text[-self.max_size:]

    def getvalue(self) -> str:
        return self._text


async def _pump(stream: asyncio.StreamReader, on_data) -> None:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        text = decoder.decode(chunk)
        if text:
            on_data(text)
    tail = decoder.decode(b"", final=True)
    if tail:
        on_data(tail)


async def _feed_stdin(writer: asyncio.StreamWriter, payload: str) -> None:
    try:
        writer.write(payload.encode("utf-8"))
        await writer.drain()
    except (BrokenPipeError, ConnectionResetError) as error:
        log.debug(f"Process closed stdin before the payload was written: {error}")
    finally:
        writer.close()


async def run_tool(
    cmd: str,
    args: Optional[List[str]] = None,
    stdin: Optional[str] = None,
    no_stream_stdout: bool = False,
    cwd: Optional[str] = None,
    output: Optional[TextIO] = None,
) -> str:
    """
    Runs a CLI tool to completion.

    Stdout is streamed to ``output`` (``sys.stdout`` by default) as it arrives
    unless ``no_stream_stdout`` is set. Stderr is always mirrored to the same
    channel and kept in a buffer bounded by MAX_STDERR_BUFFER_SIZE.

    Args:
        cmd: Program to execute
        args: Arguments passed to the program
        stdin: Optional text written to the program's standard input
        no_stream_stdout: Do not echo the command or its stdout
        cwd: Working directory for the program
        output: Text stream receiving the live output

    Returns:
        str: Standard output produced by the tool

    Raises:
        CommandInvocationError: The tool exited non-zero or could not start
    """
    args = list(args or [])
    output = output or sys.stdout
    stdout_parts: List[str] = []
    stderr_buffer = StderrBuffer()

    if not no_stream_stdout:
        output.write(f"[command]{cmd} {' '.join(args)}\n")

    def on_stdout(text: str) -> None:
        stdout_parts.append(text)
        if not no_stream_stdout:
            output.write(text)
            output.flush()

    def on_stderr(text: str) -> None:
        stderr_buffer.append(text)
        output.write(text)
        output.flush()

    try:
        process = await asyncio.create_subprocess_exec(
            cmd,
            *args,
            cwd=cwd,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as error:
        log.debug(f"Unable to start {cmd}: {error}")
        raise CommandInvocationError(cmd, args, None, str(error), "") from error

    tasks = [
        _pump(process.stdout, on_stdout),
        _pump(process.stderr, on_stderr),
    ]
    if stdin is not None:
        tasks.append(_feed_stdin(process.stdin, stdin))
    await asyncio.gather(*tasks)
    exit_code = await process.wait()

    stdout = "".join(stdout_parts)
    if exit_code != 0:
        raise CommandInvocationError(cmd, args, exit_code, stderr_buffer.getvalue(), stdout)
    return stdout


async def get_file_type(file_path: str, output: Optional[TextIO] = None) -> str:
    """
    Tries to obtain the output of `file -L` for the given path.

    The output varies with the kind of file and the operating system, e.g. for
    binaries it may say whether they are statically or dynamically linked.
    """
    file_cmd_path = shutil.which("file")
    if file_cmd_path is None:
        raise FileCmdNotFoundError(
            "The `file` program is required, but does not appear to be installed. Please install it."
        )

    try:
        stdout = await run_tool(file_cmd_path, ["-L", file_path], no_stream_stdout=True, output=output)
        return stdout.strip()
    except CommandInvocationError as error:
        log.info(f"Could not determine type of {file_path} from {error.stdout}. {error.stderr}")
        raise
