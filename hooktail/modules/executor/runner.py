"""
Command runner.

Runs one hook command through bash, streaming its combined stdout/stderr
into an output sink line by line while the process is still running.
"""

import logging
import subprocess
from typing import List, Protocol

from hooktail.config import HookDefinition

logger = logging.getLogger("hooktail.executor")

READ_CHUNK_SIZE = 1024

SUCCESS_LINE = "Command finished successfully"


class LineSink(Protocol):
    def record(self, hook_id: str, line: str) -> None:
        ...


class LineFramer:
    """
    Accumulate bytes until a newline delimiter.

    feed() returns the lines completed by a chunk, without their newline.
    Bytes after the last newline stay in ``pending`` until more data arrives.
    Whatever is still pending at EOF is never emitted.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        return bytes(self._buffer)

    def feed(self, chunk: bytes) -> List[str]:
        lines = []
        start = 0
        while True:
            end = chunk.find(b"\n", start)
            if end == -1:
                break
            self._buffer += chunk[start:end]
            lines.append(self._buffer.decode(self.encoding, errors="replace"))
            self._buffer.clear()
            start = end + 1
        self._buffer += chunk[start:]
        return lines


def describe_exit(returncode: int) -> str:
    """Render a failed exit status the way the outcome line reports it."""
    if returncode < 0:
        return f"signal: {-returncode}"
    return f"exit status {returncode}"


class CommandRunner:
    """Executes hook commands synchronously in the calling thread."""

    def __init__(self, shell: str = "bash"):
        self.shell = shell

    def run(self, hook: HookDefinition, sink: LineSink) -> int:
        """
        Execute a hook command and stream its output to sink.

        Blocks until the output reaches EOF and the process exits. Every
        path ends with exactly one outcome line recorded in the sink.

        Args:
            hook: Hook definition to execute
            sink: Receiver of output and outcome lines

        Returns:
            Process return code, or -1 if the process could not be started
        """
        logger.info(f"Executing hook {hook.id}")

        try:
            process = subprocess.Popen(
                [self.shell, "-c", hook.execute_command],
                cwd=hook.command_working_directory or None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
            )
        except (OSError, ValueError) as e:
            logger.error(f"Failed to start hook {hook.id}: {e}")
            sink.record(hook.id, f"Error starting command: {e}")
            return -1

        framer = LineFramer()
        try:
            while True:
                chunk = process.stdout.read1(READ_CHUNK_SIZE)
                if not chunk:
                    break
                for line in framer.feed(chunk):
                    sink.record(hook.id, line)
        except OSError as e:
            logger.warning(f"Error reading output of hook {hook.id}: {e}")
            sink.record(hook.id, f"Error reading output: {e}")
        finally:
            process.stdout.close()

        if framer.pending:
            logger.debug(
                f"Dropping {len(framer.pending)} trailing byte(s) without newline from hook {hook.id}"
            )

        returncode = process.wait()
        if returncode != 0:
            logger.info(f"Hook {hook.id} failed with {describe_exit(returncode)}")
            sink.record(hook.id, f"Command finished with error: {describe_exit(returncode)}")
        else:
            logger.info(f"Hook {hook.id} finished successfully")
            sink.record(hook.id, SUCCESS_LINE)

        return returncode
