"""Running external commands.

``Workspace`` never starts processes directly: it calls a ``ProcessRunner``
injected at construction, so tests can substitute a fake that records the
invocation and returns a canned ``ProcessResult``.
"""

from __future__ import annotations

import asyncio
import logging
import platform
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of a finished process.

    Attributes:
        exit_code: Process exit status.
        stdout: Decoded standard output.
        stderr: Decoded standard error.
    """

    exit_code: int
    stdout: str
    stderr: str


class ProcessRunner(Protocol):
    """Callable that runs a command to completion."""

    async def __call__(
        self,
        executable: str,
        arguments: Sequence[str],
        *,
        working_directory: Path,
        environment: Mapping[str, str] | None = None,
        run_in_shell: bool = False,
        encoding: str = "utf-8",
    ) -> ProcessResult: ...


async def run_process(
    executable: str,
    arguments: Sequence[str],
    *,
    working_directory: Path,
    environment: Mapping[str, str] | None = None,
    run_in_shell: bool = False,
    encoding: str = "utf-8",
) -> ProcessResult:
    """Run a command and capture its output.

    Args:
        executable: Program to run.
        arguments: Program arguments.
        working_directory: Directory to run in.
        environment: Replacement environment, or None to inherit.
        run_in_shell: Run through the system shell (needed on Windows,
            where ``dart``/``flutter`` are batch scripts).
        encoding: Encoding of both output streams.

    Returns:
        The exit code and decoded output streams.
    """
    env = dict(environment) if environment is not None else None
    logger.debug("Running %s %s in %s", executable, " ".join(arguments), working_directory)

    if run_in_shell:
        command = subprocess.list2cmdline([executable, *arguments]) if is_windows() else shlex.join(
            [executable, *arguments]
        )
        process = await asyncio.create_subprocess_shell(
            command,
            cwd=working_directory,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    else:
        process = await asyncio.create_subprocess_exec(
            executable,
            *arguments,
            cwd=working_directory,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

    stdout, stderr = await process.communicate()
    return ProcessResult(
        exit_code=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode(encoding, errors="replace"),
        stderr=stderr.decode(encoding, errors="replace"),
    )


def is_windows() -> bool:
    """Return True when running on Windows."""
    return platform.system().lower() == "windows"
