"""Vendor CLI invocation."""

import asyncio
import os
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from agent_cloud.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0

# Conventional shell exit codes for a missing binary and a timeout
EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124


@dataclass(frozen=True)
class CommandRequest:
    """A vendor CLI invocation as an argument vector."""

    args: list[str]
    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT

    @property
    def display(self) -> str:
        return " ".join(self.args)


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a finished command."""

    stdout: str
    stderr: str
    exit_code: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def error_text(self) -> str:
        """Best available description of a failure."""
        return (self.stderr or self.stdout or f"exit code {self.exit_code}").strip()


class CommandError(Exception):
    """A vendor CLI command exited unsuccessfully."""

    def __init__(self, request: CommandRequest, result: CommandResult):
        self.request = request
        self.result = result
        super().__init__(f"Command failed: {request.display}: {result.error_text[:500]}")


CommandRunner = Callable[[CommandRequest], Awaitable[CommandResult]]


async def run_command(request: CommandRequest) -> CommandResult:
    """Run a command without a shell and capture its output.

    Never raises for process-level failures: a missing binary and a timeout
    are reported through the exit code like any other failure.
    """
    env = {**os.environ, **request.env} if request.env else None

    logger.debug("command.running", cmd=request.display, cwd=request.cwd)

    try:
        process = await asyncio.create_subprocess_exec(
            *request.args,
            cwd=request.cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
    except FileNotFoundError:
        return CommandResult(
            stdout="",
            stderr=f"{request.args[0]}: command not found",
            exit_code=EXIT_NOT_FOUND,
        )

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(),
            timeout=request.timeout,
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        logger.warning("command.timed_out", cmd=request.display, timeout=request.timeout)
        return CommandResult(
            stdout="",
            stderr=f"Command timed out after {request.timeout:g} seconds",
            exit_code=EXIT_TIMEOUT,
        )

    result = CommandResult(
        stdout=stdout.decode(errors="replace").strip() if stdout else "",
        stderr=stderr.decode(errors="replace").strip() if stderr else "",
        exit_code=process.returncode if process.returncode is not None else 1,
    )

    logger.debug(
        "command.finished",
        cmd=request.display,
        exit_code=result.exit_code,
        stdout_len=len(result.stdout),
        stderr_len=len(result.stderr),
    )
    return result
