"""
Compile Invoker
===============
Runs one compiler invocation for one C source file and returns the
captured result (exit code, stdout, stderr).

BOUNDARY RULES:
    - Invoker ONLY observes the compiler.
    - Invoker NEVER parses diagnostics; that is the Parser's job.
    - Invoker NEVER touches the diagnostics store; that is the Orchestrator's job.
    - Invoker NEVER deletes the produced executable.

COMMAND SHAPE:
    <compiler> <source> [-fsyntax-only | -o <dir>/<stem><suffix>] <options...>

    No shell is involved: the argv list goes straight to the OS, so paths
    with spaces or quotes need no escaping. stdin is /dev/null.

COMPLETION:
    Exactly one InvocationResult per call. A compiler that ran and failed
    yields its exit code plus all captured output. A compiler that could not
    be started yields exit_code -1 and `spawn_error` set, so callers can tell
    "compile failed" apart from "compiler unavailable".
"""
import os
import time
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from crunner.core.config import COMPILER_OPTIONS, COMPILE_TIMEOUT
from crunner.core.constants import EXECUTABLE_SUFFIX, SYNTAX_ONLY_FLAG, OUTPUT_FLAG

logger = logging.getLogger(__name__)


class CompileMode(str, Enum):
    SYNTAX_CHECK = "syntax_check"
    BUILD_EXECUTABLE = "build_executable"


# ---------------------------------------------------------------------------
# Invocation Result (returned to the Orchestrator)
# ---------------------------------------------------------------------------
@dataclass
class InvocationResult:
    """
    Structured output from a single compiler invocation.

    Fields
    ------
    exit_code : int
        Process exit code (0 = success, non-zero = failure, -1 = never ran
        to completion).
    stdout : str
        Captured standard output.
    stderr : str
        Captured standard error, where the diagnostics live.
    command : list[str]
        The argv that was executed.
    executable_path : str | None
        Output binary path (BUILD_EXECUTABLE mode only).
    spawn_error : str | None
        Set when the process could not be started (or was killed on timeout).
    duration_seconds : float
        Wall clock duration of the invocation.
    """
    exit_code: int = -1
    stdout: str = ""
    stderr: str = ""
    command: Optional[list[str]] = None
    executable_path: Optional[str] = None
    spawn_error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def spawned(self) -> bool:
        return self.spawn_error is None


# ---------------------------------------------------------------------------
# Command Construction
# ---------------------------------------------------------------------------
def executable_path_for(source_path: str) -> str:
    """`<sourceDir>/<sourceBaseName><platform suffix>`."""
    directory, filename = os.path.split(os.path.abspath(source_path))
    stem, _ = os.path.splitext(filename)
    return os.path.join(directory, stem + EXECUTABLE_SUFFIX)


def build_compile_command(
    compiler_path: str,
    source_path: str,
    mode: CompileMode,
    options: Sequence[str] = COMPILER_OPTIONS,
) -> list[str]:
    """Build the argv for one invocation; options keep their configured order."""
    command = [compiler_path, source_path]
    if mode == CompileMode.SYNTAX_CHECK:
        command.append(SYNTAX_ONLY_FLAG)
    else:
        command.extend([OUTPUT_FLAG, executable_path_for(source_path)])
    command.extend(options)
    return command


def _decode(data: Optional[bytes]) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------
async def compile_source(
    compiler_path: str,
    source_path: str,
    mode: CompileMode,
    options: Sequence[str] = COMPILER_OPTIONS,
    timeout_seconds: Optional[float] = COMPILE_TIMEOUT,
) -> InvocationResult:
    """
    Run the compiler as a child process and await its completion.

    Parameters
    ----------
    compiler_path : str
        Resolved compiler executable (from the Toolchain Locator).
    source_path : str
        Absolute path of the single translation unit.
    mode : CompileMode
        SYNTAX_CHECK for passive diagnostics, BUILD_EXECUTABLE for run.
    options : Sequence[str]
        Compiler flags appended verbatim.
    timeout_seconds : float | None
        Kill the compiler after this many seconds. None waits forever.

    Returns
    -------
    InvocationResult
        Always returned: spawn failures are reported, not raised.
    """
    command = build_compile_command(compiler_path, source_path, mode, options)
    result = InvocationResult(command=command)
    if mode == CompileMode.BUILD_EXECUTABLE:
        result.executable_path = executable_path_for(source_path)

    start_time = time.monotonic()
    logger.info("Compiling %s | mode=%s", source_path, mode.value)
    logger.debug("Command: %s", command)

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        result.spawn_error = f"Failed to start compiler: {type(e).__name__}: {e}"
        result.duration_seconds = round(time.monotonic() - start_time, 3)
        logger.error(result.spawn_error)
        return result

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        try:
            process.kill()
        except ProcessLookupError:
            pass  # exited between the timeout and the kill
        stdout, stderr = await process.communicate()
        result.stdout = _decode(stdout)
        result.stderr = _decode(stderr)
        result.spawn_error = f"Compiler timed out after {timeout_seconds}s"
        result.duration_seconds = round(time.monotonic() - start_time, 3)
        logger.error(result.spawn_error)
        return result

    result.exit_code = process.returncode if process.returncode is not None else -1
    result.stdout = _decode(stdout)
    result.stderr = _decode(stderr)
    result.duration_seconds = round(time.monotonic() - start_time, 3)

    logger.info(
        "Compile complete | exit=%d | time=%.2fs | file=%s",
        result.exit_code, result.duration_seconds, source_path,
    )
    return result
