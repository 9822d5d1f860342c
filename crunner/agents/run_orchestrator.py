"""
Run Orchestrator
================
Explicit "run this file" action. Never triggered by passive save events.

Steps:
    1. Precondition: the requested file must be the editor's active document
    2. Toolchain check; if missing, offer remediation and stop
    3. Ask the editor to save, so the binary matches what the user sees
    4. Compile in BUILD_EXECUTABLE mode and check the result in-process
    5. Only on success, hand the binary to the terminal (cwd = its directory);
       a launch the OS refuses ends the attempt with an error message

Compile-then-run is two explicit steps here; success gating is a branch on
the CompileResult, not a shell `&&`. The running program's output and exit
code belong to the terminal and are never captured.
"""
import os
import logging
from typing import Literal

from crunner.agents.collaborators import EditorHost, TerminalHost
from crunner.agents.compile_orchestrator import CompileOrchestrator
from crunner.core.constants import TERMINAL_SESSION_NAME
from crunner.executor.compile_invoker import CompileMode
from crunner.models.compile_result import CompileResult
from crunner.models.source_unit import SourceUnit, normalize_path

logger = logging.getLogger(__name__)

RunOutcome = Literal[
    "started", "compile_failed", "unavailable", "precondition_failed", "launch_failed"
]

_MSG_NOT_ACTIVE = "Activate the editor of the C file you want to run first."
_MSG_NO_COMPILER = "No C compiler found. Download one or install it manually."
_MSG_STARTED = "Compiled successfully. Running..."
_MSG_FAILED = "Compilation failed. Fix the reported problems and try again."
_MSG_LAUNCH_FAILED = "Compiled successfully, but the program could not be started"


class RunOrchestrator:

    def __init__(
        self,
        compiler: CompileOrchestrator,
        editor: EditorHost,
        terminal: TerminalHost,
    ) -> None:
        self.compiler = compiler
        self.editor = editor
        self.terminal = terminal
        self.last_result: CompileResult | None = None

    async def run(self, unit: SourceUnit) -> RunOutcome:
        # --- 1. Precondition: active document ---
        active = self.editor.active_path()
        if not active or normalize_path(active) != unit.normalized_path:
            logger.warning("Run rejected: %s is not the active document (active=%s)", unit.path, active)
            self.editor.show_error(_MSG_NOT_ACTIVE)
            return "precondition_failed"

        # --- 2. Toolchain ---
        locator = self.compiler.locator
        if locator.locate() is None:
            self.editor.prompt_remediation(_MSG_NO_COMPILER, locator.remediation_options())
            return "unavailable"

        # --- 3. Persist current content ---
        await self.editor.save(unit)

        # --- 4. Build ---
        result = await self.compiler.compile_and_diagnose(unit, CompileMode.BUILD_EXECUTABLE)
        self.last_result = result

        if result.status == "unavailable":
            self.editor.prompt_remediation(
                result.error or _MSG_NO_COMPILER, locator.remediation_options()
            )
            return "unavailable"

        if not result.success or not result.executable_path:
            message = _MSG_FAILED
            if result.unparsed_failure and result.raw_output.strip():
                message = f"{_MSG_FAILED}\n{result.raw_output.strip()}"
            self.editor.show_error(message)
            return "compile_failed"

        # --- 5. Hand off to the terminal ---
        self.editor.show_info(_MSG_STARTED)
        self.terminal.create_session(TERMINAL_SESSION_NAME)
        self.terminal.show()
        try:
            self.terminal.send_command(
                [result.executable_path], cwd=os.path.dirname(result.executable_path)
            )
        except OSError as e:
            logger.error("Launch failed for %s: %s", result.executable_path, e)
            self.editor.show_error(f"{_MSG_LAUNCH_FAILED}: {e}")
            return "launch_failed"
        logger.info("Started %s", result.executable_path)
        return "started"
