"""
Compile-and-Diagnose Orchestrator
=================================
Drives one compile attempt for one SourceUnit:

    Guard (language) → Guard (toolchain) → Clear → Invoke → Classify → Result

Outcome classification:
    - exit 0, nothing parsed          → success, store stays empty
    - exit 0, warnings parsed         → success, warnings stored
    - exit != 0, diagnostics parsed   → failed, diagnostics stored
    - exit != 0, nothing parsed       → failed, raw stderr kept in raw_output
    - no toolchain / spawn failure    → unavailable, invoker result ignored
    - not a C document                → skipped, nothing touched

Failure semantics:
    No retries. A failed compile is a normal terminal outcome of one
    attempt, never an exception. The returned CompileResult (not the store)
    is what callers gate on.

Overlapping attempts for the same path are not serialized; each one takes
a generation from the store and a result that finishes after a newer
attempt has started is dropped and returned with `stale=True`.
"""
import logging
from typing import Optional, Sequence

from crunner.core.config import COMPILER_OPTIONS, COMPILE_TIMEOUT
from crunner.core.constants import TARGET_LANGUAGE
from crunner.executor.compile_invoker import CompileMode, compile_source
from crunner.executor.toolchain_locator import ToolchainLocator
from crunner.models.compile_result import CompileResult
from crunner.models.source_unit import SourceUnit
from crunner.parser.diagnostic_parser import parse_diagnostics
from crunner.state.diagnostics_store import DiagnosticsStore

logger = logging.getLogger(__name__)


class CompileOrchestrator:
    """
    Owns the compile pipeline for one application instance.

    The diagnostics store is injected so whatever renders it (HTTP API,
    editor plugin, tests) shares the same instance.
    """

    def __init__(
        self,
        locator: ToolchainLocator,
        store: DiagnosticsStore,
        options: Sequence[str] = COMPILER_OPTIONS,
        timeout_seconds: Optional[float] = COMPILE_TIMEOUT,
    ) -> None:
        self.locator = locator
        self.store = store
        self.options = list(options)
        self.timeout_seconds = timeout_seconds

    async def compile_and_diagnose(
        self,
        unit: SourceUnit,
        mode: CompileMode = CompileMode.SYNTAX_CHECK,
    ) -> CompileResult:
        """Run one compile attempt for `unit` and return its result."""
        # --- Guard: language ---
        if unit.language_id != TARGET_LANGUAGE:
            logger.debug("Skipping %s (language=%s)", unit.path, unit.language_id)
            return CompileResult(success=False, status="skipped", file_path=unit.path)

        # --- Guard: toolchain ---
        handle = self.locator.locate()
        if handle is None:
            logger.warning("Toolchain unavailable, expected at %s", self.locator.expected_path)
            return CompileResult(
                success=False,
                status="unavailable",
                file_path=unit.path,
                error=f"No compiler found at {self.locator.expected_path}",
            )

        # --- Clear ---
        generation = self.store.begin(unit.path)
        self.store.clear(unit.path)

        # --- Invoke ---
        invocation = await compile_source(
            handle.compiler_path,
            unit.path,
            mode,
            options=self.options,
            timeout_seconds=self.timeout_seconds,
        )

        if not invocation.spawned:
            return CompileResult(
                success=False,
                status="unavailable",
                file_path=unit.path,
                raw_output=invocation.stderr,
                error=invocation.spawn_error,
            )

        # --- Classify ---
        diagnostics = parse_diagnostics(invocation.stderr)
        success = invocation.exit_code == 0

        if diagnostics:
            stored = self.store.publish(unit.path, generation, diagnostics)
        else:
            # Already cleared; only the generation check matters here
            stored = self.store.is_current(unit.path, generation)

        if not success and not diagnostics:
            logger.warning(
                "Compile of %s failed (exit=%d) with no parseable diagnostics:\n%s",
                unit.path, invocation.exit_code, invocation.stderr.strip(),
            )

        logger.info(
            "Compile %s | file=%s | diagnostics=%d | exit=%d",
            "succeeded" if success else "failed",
            unit.path, len(diagnostics), invocation.exit_code,
        )

        return CompileResult(
            success=success,
            status="success" if success else "failed",
            file_path=unit.path,
            diagnostics=diagnostics,
            exit_code=invocation.exit_code,
            raw_output=invocation.stderr,
            executable_path=invocation.executable_path if success else None,
            stale=not stored,
        )
