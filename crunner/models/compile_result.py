"""
Compile Result Model
====================
Outcome of one Compile-and-Diagnose attempt. Ephemeral: produced once per
attempt, returned to the caller, never persisted.

Status values:
    success      — exit 0 (diagnostics, if any, are warnings only)
    failed       — compiler ran and exited non-zero
    unavailable  — no toolchain at the expected path, or it could not be started
    skipped      — the document is not a C file; nothing was done

The Run Orchestrator gates on `success`, never on the diagnostics store.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from crunner.models.diagnostic import Diagnostic

CompileStatus = Literal["success", "failed", "unavailable", "skipped"]


class CompileResult(BaseModel):
    success: bool
    status: CompileStatus
    file_path: str
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    exit_code: Optional[int] = None
    raw_output: str = ""
    executable_path: Optional[str] = None
    error: Optional[str] = None
    stale: bool = False

    @property
    def unparsed_failure(self) -> bool:
        """Non-zero exit that produced no structured diagnostics."""
        return self.status == "failed" and not self.diagnostics
