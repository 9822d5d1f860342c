"""
Diagnostic Model
================
Pydantic model for one compiler-reported issue.
This is the contract between the Diagnostic Parser, the diagnostics store
and every renderer (editor plugin, HTTP API).

Fields:
    file_path   — path exactly as the compiler printed it
    line        — 0-based line (compiler text is 1-based)
    column      — 0-based column (compiler text is 1-based)
    end_line    — same as line; compilers report a single position
    end_column  — RANGE_END_SENTINEL, i.e. "rest of line"
    severity    — "error" or "warning"
    message     — message text after the severity token
"""
from typing import Literal

from pydantic import BaseModel

from crunner.core.constants import RANGE_END_SENTINEL

Severity = Literal["error", "warning"]


class Diagnostic(BaseModel):
    file_path: str
    line: int
    column: int
    severity: Severity
    message: str
    end_line: int = -1
    end_column: int = RANGE_END_SENTINEL

    def model_post_init(self, __context) -> None:
        if self.end_line < 0:
            self.end_line = self.line
