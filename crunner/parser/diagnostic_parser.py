"""
Diagnostic Parser
=================
Converts raw compiler stderr into structured Diagnostic objects.

Pipeline:
    1. Scan the whole text line by line for `<path>:<line>:<col>: <severity>: <msg>`
    2. Convert 1-based line/column to 0-based
    3. Classify severity from the matched token itself
    4. Default the range end to RANGE_END_SENTINEL ("rest of line")

Contract:
    - DETERMINISTIC: same text → same diagnostics, in order of appearance.
    - Every occurrence is extracted, not just the first.
    - Tolerant: lines that do not match (notes, "In function" headers,
      linker output) are skipped silently.
    - No match → empty list, never an error.
"""
import re
import logging

from crunner.core.constants import RANGE_END_SENTINEL
from crunner.models.diagnostic import Diagnostic

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Line Pattern
# ---------------------------------------------------------------------------
# gcc/clang: path:line:col: error: message
# The lazy path group stops at the first ":<digits>:<digits>:" so Windows
# drive letters (C:\src\a.c) stay inside the path.
_GCC_DIAGNOSTIC = re.compile(
    r'^(?P<path>.+?):(?P<line>\d+):(?P<column>\d+):\s+'
    r'(?P<severity>(?:fatal\s+)?error|warning):\s+(?P<message>.+?)\s*$',
    re.MULTILINE,
)


def _severity_of(token: str) -> str:
    return "error" if token.endswith("error") else "warning"


def parse_diagnostics(text: str) -> list[Diagnostic]:
    """
    Parse compiler stderr into Diagnostic objects.

    Parameters
    ----------
    text : str
        Raw diagnostic stream (usually stderr of one compile).

    Returns
    -------
    list[Diagnostic]
        One entry per matching line, in order of appearance.
        Empty list if nothing matched. Never raises.
    """
    if not text or not text.strip():
        return []

    diagnostics: list[Diagnostic] = []
    for m in _GCC_DIAGNOSTIC.finditer(text):
        line = int(m.group("line")) - 1
        column = int(m.group("column")) - 1
        diagnostics.append(Diagnostic(
            file_path=m.group("path").strip(),
            line=max(line, 0),
            column=max(column, 0),
            end_column=RANGE_END_SENTINEL,
            severity=_severity_of(m.group("severity")),
            message=m.group("message"),
        ))

    logger.debug("Parsed %d diagnostic(s) from %d chars", len(diagnostics), len(text))
    return diagnostics

