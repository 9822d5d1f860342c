"""
Editor Bridge
=============
Request-scoped EditorHost for the HTTP API.

The editor plugin sends, with each run request, the path of its active
document and (optionally) the unsaved buffer content. This adapter answers
the orchestrator's questions from that payload and collects the messages the
orchestrator wants shown, so the endpoint can return them to the plugin.
"""
import asyncio
import logging
from typing import List, Optional, Sequence

from crunner.executor.toolchain_locator import RemediationOption
from crunner.models.source_unit import SourceUnit

logger = logging.getLogger(__name__)


def _write_text(path: str, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


class RequestEditorHost:

    def __init__(self, active_path: Optional[str], content: Optional[str] = None) -> None:
        self._active_path = active_path
        self._content = content
        self.info: List[str] = []
        self.errors: List[str] = []
        self.remediation: List[RemediationOption] = []
        self.saved = False

    def active_path(self) -> Optional[str]:
        return self._active_path

    async def save(self, unit: SourceUnit) -> None:
        """Write the buffer content sent by the plugin; nothing to do when it sent none."""
        if self._content is None:
            return
        await asyncio.to_thread(_write_text, unit.path, self._content)
        self.saved = True
        logger.info("Saved %d chars to %s", len(self._content), unit.path)

    def show_info(self, message: str) -> None:
        self.info.append(message)

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def prompt_remediation(self, message: str, options: Sequence[RemediationOption]) -> None:
        self.errors.append(message)
        self.remediation = list(options)
