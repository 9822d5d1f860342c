"""
Collaborator interfaces.

The pipeline talks to the editor and to an interactive terminal only through
these protocols; concrete adapters live in crunner.services.
"""
from typing import Protocol, Sequence

from crunner.executor.toolchain_locator import RemediationOption
from crunner.models.source_unit import SourceUnit


class EditorHost(Protocol):
    """What the Run Orchestrator needs from the editor."""

    def active_path(self) -> str | None:
        """Path of the document currently focused in the editor, if any."""
        ...

    async def save(self, unit: SourceUnit) -> None:
        """Persist the document's current content to disk."""
        ...

    def show_info(self, message: str) -> None:
        ...

    def show_error(self, message: str) -> None:
        ...

    def prompt_remediation(self, message: str, options: Sequence[RemediationOption]) -> None:
        """Offer the ways to obtain a compiler (download or manual placement)."""
        ...


class TerminalHost(Protocol):
    """An interactive terminal that runs commands fire-and-forget."""

    def create_session(self, name: str) -> None:
        ...

    def show(self) -> None:
        ...

    def send_command(self, argv: Sequence[str], cwd: str) -> None:
        ...
