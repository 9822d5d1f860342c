"""
Toolchain Locator
=================
Decides whether a usable compiler exists at the well-known install path.

The expected executable is `<storage_root>/<compiler_subpath>`; the storage
root belongs to the host (the installer extracts into it), the subpath is
fixed by configuration.

Rules:
    - Existence check only: no version probe, no execution.
    - Re-checked on every call. The toolchain may be installed or removed
      between compiles, so liveness is never cached.
    - "Not found" is a normal branch (returns None), never an exception.
"""
import os
import logging
from dataclasses import dataclass
from typing import Optional

from crunner.core.config import STORAGE_ROOT, COMPILER_SUBPATH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolchainHandle:
    """A resolved, validated absolute path to a compiler executable."""
    compiler_path: str


@dataclass(frozen=True)
class RemediationOption:
    action: str     # "download" | "manual"
    label: str
    detail: str


class ToolchainLocator:
    """Resolves the compiler under the private storage root."""

    def __init__(
        self,
        storage_root: str = STORAGE_ROOT,
        compiler_subpath: str = COMPILER_SUBPATH,
    ) -> None:
        self.storage_root = os.path.abspath(storage_root)
        self.compiler_subpath = compiler_subpath

    @property
    def expected_path(self) -> str:
        return os.path.join(self.storage_root, self.compiler_subpath)

    def locate(self) -> Optional[ToolchainHandle]:
        """Return a handle when the compiler file exists, else None."""
        path = self.expected_path
        if not os.path.isfile(path):
            logger.info("No compiler at %s", path)
            return None
        return ToolchainHandle(compiler_path=path)

    def remediation_options(self) -> list[RemediationOption]:
        """The two ways out of a missing toolchain, for the editor to offer."""
        return [
            RemediationOption(
                action="download",
                label="Download compiler",
                detail=f"Download and extract a MinGW-w64 toolchain into {self.storage_root}",
            ),
            RemediationOption(
                action="manual",
                label="Install manually",
                detail=f"Place a gcc executable at {self.expected_path}",
            ),
        ]
