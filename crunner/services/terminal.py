"""
Terminal Service
================
Local stand-in for the editor's integrated terminal: a named session that
launches a command in its own process group and forgets about it.

The program's output goes to the session's console (a new console window on
Windows, the service's own stdio elsewhere); nothing is captured and the
exit code is never awaited.
"""
import sys
import logging
import subprocess
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class SubprocessTerminal:
    """Fire-and-forget process launcher implementing TerminalHost."""

    def __init__(self) -> None:
        self.name: Optional[str] = None
        self.launched: List[subprocess.Popen] = []

    def create_session(self, name: str) -> None:
        self.name = name
        logger.info("Terminal session '%s' ready", name)

    def show(self) -> None:
        logger.debug("Terminal session '%s' shown", self.name)

    def send_command(self, argv: Sequence[str], cwd: str) -> None:
        kwargs = {}
        if sys.platform == "win32":
            kwargs["creationflags"] = subprocess.CREATE_NEW_CONSOLE
        else:
            kwargs["start_new_session"] = True

        logger.info("[%s] %s (cwd=%s)", self.name or "terminal", " ".join(argv), cwd)
        try:
            process = subprocess.Popen(list(argv), cwd=cwd, **kwargs)
        except OSError as e:
            logger.error("Failed to launch %s: %s", argv[0] if argv else "?", e)
            raise
        # Drop handles of programs that already exited
        self.launched = [p for p in self.launched if p.poll() is None]
        self.launched.append(process)
