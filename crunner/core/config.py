"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    CRUNNER_STORAGE_ROOT      — Private storage root holding the toolchain (default: ~/.crunner)
    CRUNNER_COMPILER_SUBPATH  — Compiler path relative to the storage root
                                (default: mingw64/bin/gcc, plus .exe on Windows)
    CRUNNER_COMPILER_OPTIONS  — Whitespace-separated flag list replacing the defaults
    CRUNNER_COMPILE_TIMEOUT   — Seconds before a compiler process is killed (default: unset)
    CRUNNER_TOOLCHAIN_URL     — Archive URL used by the toolchain installer
    CRUNNER_HOST / CRUNNER_PORT — Bind address of the editor bridge service
    CRUNNER_LOG_DIR           — Directory for the daily log file (default: logs)

Compiler Options:
    The flag list is fixed for the lifetime of the process and applied
    verbatim, in order, to every invocation. Overriding it through the
    environment replaces the whole list; there is no merging.

Compile Timeout:
    Unset means no timeout: a hung compiler blocks diagnostics for that
    file until it exits. Set CRUNNER_COMPILE_TIMEOUT to bound it.
"""
import os
from typing import Optional

from dotenv import load_dotenv

from crunner.core.constants import (
    DEFAULT_COMPILER_OPTIONS,
    DEFAULT_COMPILER_SUBPATH,
    DEFAULT_TOOLCHAIN_URL,
)

load_dotenv()


def _parse_options(raw: Optional[str]) -> list[str]:
    if raw is None or not raw.strip():
        return list(DEFAULT_COMPILER_OPTIONS)
    return raw.split()


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    value = float(raw)
    return value if value > 0 else None


STORAGE_ROOT = os.path.abspath(
    os.path.expanduser(os.getenv("CRUNNER_STORAGE_ROOT", "~/.crunner"))
)
COMPILER_SUBPATH = os.getenv("CRUNNER_COMPILER_SUBPATH", DEFAULT_COMPILER_SUBPATH)
COMPILER_OPTIONS: list[str] = _parse_options(os.getenv("CRUNNER_COMPILER_OPTIONS"))
COMPILE_TIMEOUT: Optional[float] = _parse_timeout(os.getenv("CRUNNER_COMPILE_TIMEOUT"))

TOOLCHAIN_URL = os.getenv("CRUNNER_TOOLCHAIN_URL", DEFAULT_TOOLCHAIN_URL)

HOST = os.getenv("CRUNNER_HOST", "127.0.0.1")
PORT = int(os.getenv("CRUNNER_PORT", 8765))

LOG_DIR = os.getenv("CRUNNER_LOG_DIR", "logs")
