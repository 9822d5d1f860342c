"""
Constants
Centralised storage for compiler flags, path conventions and pipeline limits.
"""
import os
import sys

TARGET_LANGUAGE = "c"

# Platform executable suffix for produced binaries and the bundled compiler
EXECUTABLE_SUFFIX = ".exe" if sys.platform == "win32" else ""

DEFAULT_COMPILER_SUBPATH = os.path.join("mingw64", "bin", "gcc" + EXECUTABLE_SUFFIX)

# Order matters: flags map 1:1 onto invocation tokens
DEFAULT_COMPILER_OPTIONS: tuple[str, ...] = (
    # Debug info and macros
    "-g3",
    "-D_DEBUG",
    # Core warnings, strict mode
    "-Wall",
    "-Wextra",
    "-Werror",
    "-pedantic",
    "-pipe",
    # Targeted warnings
    "-Wshadow",
    "-Wconversion",
    "-Wfloat-equal",
    "-Wpointer-arith",
    "-Wpointer-compare",
    "-Wcast-align",
    "-Wcast-qual",
    "-Wwrite-strings",
    "-Wimplicit-fallthrough",
    "-Wsequence-point",
    "-Wswitch-default",
    "-Wswitch-enum",
    "-Wtautological-compare",
    "-Wdangling-else",
    "-Wmisleading-indentation",
)

SYNTAX_ONLY_FLAG = "-fsyntax-only"
OUTPUT_FLAG = "-o"

# Highlight to end of line; compilers do not report the token extent
RANGE_END_SENTINEL = 1000

TERMINAL_SESSION_NAME = "C Runner"

# No default archive: a winlibs MinGW-w64 zip URL must be configured
DEFAULT_TOOLCHAIN_URL = ""
TOOLCHAIN_ARCHIVE_NAME = "compiler.zip"
DOWNLOAD_CHUNK_SIZE = 64 * 1024
