"""
Unit Tests — Compile Invoker
============================
Command construction for both modes, and real subprocess behaviour using
the current Python interpreter as a stand-in compiler: the "source path"
argument is a script that plays the compiler's part.

No C compiler required.
"""
import os
import sys
import asyncio
import textwrap
import pytest

from crunner.core.constants import EXECUTABLE_SUFFIX, SYNTAX_ONLY_FLAG
from crunner.executor.compile_invoker import (
    CompileMode,
    InvocationResult,
    build_compile_command,
    compile_source,
    executable_path_for,
)


OPTIONS = ["-Wall", "-Werror", "-std=c11", "-g3"]


# ---------------------------------------------------------------------------
# 1. Command construction
# ---------------------------------------------------------------------------
class TestBuildCommand:

    def test_syntax_check(self):
        cmd = build_compile_command("/tc/gcc", "/src/hello.c", CompileMode.SYNTAX_CHECK, OPTIONS)
        assert cmd == ["/tc/gcc", "/src/hello.c", SYNTAX_ONLY_FLAG, *OPTIONS]
        assert "-o" not in cmd

    def test_build_executable(self):
        cmd = build_compile_command("/tc/gcc", "/src/hello.c", CompileMode.BUILD_EXECUTABLE, OPTIONS)
        assert cmd[:2] == ["/tc/gcc", "/src/hello.c"]
        out_index = cmd.index("-o")
        assert cmd[out_index + 1] == executable_path_for("/src/hello.c")
        assert SYNTAX_ONLY_FLAG not in cmd

    def test_options_appended_verbatim_in_order(self):
        cmd = build_compile_command("gcc", "a.c", CompileMode.BUILD_EXECUTABLE, OPTIONS)
        assert cmd[-len(OPTIONS):] == OPTIONS

    def test_source_is_single_positional_input(self):
        cmd = build_compile_command("gcc", "a.c", CompileMode.SYNTAX_CHECK, [])
        assert [c for c in cmd[1:] if not c.startswith("-")] == ["a.c"]

    def test_path_with_spaces_not_split(self):
        cmd = build_compile_command("gcc", "/my src/a b.c", CompileMode.SYNTAX_CHECK, [])
        assert "/my src/a b.c" in cmd


class TestExecutablePath:

    def test_same_dir_and_stem(self, tmp_path):
        src = tmp_path / "hello.c"
        assert executable_path_for(str(src)) == str(tmp_path / ("hello" + EXECUTABLE_SUFFIX))

    def test_only_last_extension_replaced(self, tmp_path):
        src = tmp_path / "v1.2.c"
        assert executable_path_for(str(src)).endswith("v1.2" + EXECUTABLE_SUFFIX)


# ---------------------------------------------------------------------------
# 2. Subprocess execution (Python interpreter as fake compiler)
# ---------------------------------------------------------------------------
def _fake_compiler_script(tmp_path, body: str):
    script = tmp_path / "fake_compiler.c"
    script.write_text(textwrap.dedent(body))
    return str(script)


class TestCompileSource:

    def test_clean_exit(self, tmp_path):
        script = _fake_compiler_script(tmp_path, """
            import sys
            print("ok")
        """)
        result = asyncio.run(compile_source(sys.executable, script, CompileMode.SYNTAX_CHECK, []))
        assert isinstance(result, InvocationResult)
        assert result.exit_code == 0
        assert result.spawned
        assert "ok" in result.stdout
        assert result.stderr == ""
        assert result.executable_path is None

    def test_failure_delivers_captured_output(self, tmp_path):
        script = _fake_compiler_script(tmp_path, """
            import sys
            sys.stdout.write("partial\\n")
            sys.stderr.write("a.c:1:2: error: boom\\n")
            sys.exit(1)
        """)
        result = asyncio.run(compile_source(sys.executable, script, CompileMode.SYNTAX_CHECK, []))
        assert result.exit_code == 1
        assert result.spawned
        assert "partial" in result.stdout
        assert "a.c:1:2: error: boom" in result.stderr

    def test_arguments_reach_the_compiler(self, tmp_path):
        script = _fake_compiler_script(tmp_path, """
            import sys
            sys.stderr.write("|".join(sys.argv[1:]))
        """)
        result = asyncio.run(
            compile_source(sys.executable, script, CompileMode.SYNTAX_CHECK, ["-Wall", "-g3"])
        )
        assert result.stderr == f"{SYNTAX_ONLY_FLAG}|-Wall|-g3"

    def test_stdin_is_not_interactive(self, tmp_path):
        script = _fake_compiler_script(tmp_path, """
            import sys
            data = sys.stdin.read()
            sys.stdout.write(repr(data))
        """)
        result = asyncio.run(compile_source(sys.executable, script, CompileMode.SYNTAX_CHECK, []))
        assert result.stdout == "''"

    def test_build_mode_reports_executable_path(self, tmp_path):
        script = _fake_compiler_script(tmp_path, "pass\n")
        result = asyncio.run(
            compile_source(sys.executable, script, CompileMode.BUILD_EXECUTABLE, [])
        )
        assert result.executable_path == executable_path_for(script)

    def test_spawn_failure_is_distinguishable(self, tmp_path):
        missing = str(tmp_path / "no-such-gcc")
        result = asyncio.run(
            compile_source(missing, str(tmp_path / "a.c"), CompileMode.SYNTAX_CHECK, [])
        )
        assert not result.spawned
        assert result.exit_code == -1
        assert "Failed to start compiler" in result.spawn_error

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
    def test_non_executable_file_is_spawn_failure(self, tmp_path):
        not_exec = tmp_path / "gcc"
        not_exec.write_text("")
        os.chmod(not_exec, 0o644)
        result = asyncio.run(
            compile_source(str(not_exec), str(tmp_path / "a.c"), CompileMode.SYNTAX_CHECK, [])
        )
        assert not result.spawned

    def test_timeout_kills_compiler(self, tmp_path):
        script = _fake_compiler_script(tmp_path, """
            import time
            time.sleep(30)
        """)
        result = asyncio.run(
            compile_source(sys.executable, script, CompileMode.SYNTAX_CHECK, [], timeout_seconds=0.5)
        )
        assert not result.spawned
        assert result.exit_code == -1
        assert "timed out" in result.spawn_error
