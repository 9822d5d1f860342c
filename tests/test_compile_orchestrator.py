"""
Compile Orchestrator Tests
==========================
Guards, clearing, outcome classification and stale-result handling, with
the Compile Invoker mocked. No compiler required.
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from crunner.agents.compile_orchestrator import CompileOrchestrator
from crunner.executor.compile_invoker import CompileMode, InvocationResult
from crunner.executor.toolchain_locator import ToolchainLocator
from crunner.models.diagnostic import Diagnostic
from crunner.models.source_unit import SourceUnit
from crunner.state.diagnostics_store import DiagnosticsStore

_INVOKER = "crunner.agents.compile_orchestrator.compile_source"

FAILING_STDERR = (
    "{path}: In function 'main':\n"
    "{path}:3:5: error: expected ';' before 'return'\n"
    "{path}:2:9: warning: unused variable 'x'\n"
)


@pytest.fixture
def locator(tmp_path):
    bin_dir = tmp_path / "tc" / "mingw64" / "bin"
    bin_dir.mkdir(parents=True)
    (bin_dir / "gcc").write_text("")
    return ToolchainLocator(storage_root=str(tmp_path / "tc"), compiler_subpath="mingw64/bin/gcc")


@pytest.fixture
def missing_locator(tmp_path):
    return ToolchainLocator(storage_root=str(tmp_path / "empty"), compiler_subpath="mingw64/bin/gcc")


@pytest.fixture
def store():
    return DiagnosticsStore()


@pytest.fixture
def unit(tmp_path):
    src = tmp_path / "main.c"
    src.write_text("int main(void) { return 0 }\n")
    return SourceUnit(path=str(src), language_id="c")


def _result(exit_code=0, stderr="", stdout="", executable_path=None, spawn_error=None):
    return InvocationResult(
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
        executable_path=executable_path,
        spawn_error=spawn_error,
    )


def _stale(path):
    return Diagnostic(file_path=path, line=99, column=0, severity="error", message="old")


# ===========================================================================
# Guards
# ===========================================================================
def test_non_c_document_is_noop(locator, store, tmp_path):
    async def run_test():
        py = SourceUnit(path=str(tmp_path / "x.py"), language_id="python")
        store.set(py.path, [_stale(py.path)])
        with patch(_INVOKER, new_callable=AsyncMock) as mock_compile:
            result = await CompileOrchestrator(locator, store, options=[]).compile_and_diagnose(py)
        assert result.status == "skipped"
        assert not result.success
        mock_compile.assert_not_called()
        # Nothing touched
        assert len(store.get(py.path)) == 1

    asyncio.run(run_test())


def test_missing_toolchain_never_invokes_compiler(missing_locator, store, unit):
    async def run_test():
        with patch(_INVOKER, new_callable=AsyncMock) as mock_compile:
            result = await CompileOrchestrator(missing_locator, store, options=[]).compile_and_diagnose(unit)
        assert result.status == "unavailable"
        assert not result.success
        assert mock_compile.call_count == 0
        assert missing_locator.expected_path in result.error

    asyncio.run(run_test())


# ===========================================================================
# Outcomes
# ===========================================================================
def test_clean_compile_is_success_with_empty_store(locator, store, unit):
    async def run_test():
        store.set(unit.path, [_stale(unit.path)])
        with patch(_INVOKER, new_callable=AsyncMock, return_value=_result(0)):
            result = await CompileOrchestrator(locator, store, options=[]).compile_and_diagnose(unit)
        assert result.success
        assert result.status == "success"
        assert result.diagnostics == []
        assert store.get(unit.path) == []

    asyncio.run(run_test())


def test_failing_compile_stores_diagnostics(locator, store, unit):
    async def run_test():
        stderr = FAILING_STDERR.format(path=unit.path)
        with patch(_INVOKER, new_callable=AsyncMock, return_value=_result(1, stderr)):
            result = await CompileOrchestrator(locator, store, options=[]).compile_and_diagnose(unit)
        assert not result.success
        assert result.status == "failed"
        assert result.exit_code == 1
        assert [(d.line, d.severity) for d in result.diagnostics] == [(2, "error"), (1, "warning")]
        assert store.get(unit.path) == result.diagnostics

    asyncio.run(run_test())


def test_warnings_with_zero_exit_are_stored_but_succeed(locator, store, unit):
    async def run_test():
        stderr = f"{unit.path}:2:9: warning: unused variable 'x'\n"
        with patch(_INVOKER, new_callable=AsyncMock, return_value=_result(0, stderr)):
            result = await CompileOrchestrator(locator, store, options=[]).compile_and_diagnose(unit)
        assert result.success
        assert len(store.get(unit.path)) == 1
        assert store.get(unit.path)[0].severity == "warning"

    asyncio.run(run_test())


def test_unparsed_failure_keeps_raw_output(locator, store, unit):
    async def run_test():
        stderr = "gcc: internal compiler error: Segmentation fault signal terminated program cc1\n"
        with patch(_INVOKER, new_callable=AsyncMock, return_value=_result(4, stderr)):
            result = await CompileOrchestrator(locator, store, options=[]).compile_and_diagnose(unit)
        assert result.status == "failed"
        assert result.unparsed_failure
        assert "internal compiler error" in result.raw_output
        assert store.get(unit.path) == []

    asyncio.run(run_test())


def test_spawn_failure_reported_as_unavailable(locator, store, unit):
    async def run_test():
        invocation = _result(-1, spawn_error="Failed to start compiler: PermissionError")
        with patch(_INVOKER, new_callable=AsyncMock, return_value=invocation):
            result = await CompileOrchestrator(locator, store, options=[]).compile_and_diagnose(unit)
        assert result.status == "unavailable"
        assert not result.success
        assert "PermissionError" in result.error

    asyncio.run(run_test())


def test_build_mode_passes_through_and_reports_executable(locator, store, unit):
    async def run_test():
        exe = unit.path[:-2]
        with patch(_INVOKER, new_callable=AsyncMock, return_value=_result(0, executable_path=exe)) as mock_compile:
            orchestrator = CompileOrchestrator(locator, store, options=["-Wall", "-g3"])
            result = await orchestrator.compile_and_diagnose(unit, CompileMode.BUILD_EXECUTABLE)
        args, kwargs = mock_compile.call_args
        assert args[0] == locator.expected_path
        assert args[1] == unit.path
        assert args[2] == CompileMode.BUILD_EXECUTABLE
        assert kwargs["options"] == ["-Wall", "-g3"]
        assert result.executable_path == exe

    asyncio.run(run_test())


def test_default_mode_is_syntax_check(locator, store, unit):
    async def run_test():
        with patch(_INVOKER, new_callable=AsyncMock, return_value=_result(0)) as mock_compile:
            await CompileOrchestrator(locator, store, options=[]).compile_and_diagnose(unit)
        assert mock_compile.call_args.args[2] == CompileMode.SYNTAX_CHECK

    asyncio.run(run_test())


# ===========================================================================
# Store invariants
# ===========================================================================
def test_idempotent_on_unchanged_failing_source(locator, store, unit):
    async def run_test():
        stderr = FAILING_STDERR.format(path=unit.path)
        orchestrator = CompileOrchestrator(locator, store, options=[])
        with patch(_INVOKER, new_callable=AsyncMock, return_value=_result(1, stderr)):
            first = await orchestrator.compile_and_diagnose(unit)
            after_first = store.get(unit.path)
            second = await orchestrator.compile_and_diagnose(unit)
        assert first.diagnostics == second.diagnostics
        assert store.get(unit.path) == after_first
        assert len(store.get(unit.path)) == 2

    asyncio.run(run_test())


def test_store_holds_only_latest_attempt(locator, store, unit):
    async def run_test():
        orchestrator = CompileOrchestrator(locator, store, options=[])
        failing = _result(1, FAILING_STDERR.format(path=unit.path))
        with patch(_INVOKER, new_callable=AsyncMock, side_effect=[failing, _result(0)]):
            await orchestrator.compile_and_diagnose(unit)
            assert len(store.get(unit.path)) == 2
            await orchestrator.compile_and_diagnose(unit)
        assert store.get(unit.path) == []

    asyncio.run(run_test())


def test_store_cleared_before_compiler_runs(locator, store, unit):
    async def run_test():
        store.set(unit.path, [_stale(unit.path)])
        seen_during_compile = []

        async def fake_compile(*args, **kwargs):
            seen_during_compile.append(store.get(unit.path))
            return _result(1, FAILING_STDERR.format(path=unit.path))

        with patch(_INVOKER, side_effect=fake_compile):
            await CompileOrchestrator(locator, store, options=[]).compile_and_diagnose(unit)
        assert seen_during_compile == [[]]

    asyncio.run(run_test())


def test_late_older_compile_does_not_overwrite_newer(locator, store, unit):
    async def run_test():
        release_old = asyncio.Event()
        calls = 0

        async def fake_compile(*args, **kwargs):
            nonlocal calls
            calls += 1
            if calls == 1:
                await release_old.wait()
                return _result(1, f"{unit.path}:1:1: error: old result\n")
            return _result(1, f"{unit.path}:5:1: error: new result\n")

        orchestrator = CompileOrchestrator(locator, store, options=[])
        with patch(_INVOKER, side_effect=fake_compile):
            old_task = asyncio.create_task(orchestrator.compile_and_diagnose(unit))
            await asyncio.sleep(0)
            new_result = await orchestrator.compile_and_diagnose(unit)
            release_old.set()
            old_result = await old_task

        assert not new_result.stale
        assert old_result.stale
        assert [d.message for d in store.get(unit.path)] == ["new result"]

    asyncio.run(run_test())
