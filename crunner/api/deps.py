"""
Service wiring for the HTTP API.

One Services bundle per application instance, stored on `app.state` and
handed to endpoints through `Depends(get_services)`. Tests swap it with
`app.dependency_overrides`.
"""
from dataclasses import dataclass

from fastapi import Request

from crunner.agents.compile_orchestrator import CompileOrchestrator
from crunner.executor.toolchain_locator import ToolchainLocator
from crunner.services.terminal import SubprocessTerminal
from crunner.services.toolchain_installer import InstallJob, ToolchainInstaller
from crunner.state.diagnostics_store import DiagnosticsStore


@dataclass
class Services:
    locator: ToolchainLocator
    store: DiagnosticsStore
    compiler: CompileOrchestrator
    terminal: SubprocessTerminal
    install_job: InstallJob


def build_services() -> Services:
    locator = ToolchainLocator()
    store = DiagnosticsStore()
    return Services(
        locator=locator,
        store=store,
        compiler=CompileOrchestrator(locator=locator, store=store),
        terminal=SubprocessTerminal(),
        install_job=InstallJob(ToolchainInstaller(storage_root=locator.storage_root)),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
