"""
POST /api/run
=============
Explicit run request from the editor plugin.

The plugin sends the file to run, the path of its active document and,
optionally, the current buffer content to persist before compiling. The
response carries the outcome plus every message the orchestrator wanted
shown, so the plugin can render them.

Status codes:
    200 — started, compile_failed, unavailable or launch_failed (normal outcomes)
    409 — the requested file is not the active document
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from crunner.agents.run_orchestrator import RunOrchestrator
from crunner.api.deps import Services, get_services
from crunner.models.compile_result import CompileResult
from crunner.models.source_unit import SourceUnit
from crunner.services.editor_bridge import RequestEditorHost

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Run"])


class RunRequest(SourceUnit):
    active_path: Optional[str] = None
    content: Optional[str] = None


class RemediationItem(BaseModel):
    action: str
    label: str
    detail: str


class RunResponse(BaseModel):
    outcome: str
    info: List[str]
    errors: List[str]
    remediation: List[RemediationItem]
    saved: bool = False
    compile_result: Optional[CompileResult] = None


@router.post("/run", response_model=RunResponse)
async def run_file(
    request: RunRequest,
    services: Services = Depends(get_services),
):
    """Compile the active C file and, on success, launch it in a terminal session."""
    logger.info("[API] Run request for %s (active=%s)", request.path, request.active_path)

    editor = RequestEditorHost(active_path=request.active_path, content=request.content)
    orchestrator = RunOrchestrator(
        compiler=services.compiler,
        editor=editor,
        terminal=services.terminal,
    )
    outcome = await orchestrator.run(SourceUnit(path=request.path, language_id=request.language_id))

    body = RunResponse(
        outcome=outcome,
        info=editor.info,
        errors=editor.errors,
        remediation=[
            RemediationItem(action=o.action, label=o.label, detail=o.detail)
            for o in editor.remediation
        ],
        saved=editor.saved,
        compile_result=orchestrator.last_result,
    )
    if outcome == "precondition_failed":
        return JSONResponse(status_code=409, content=body.model_dump(mode="json"))
    return body
