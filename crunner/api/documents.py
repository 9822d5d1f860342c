"""
Document endpoints
==================
POST /api/documents/saved — passive save event: SyntaxCheck compile, diagnostics refreshed
GET  /api/diagnostics      — current diagnostics for one file (the rendering sink)

A missing toolchain is a normal outcome here (status "unavailable" in the
body), not an HTTP error; the plugin decides whether to nag the user.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from crunner.api.deps import Services, get_services
from crunner.executor.compile_invoker import CompileMode
from crunner.models.compile_result import CompileResult
from crunner.models.diagnostic import Diagnostic
from crunner.models.source_unit import SourceUnit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Documents"])


class DiagnosticsResponse(BaseModel):
    path: str
    diagnostics: List[Diagnostic]


@router.post("/documents/saved", response_model=CompileResult)
async def document_saved(
    unit: SourceUnit,
    services: Services = Depends(get_services),
):
    """Re-diagnose a document after the editor saved it."""
    logger.info("[API] Save event for %s (%s)", unit.path, unit.language_id)
    return await services.compiler.compile_and_diagnose(unit, CompileMode.SYNTAX_CHECK)


@router.get("/diagnostics", response_model=DiagnosticsResponse)
async def get_diagnostics(
    path: str = Query(..., min_length=1),
    services: Services = Depends(get_services),
):
    return DiagnosticsResponse(path=path, diagnostics=services.store.get(path))
