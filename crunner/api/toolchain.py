"""
Toolchain endpoints
===================
GET    /api/toolchain           — is a compiler installed, and where is it expected
POST   /api/toolchain/download  — start the download + extract job (409 if one is running)
DELETE /api/toolchain/download  — cancel the running job
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from crunner.api.deps import Services, get_services
from crunner.api.run import RemediationItem

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/toolchain", tags=["Toolchain"])


class DownloadRequest(BaseModel):
    url: Optional[str] = None


class ToolchainStatus(BaseModel):
    available: bool
    expected_path: str
    remediation: List[RemediationItem]
    download: dict


@router.get("", response_model=ToolchainStatus)
async def toolchain_status(services: Services = Depends(get_services)):
    locator = services.locator
    available = locator.locate() is not None
    return ToolchainStatus(
        available=available,
        expected_path=locator.expected_path,
        remediation=[] if available else [
            RemediationItem(action=o.action, label=o.label, detail=o.detail)
            for o in locator.remediation_options()
        ],
        download=services.install_job.snapshot(),
    )


@router.post("/download", status_code=202)
async def start_download(
    request: Optional[DownloadRequest] = None,
    services: Services = Depends(get_services),
):
    job = services.install_job
    if job.running:
        raise HTTPException(status_code=409, detail="A toolchain download is already running")

    url = (request.url if request is not None else None) or job.installer.url
    if not url:
        raise HTTPException(
            status_code=400,
            detail="No toolchain URL configured. Set CRUNNER_TOOLCHAIN_URL or pass 'url'.",
        )

    logger.info("[API] Starting toolchain download from %s", url)
    job.start(url=url)
    return job.snapshot()


@router.delete("/download")
async def cancel_download(services: Services = Depends(get_services)):
    if not services.install_job.cancel():
        raise HTTPException(status_code=404, detail="No toolchain download is running")
    logger.info("[API] Toolchain download cancellation requested")
    return {"status": "cancelling"}
