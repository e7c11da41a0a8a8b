"""Admin API for cache and data source control."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from satvik_catalog.api.routes import get_service
from satvik_catalog.config import get_settings
from satvik_catalog.service import UnifiedDataService
from satvik_catalog.source_selection import parse_data_source

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin/catalog", tags=["admin"])


class DataSourceUpdate(BaseModel):
    """Payload for switching the active data source."""

    data_source: str | None = None
    persist: bool = False


async def verify_admin_key(request: Request) -> None:
    """Require Authorization: Bearer <admin_api_key>. Raise 401/403 if missing or invalid."""
    settings = get_settings()
    if not settings.admin_api_key:
        raise HTTPException(status_code=501, detail="Admin API not configured")
    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    key = auth[7:].strip()
    if key != settings.admin_api_key:
        raise HTTPException(status_code=403, detail="Invalid admin key")


@router.post("/cache/clear", dependencies=[Depends(verify_admin_key)])
async def clear_cache(service: UnifiedDataService = Depends(get_service)):
    """Drop the cached snapshot; the next read refetches."""
    service.clear_cache()
    return {"status": "cleared"}


@router.post("/refresh", dependencies=[Depends(verify_admin_key)])
async def refresh(service: UnifiedDataService = Depends(get_service)):
    """Refetch the catalog from the active source now."""
    data = await service.refresh()
    return {"status": "refreshed", "metadata": data.metadata}


@router.put("/data-source", dependencies=[Depends(verify_admin_key)])
async def set_data_source(
    body: DataSourceUpdate,
    service: UnifiedDataService = Depends(get_service),
) -> dict[str, Any]:
    """
    Override the active source for this process.

    A null ``data_source`` removes the override. With ``persist`` the choice
    is also written to the preference file (or removed from it).
    """
    selector = service.selector
    if body.data_source is None:
        selector.clear_override()
        if body.persist:
            selector.clear_preference()
    else:
        source = parse_data_source(body.data_source)
        selector.set_override(source)
        if body.persist:
            selector.save_preference(source)
    logger.info("Admin changed data source", extra={"data_source": service.active_source.value})
    return service.get_data_source_info()
