"""Storage maintenance endpoints"""
from fastapi import APIRouter, HTTPException, Depends
import logging

from ...models.response import CleanupResult, OrphanReport, StorageStats
from ...services import StorageInspector
from ..dependencies import get_storage_inspector

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("/stats", response_model=StorageStats)
async def storage_stats(inspector: StorageInspector = Depends(get_storage_inspector)):
    try:
        return inspector.get_stats()
    except Exception as e:
        logger.error(f"Storage stats error: {e}")
        raise HTTPException(status_code=500, detail="Failed to get storage statistics")


@router.get("/duplicates")
async def find_duplicates(inspector: StorageInspector = Depends(get_storage_inspector)):
    try:
        return {"duplicates": inspector.find_duplicates()}
    except Exception as e:
        logger.error(f"Find duplicates error: {e}")
        raise HTTPException(status_code=500, detail="Failed to find duplicates")


@router.get("/orphaned", response_model=OrphanReport)
async def find_orphaned(inspector: StorageInspector = Depends(get_storage_inspector)):
    try:
        return inspector.find_orphans()
    except Exception as e:
        logger.error(f"Find orphaned error: {e}")
        raise HTTPException(status_code=500, detail="Failed to find orphaned files")


@router.post("/cleanup", response_model=CleanupResult)
async def cleanup_storage(inspector: StorageInspector = Depends(get_storage_inspector)):
    try:
        return inspector.cleanup()
    except Exception as e:
        logger.error(f"Cleanup error: {e}")
        raise HTTPException(status_code=500, detail="Failed to cleanup storage")
