"""Admin API routers."""

from fastapi import APIRouter

from .modules import router as modules_router

router = APIRouter()
router.include_router(modules_router)

__all__ = ["router"]
