"""
Router catalog: services on offer and home-screen banners.
"""
from fastapi import APIRouter, Depends

from core.dependencies import require_admin
from models.catalog import (
    Service, ServiceCreate, ServiceUpdate,
    Banner, BannerCreate, BannerUpdate,
)
from services import catalog_service

services_router = APIRouter()
banners_router = APIRouter()


# ── Services ─────────────────────────────────────────────────────────────────

@services_router.get("", response_model=list[Service], summary="Active services")
async def list_services():
    return await catalog_service.list_services()


@services_router.get("/{service_id}", response_model=Service, summary="Service detail")
async def get_service(service_id: str):
    return await catalog_service.get_service(service_id)


@services_router.post("", response_model=Service, status_code=201, summary="Create a service (admin)")
async def create_service(body: ServiceCreate, _admin=Depends(require_admin)):
    return await catalog_service.create_service(body.model_dump())


@services_router.put("/{service_id}", response_model=Service, summary="Edit a service (admin)")
async def update_service(service_id: str, body: ServiceUpdate, _admin=Depends(require_admin)):
    return await catalog_service.update_service(service_id, body.model_dump(exclude_none=True))


# ── Banners ──────────────────────────────────────────────────────────────────

@banners_router.get("", response_model=list[Banner], summary="Active banners")
async def list_banners():
    return await catalog_service.list_banners()


@banners_router.post("", response_model=Banner, status_code=201, summary="Create a banner (admin)")
async def create_banner(body: BannerCreate, _admin=Depends(require_admin)):
    return await catalog_service.create_banner(body.model_dump())


@banners_router.put("/{banner_id}", response_model=Banner, summary="Edit a banner (admin)")
async def update_banner(banner_id: str, body: BannerUpdate, _admin=Depends(require_admin)):
    return await catalog_service.update_banner(banner_id, body.model_dump(exclude_none=True))
