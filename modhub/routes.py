"""
HTTP routes for the mod portal API.

Admin routes live under ``/admin``; the header check for them runs in the
app middleware before routing, see ``modhub.app``.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

from modhub import operations
from modhub.dependencies import get_stores
from modhub.errors import ValidationError
from modhub.operations import Stores
from modhub.responses import success
from modhub.schemas import ModPayload

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter(prefix="/admin")


@router.get("/stats")
def get_stats(stores: Stores = Depends(get_stores)):
    return success(operations.get_stats(stores))


@router.get("/mods")
def list_mods(
    featured: Optional[str] = Query(None),
    stores: Stores = Depends(get_stores),
):
    mods = operations.list_mods(stores, featured=featured == "true")
    return success({"mods": mods})


@router.post("/mods/{mod_id}/download")
def record_download(mod_id: str, stores: Stores = Depends(get_stores)):
    return success(operations.record_download(stores, mod_id))


@admin_router.get("/stats")
def get_admin_stats(stores: Stores = Depends(get_stores)):
    return success(operations.get_stats(stores))


@admin_router.get("/mods")
def list_all_mods(stores: Stores = Depends(get_stores)):
    return success({"mods": operations.list_mods(stores)})


@admin_router.post("/mods")
def create_mod(payload: ModPayload, stores: Stores = Depends(get_stores)):
    mod = operations.create_mod(stores, payload)
    return success({"mod": mod}, "模组创建成功")


async def _read_mod_payload(request: Request) -> ModPayload:
    try:
        return ModPayload.model_validate(await request.json())
    except (ValueError, PydanticValidationError):
        raise ValidationError()


@admin_router.put("/mods/{mod_id}")
async def update_mod(
    mod_id: str, request: Request, stores: Stores = Depends(get_stores)
):
    # Unknown ids are a 404 whatever the body looks like.
    operations.get_mod(stores, mod_id)
    payload = await _read_mod_payload(request)
    mod = operations.update_mod(stores, mod_id, payload)
    return success({"mod": mod}, "模组更新成功")


@admin_router.delete("/mods/{mod_id}")
def delete_mod(mod_id: str, stores: Stores = Depends(get_stores)):
    operations.delete_mod(stores, mod_id)
    return success(None, "模组删除成功")


@admin_router.post("/upload")
async def upload_image(request: Request, stores: Stores = Depends(get_stores)):
    async with request.form() as form:
        upload = form.get("image")
        if upload is None or upload == "":
            raise ValidationError("没有上传文件")
        # Only the name is kept; the bytes are never read.
        filename = upload.filename if isinstance(upload, UploadFile) else None

    image = operations.upload_image(stores, filename)
    logger.info("Registered image %s (%s)", image["id"], image["name"])
    return success({"image": image}, "图片上传成功")


@admin_router.get("/images")
def list_images(stores: Stores = Depends(get_stores)):
    return success({"images": operations.list_images(stores)})


@admin_router.delete("/images/{image_id}")
def delete_image(image_id: str, stores: Stores = Depends(get_stores)):
    operations.delete_image(stores, image_id)
    return success(None, "图片删除成功")


@admin_router.get("/activities")
def list_activities(stores: Stores = Depends(get_stores)):
    return success({"activities": operations.list_activities(stores)})


router.include_router(admin_router)
