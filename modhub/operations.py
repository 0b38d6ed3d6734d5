"""
Read-modify-write operations over the mod, stats, image and activity documents.

Every collection is a single JSON value that is read whole, changed in memory
and written back whole. Nothing here locks or compares versions before a
write, so two concurrent writers of the same key race and the last write
wins. Deployments are expected to have a single writer per key.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from modhub.accessor import KvAccessor
from modhub.errors import NotFoundError, ValidationError
from modhub.schemas import Activity, Image, Mod, ModPayload, Stats, StatsSummary
from modhub.validation import validate_mod

logger = logging.getLogger(__name__)

MODS_KEY = "mods"
STATS_KEY = "stats"
IMAGES_KEY = "images"
ACTIVITIES_KEY = "activities"

ACTIVITY_LOG_LIMIT = 100
ACTIVITY_DISPLAY_LIMIT = 10
IMAGE_BASE_URL = "https://example.com/images"

# Returned for downloads of unknown mods.
MISSING_DOWNLOAD_URL = "#"


@dataclass
class Stores:
    """Store handles and limits passed explicitly into every operation."""

    mods: KvAccessor
    images: KvAccessor
    activity_log_limit: int = ACTIVITY_LOG_LIMIT
    activity_display_limit: int = ACTIVITY_DISPLAY_LIMIT
    image_base_url: str = IMAGE_BASE_URL


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp(now: datetime) -> str:
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def _today(now: datetime) -> str:
    return now.astimezone(timezone.utc).date().isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


def _find_index(items: list[dict], item_id: str) -> int:
    for index, item in enumerate(items):
        if isinstance(item, dict) and item.get("id") == item_id:
            return index
    return -1


# -- stats -----------------------------------------------------------------


def _load_stats(stores: Stores, now: datetime) -> tuple[dict, bool]:
    """
    Load the stats record, resetting today's counter if the date rolled over.

    Returns the record and whether the rollover changed it.
    """
    today = _today(now)
    stats = stores.mods.get(STATS_KEY).unwrap(default=None)
    if not isinstance(stats, dict):
        stats = Stats(lastReset=today).model_dump()
    # Missing or null counters start from zero.
    stats["totalDownloads"] = stats.get("totalDownloads") or 0
    stats["todayDownloads"] = stats.get("todayDownloads") or 0
    if stats.get("lastReset") != today:
        stats["todayDownloads"] = 0
        stats["lastReset"] = today
        return stats, True
    return stats, False


def get_stats(stores: Stores, *, now: Optional[datetime] = None) -> dict:
    now = now or _utcnow()
    mods = stores.mods.get(MODS_KEY).unwrap(default=[])
    stats, rolled_over = _load_stats(stores, now)
    if rolled_over:
        stores.mods.save(STATS_KEY, stats)
    return StatsSummary(
        totalMods=len(mods),
        totalDownloads=stats["totalDownloads"],
        todayDownloads=stats["todayDownloads"],
    ).model_dump()


# -- mods ------------------------------------------------------------------


def list_mods(stores: Stores, *, featured: bool = False) -> list[dict]:
    mods = stores.mods.get(MODS_KEY).unwrap(default=[])
    if featured:
        mods = [mod for mod in mods if mod.get("featured")]
    return mods


def record_download(
    stores: Stores, mod_id: str, *, now: Optional[datetime] = None
) -> dict:
    """
    Count a download of ``mod_id`` and return where to fetch it.

    Unknown ids still bump the global counters and get ``"#"`` back rather
    than a 404; existing clients rely on that.
    """
    now = now or _utcnow()
    mods = stores.mods.get(MODS_KEY).unwrap(default=[])
    stats, _ = _load_stats(stores, now)

    download_url = MISSING_DOWNLOAD_URL
    index = _find_index(mods, mod_id)
    if index != -1:
        mod = mods[index]
        mod["downloads"] = (mod.get("downloads") or 0) + 1
        stores.mods.save(MODS_KEY, mods)
        download_url = mod.get("downloadUrl") or MISSING_DOWNLOAD_URL

    stats["totalDownloads"] += 1
    stats["todayDownloads"] += 1
    stores.mods.save(STATS_KEY, stats)

    record_activity(stores, "download", f"模组下载: {mod_id}", now=now)
    return {"message": "下载记录成功", "downloadUrl": download_url}


def get_mod(stores: Stores, mod_id: str) -> dict:
    mods = stores.mods.get(MODS_KEY).unwrap(default=[])
    index = _find_index(mods, mod_id)
    if index == -1:
        raise NotFoundError("模组不存在")
    return mods[index]


def _check_mod_payload(payload: ModPayload) -> None:
    message = validate_mod(payload)
    if message:
        raise ValidationError(message)


def create_mod(
    stores: Stores, payload: ModPayload, *, now: Optional[datetime] = None
) -> dict:
    _check_mod_payload(payload)
    now = now or _utcnow()
    mods = stores.mods.get(MODS_KEY).unwrap(default=[])

    created_at = _timestamp(now)
    mod = Mod(
        id=_new_id(),
        name=payload.name,
        description=payload.description,
        version=payload.version,
        downloadUrl=payload.downloadUrl,
        image=payload.image or "",
        featured=bool(payload.featured),
        downloads=0,
        createdAt=created_at,
        updatedAt=created_at,
    ).model_dump()

    mods.append(mod)
    stores.mods.save(MODS_KEY, mods)
    record_activity(stores, "create", f"创建模组: {payload.name}", now=now)
    return mod


def update_mod(
    stores: Stores,
    mod_id: str,
    payload: ModPayload,
    *,
    now: Optional[datetime] = None,
) -> dict:
    now = now or _utcnow()
    mods = stores.mods.get(MODS_KEY).unwrap(default=[])
    index = _find_index(mods, mod_id)
    if index == -1:
        raise NotFoundError("模组不存在")
    _check_mod_payload(payload)

    mod = dict(mods[index])
    mod.update(
        name=payload.name,
        description=payload.description,
        version=payload.version,
        downloadUrl=payload.downloadUrl,
        image=payload.image or "",
        featured=bool(payload.featured),
        updatedAt=_timestamp(now),
    )
    mods[index] = mod
    stores.mods.save(MODS_KEY, mods)
    record_activity(stores, "update", f"更新模组: {payload.name}", now=now)
    return mod


def delete_mod(stores: Stores, mod_id: str, *, now: Optional[datetime] = None) -> None:
    mods = stores.mods.get(MODS_KEY).unwrap(default=[])
    index = _find_index(mods, mod_id)
    if index == -1:
        raise NotFoundError("模组不存在")

    deleted = mods.pop(index)
    stores.mods.save(MODS_KEY, mods)
    record_activity(stores, "delete", f"删除模组: {deleted.get('name')}", now=now)


# -- images ----------------------------------------------------------------


def upload_image(
    stores: Stores, filename: Optional[str] = None, *, now: Optional[datetime] = None
) -> dict:
    """
    Register an uploaded image.

    Only metadata is kept: the bytes are discarded, ``size`` is always 0 and
    ``url`` is a placeholder built from the id.
    """
    now = now or _utcnow()
    image_id = _new_id()
    name = filename or f"image-{image_id}"
    images = stores.images.get(IMAGES_KEY).unwrap(default=[])

    image = Image(
        id=image_id,
        name=name,
        url=f"{stores.image_base_url.rstrip('/')}/{image_id}",
        size=0,
        uploadedAt=_timestamp(now),
    ).model_dump()

    images.append(image)
    stores.images.save(IMAGES_KEY, images)
    record_activity(stores, "upload", f"上传图片: {name}", now=now)
    return image


def list_images(stores: Stores) -> list[dict]:
    return stores.images.get(IMAGES_KEY).unwrap(default=[])


def delete_image(
    stores: Stores, image_id: str, *, now: Optional[datetime] = None
) -> None:
    images = stores.images.get(IMAGES_KEY).unwrap(default=[])
    index = _find_index(images, image_id)
    if index == -1:
        raise NotFoundError("图片不存在")

    deleted = images.pop(index)
    stores.images.save(IMAGES_KEY, images)
    record_activity(stores, "delete", f"删除图片: {deleted.get('name')}", now=now)


# -- activity log ----------------------------------------------------------


def list_activities(stores: Stores) -> list[dict]:
    activities = stores.mods.get(ACTIVITIES_KEY).unwrap(default=[])
    return activities[: stores.activity_display_limit]


def record_activity(
    stores: Stores, action: str, details: str, *, now: Optional[datetime] = None
) -> None:
    """Prepend an entry to the capped activity log. Failures are only logged."""
    try:
        now = now or _utcnow()
        activities = stores.mods.get(ACTIVITIES_KEY).unwrap(default=[])
        entry = Activity(
            id=_new_id(), action=action, details=details, timestamp=_timestamp(now)
        ).model_dump()
        activities.insert(0, entry)
        stores.mods.save(ACTIVITIES_KEY, activities[: stores.activity_log_limit])
    except Exception:
        logger.exception("Failed to record %s activity", action)
