"""
Required-field checks for mod payloads.
"""

from __future__ import annotations

from typing import Optional

from modhub.schemas import ModPayload

# Checked in this order; the first violation wins.
REQUIRED_MOD_FIELDS = (
    ("name", "模组名称不能为空"),
    ("description", "模组描述不能为空"),
    ("version", "模组版本不能为空"),
    ("downloadUrl", "下载链接不能为空"),
)


def validate_mod(payload: ModPayload | dict) -> Optional[str]:
    """Return the message for the first missing or blank field, else None."""
    if isinstance(payload, ModPayload):
        payload = payload.model_dump()
    for field_name, message in REQUIRED_MOD_FIELDS:
        value = payload.get(field_name)
        if not isinstance(value, str) or not value.strip():
            return message
    return None
