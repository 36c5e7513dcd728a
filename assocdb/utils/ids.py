"""Identifier and timestamp helpers."""

import uuid
from datetime import datetime, timezone


def new_id(prefix: str) -> str:
    """Generate a unique id such as ``mbr_3f9c0a1b2d4e``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
