# core/identity.py
from __future__ import annotations

import hashlib
import uuid


def identify(path: str) -> str:
    """
    Stable track id for a file location.

    MD5 of the path string formatted as a UUID, so the same location maps to
    the same id across scans and restarts.
    """
    digest = hashlib.md5(path.encode("utf-8")).hexdigest()
    return str(uuid.UUID(hex=digest))
