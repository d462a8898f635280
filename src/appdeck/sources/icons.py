"""
Icon references

Bitmap extraction lives outside the engine; here every application just gets
a stable opaque reference the UI layer can resolve.
"""

import hashlib
import logging
import os
from typing import Optional

from ..core.models import DEFAULT_ICON
from ..utils.paths import executable_of

logger = logging.getLogger(__name__)

ICON_PREFIX = "app-icon:"


def extract_icon(path: str) -> Optional[str]:
    """Best-effort icon reference for an executable; never raises"""
    try:
        executable = executable_of(path)
        if not executable:
            return None
        digest = hashlib.sha1(os.path.normcase(executable).encode("utf-8")).hexdigest()
        return f"{ICON_PREFIX}{digest[:16]}"
    except (TypeError, ValueError) as e:
        logger.debug(f"No icon for {path!r}: {e}")
        return None


def icon_or_default(path: str) -> str:
    return extract_icon(path) or DEFAULT_ICON
