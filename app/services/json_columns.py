"""
Blog API — Tolerant JSON Column Decoding
==========================================

What:  Normalizes the denormalized JSON columns of a post (comments,
       authors, featured_image) into canonical Python values.
Why:   Depending on the driver the column arrives as text or as an already
       decoded value, and old rows may hold text that is not JSON. Display
       paths favor availability: a bad column degrades to an empty/default
       value instead of failing the request.
Who:   Every read of these columns in BlogService and CommentService.

Comments decode table:
    None / absent         → []
    str (valid JSON)      → decoded, then re-normalized by shape
    str (invalid JSON)    → []
    list / tuple          → as-is
    mapping               → its values, in order
    anything else         → []
    Non-mapping entries are dropped from the resulting list.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Only these keys reach API clients; raw URLs are omitted on purpose so the
# frontend builds delivery URLs from the public id
PUBLIC_IMAGE_FIELDS = ("public_id", "format", "resource_type")


def _loads(value: str) -> Any:
    try:
        return json.loads(value)
    except (TypeError, ValueError, RecursionError):
        # Deeply nested client input exhausts the decoder stack
        return None


def normalize_comment_list(raw: Any) -> List[Dict[str, Any]]:
    """Maps any stored representation of the comments column to a list of dicts."""
    if raw is None:
        return []

    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        decoded = _loads(raw)
        if decoded is None:
            if raw.strip():
                logger.warning("Unparseable comments column; treating as empty")
            return []
        # Decoded text is never re-decoded as text (a JSON string inside a
        # JSON string is still corrupt)
        if isinstance(decoded, str):
            return []
        raw = decoded

    if isinstance(raw, Mapping):
        items = list(raw.values())
    elif isinstance(raw, (list, tuple)):
        items = list(raw)
    else:
        return []

    return [dict(item) for item in items if isinstance(item, Mapping)]


def normalize_authors(raw: Any) -> List[str]:
    """
    Decodes the authors column.

    Text that is not JSON is a legacy single author name and becomes a
    one-element list rather than being discarded.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        decoded = _loads(raw)
        if decoded is None:
            return [raw] if raw else []
        raw = decoded
    if isinstance(raw, (list, tuple)):
        return [str(author) for author in raw]
    if isinstance(raw, str):
        return [raw]
    return []


def parse_authors_input(raw: Any) -> Optional[List[str]]:
    """
    Parses authors supplied by a client (JSON text or a list).

    Returns None when the value is not a JSON list; the caller turns that
    into a validation error.
    """
    if isinstance(raw, str):
        raw = _loads(raw)
    if isinstance(raw, (list, tuple)):
        return [str(author) for author in raw]
    return None


def decode_image_descriptor(raw: Any) -> Optional[Dict[str, Any]]:
    """Decodes the featured_image column to the full descriptor dict, or None."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        raw = _loads(raw)
        if isinstance(raw, str):
            raw = _loads(raw)
    if isinstance(raw, Mapping):
        return dict(raw)
    return None


def public_image_descriptor(raw: Any) -> Optional[Dict[str, Any]]:
    """Reduced descriptor for API responses: public_id, format, resource_type."""
    descriptor = decode_image_descriptor(raw)
    if not descriptor:
        return None
    return {
        "public_id": descriptor.get("public_id"),
        "format": descriptor.get("format"),
        "resource_type": descriptor.get("resource_type") or "image",
    }
