"""
Identifier validation shared by all routes.

Ids are stored as canonical UUID strings (lowercase, dashed). A malformed
id short-circuits with 400 before any database access; any other spelling
UUID accepts (bare hex, upper case, braces, ``urn:uuid:``) is normalized
so lookups match the stored value.
"""

import uuid
from typing import Optional
from fastapi import HTTPException


def canonical_id(value) -> Optional[str]:
    """Canonical form of ``value``, or None when it is not a UUID string."""
    if not isinstance(value, str):
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return None


def require_valid_id(value, entity: str) -> str:
    """Return the canonical id, or raise 400 ``Invalid <entity> ID format.``"""
    canonical = canonical_id(value)
    if canonical is None:
        raise HTTPException(status_code=400, detail=f"Invalid {entity} ID format.")
    return canonical
