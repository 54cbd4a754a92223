"""
Mapping of backend platform failures to HTTP errors
"""

from fastapi import HTTPException
from postgrest.exceptions import APIError
import logging

logger = logging.getLogger(__name__)

# Postgres insufficient_privilege, raised by row level security policies
PERMISSION_DENIED_CODES = {"42501"}


def backend_error(exc: Exception) -> HTTPException:
    """Translate an exception raised by a Supabase call into an HTTPException"""
    if isinstance(exc, HTTPException):
        return exc
    if isinstance(exc, APIError) and exc.code in PERMISSION_DENIED_CODES:
        return HTTPException(status_code=403, detail="Permission denied")
    logger.error(f"Backend call failed: {exc}")
    return HTTPException(status_code=500, detail=str(exc))
