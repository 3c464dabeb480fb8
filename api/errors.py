"""
api/errors.py -- HTTPException factory for the shared error envelope.

Every route raises through api_error() so clients always receive
{"error": {"code", "message", "detail"}}; api/main.py's HTTPException handler
passes the dict detail through unchanged.

Codes in use:
  validation_error   400  malformed input or out-of-bounds placement
  not_found          400  referenced space/element/avatar/placement absent
  invalid_reference  400  map template names an element that does not exist
  conflict           400  username already taken
  bad_credentials    403  signin failed
  unauthorized       401/403  no valid token
  forbidden          403  wrong role or not the owner
"""

from typing import Optional

from fastapi import HTTPException

from api.models import ErrorDetail


def api_error(status_code: int, code: str, message: str, detail: Optional[str] = None) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=ErrorDetail(code=code, message=message, detail=detail).model_dump(),
    )
