"""
JSON envelope shared by every endpoint:

    {"success": true,  "message"?: str, "data"?: any}
    {"success": false, "message": str, "data"?: any, "errors"?: {field: [str]}}
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = ("body", "query", "path", "header")


def send_response(data: Any = None, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def send_error(message: str, status_code: int = 400, data: Any = None, errors: Optional[dict] = None) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "message": message}
    if data is not None:
        body["data"] = data
    if errors is not None:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def paginate(query, page: int, per_page: int, serializer: Callable) -> dict:
    total = query.count()
    page = max(page, 1)
    rows = query.offset((page - 1) * per_page).limit(per_page).all()
    return {
        "items": [serializer(row) for row in rows],
        "total": total,
        "page": page,
        "per_page": per_page,
        "last_page": max((total + per_page - 1) // per_page, 1),
    }


def _field_name(loc) -> str:
    parts: List[str] = [str(p) for p in loc]
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "body"


def _clean_message(msg: str) -> str:
    # pydantic prefixes messages raised from validators
    for prefix in ("Value error, ", "Assertion failed, "):
        if msg.startswith(prefix):
            return msg[len(prefix):]
    return msg


# ---------- Exception handlers ----------
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    body: Dict[str, Any] = {"success": False}
    if isinstance(detail, dict):
        body.update(detail)
        body.setdefault("message", "Request failed")
    else:
        body["message"] = str(detail)
    headers = getattr(exc, "headers", None)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body), headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        errors.setdefault(_field_name(err.get("loc", ())), []).append(_clean_message(err.get("msg", "Invalid value")))
    return send_error("Validation failed", status_code=422, errors=errors)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return send_error("Server error", status_code=500)


def validation_failed(errors: Dict[str, List[str]]) -> dict:
    """HTTPException detail for a 422 raised from inside a handler"""
    return {"message": "Validation failed", "errors": errors}
