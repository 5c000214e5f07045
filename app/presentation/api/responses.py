"""Response envelopes shared by every router."""

from typing import Any, Dict, Optional

from fastapi import Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    payload = {"success": True, "status": status_code, "data": data}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def created(data: Any) -> JSONResponse:
    return success(data, status.HTTP_201_CREATED)


def no_content() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def error(
    status_code: int,
    kind: str,
    message: str,
    details: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"kind": kind, "message": message}
    if details is not None:
        body["details"] = details
    payload = {"success": False, "status": status_code, "error": body}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload), headers=headers)
