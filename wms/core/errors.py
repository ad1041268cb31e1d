import logging
import uuid

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from wms.core.exceptions import WmsException

logger = logging.getLogger("wms.errors")


def register_error_handlers(app):
    @app.exception_handler(WmsException)
    async def domain_exception(request: Request, exc: WmsException):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(RequestValidationError)
    async def validation_exception(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid input: {location} {first.get('msg', '')}".strip() if first else "Invalid input"
        return JSONResponse(
            status_code=400,
            content={
                "message": message,
                "error": {"message": message, "code": "REQ002", "details": {"errors": errors}},
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):  # noqa: BLE001
        correlation_id = uuid.uuid4().hex
        logger.exception("Unhandled error cid=%s path=%s method=%s", correlation_id, request.url.path, request.method)
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error", "detail": "Internal server error", "cid": correlation_id},
        )

    return app
