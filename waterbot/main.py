# Run from project root: uvicorn waterbot.main:app --reload

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from waterbot.api.routes import router
from waterbot.core.config import LOG_LEVEL
from waterbot.mcp.server import mcp_router

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


app = FastAPI(title="Water Risk Agent Backend")
app.include_router(router)
app.include_router(mcp_router, prefix="/mcp")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies (e.g. missing or invalid messages) are client errors with an {error} body."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body") or "body"
    message = f"Missing or invalid {field}: {first.get('msg', 'invalid request')}"
    logger.info("[api] rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[api] unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error."})
