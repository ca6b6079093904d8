"""HTTP mapping for ordering errors not covered by Protean's FastAPI handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ordering.exceptions import AuthorizationError, ConflictError


async def _authorization_error_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": exc.messages})


async def _conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": exc.messages})


def register_ordering_exception_handlers(app: FastAPI) -> None:
    """Access denied becomes 403; a lost compare-and-set race becomes 409."""
    app.add_exception_handler(AuthorizationError, _authorization_error_handler)
    app.add_exception_handler(ConflictError, _conflict_error_handler)
